"""
Clide hook registry.

Hooks are the plugin extension surface: the Context and the State call them at
every lifecycle choke-point, and handlers registered on those names can
observe, replace values before they take effect, or veto the default action.

Dispatch
- call(name, *args) awaits every handler registered for the name strictly in
  registration order; no two handlers of one call run concurrently.
- The handler list is copied before iteration, so handlers may call on/off
  (including on their own name) without affecting the call in progress.
- Handlers may be plain functions or coroutine functions.

Payloads
- The engine passes a single HookPayload per call. Data fields are read-only
  attributes; mutators are callables (set_data(...), skip(), ...).
- Terminal actions (skip, cancel, ignore, set_result_and_skip,
  set_parsed_options_and_skip) are one-shot per payload: the first one called
  takes effect and any later terminal action on the same payload is ignored.
"""
import functools
import logging
from collections import defaultdict
from enum import StrEnum

from .utils import maybe_await, rename

logger = logging.getLogger(__name__)


class Hook(StrEnum):
    """
    lifecycle hook names (plugins may also use custom string names).
    """
    BEFORE_RESOLVE = "before_resolve"
    BEFORE_RESOLVE_NEXT = "before_resolve_next"
    AFTER_RESOLVE = "after_resolve"
    BEFORE_PARSE = "before_parse"
    AFTER_PARSE = "after_parse"
    BEFORE_EXECUTE = "before_execute"
    BEFORE_COMMAND = "before_command"
    AFTER_COMMAND = "after_command"
    BEFORE_STATE_CHANGE = "before_state_change"
    AFTER_STATE_CHANGE = "after_state_change"
    BEFORE_END = "before_end"
    AFTER_EXECUTE = "after_execute"
    ERROR = "error"
    BEFORE_EXIT = "before_exit"


TERMINAL_ACTIONS = frozenset({
    "skip",
    "cancel",
    "ignore",
    "set_result_and_skip",
    "set_parsed_options_and_skip",
})


class HookPayload:
    """
    Read-mostly view handed to hook handlers.

    Built from keyword fields; every field is exposed as a read-only attribute.
    Callables named after terminal actions are wrapped so that only the first
    terminal action of the payload runs.
    """

    def __init__(self, /, **fields):
        object.__setattr__(self, "_terminated", None)
        for name, field in fields.items():
            if name in TERMINAL_ACTIONS:
                fields[name] = self._terminal(name, field)
        object.__setattr__(self, "_fields", fields)

    def _terminal(self, name, action):
        @rename(name)
        def wrapper(*args, **kwargs):
            if self._terminated is not None:
                logger.debug("ignoring %s(): payload already ended by %s()", name, self._terminated)
                return None
            object.__setattr__(self, "_terminated", name)
            return action(*args, **kwargs)
        return wrapper

    @property
    def terminated(self):
        """
        Name of the terminal action that was taken, if any.
        """
        return self._terminated

    def __getattr__(self, name):
        try:
            return self.__dict__["_fields"][name]
        except KeyError:
            raise AttributeError(f"hook payload has no field {name!r}") from None

    def __setattr__(self, name, value):
        raise AttributeError("hook payloads are read-only; use the provided setters")

    def __contains__(self, name):
        return name in self._fields

    def __dir__(self):
        return [*super().__dir__(), *self._fields]

    def __repr__(self):
        return f"hook-payload({", ".join(self._fields)})"


class HookRegistry:
    """
    Ordered, awaited publish/subscribe registry keyed by hook name.
    """

    def __init__(self):
        self._handlers = defaultdict(list)

    def on(self, name, handler, /):
        """
        Register a handler for a hook name.
        """
        if not callable(handler):
            raise TypeError("hook handler must be callable")
        self._handlers[str(name)].append(handler)

    def off(self, name, handler, /):
        """
        Unregister the first registration of a handler (including handlers
        registered through once()).

        Returns
        - True when a registration was removed, False otherwise.
        """
        handlers = self._handlers.get(str(name), [])
        for index, registered in enumerate(handlers):
            if registered == handler or getattr(registered, "__wrapped__", None) == handler:
                del handlers[index]
                return True
        return False

    def once(self, name, handler, /):
        """
        Register a handler that unregisters itself before its first run.
        """
        if not callable(handler):
            raise TypeError("hook handler must be callable")

        @functools.wraps(handler)
        async def wrapper(*args, **kwargs):
            self.off(name, wrapper)
            return await maybe_await(handler(*args, **kwargs))

        self._handlers[str(name)].append(wrapper)

    async def call(self, name, /, *args, **kwargs):
        """
        Await every handler registered for the name, in registration order,
        passing each the same arguments.
        """
        handlers = list(self._handlers.get(str(name), ()))
        if handlers:
            logger.debug("calling %d handler(s) for hook %r", len(handlers), str(name))
        for handler in handlers:
            await maybe_await(handler(*args, **kwargs))

    def handlers(self, name, /):
        """
        Snapshot of the handlers registered for a name.
        """
        return tuple(self._handlers.get(str(name), ()))

    def __contains__(self, name):
        return bool(self._handlers.get(str(name)))


__all__ = (
    "Hook",
    "HookPayload",
    "HookRegistry",
    "TERMINAL_ACTIONS",
)
