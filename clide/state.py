"""
Clide execution state: the per-execution cursor over a resolved command chain.

Lifecycle
- index starts at -1, before the first command.
- start(data) enters the first command; every handler moves the cursor on
  with `await state.next(data)` (run the following command) or
  `await state.end(data)` (jump to the terminal index, skipping the rest).
  Both are scheduled as soon as they are called, so an unawaited call still
  moves the chain on.
- A handler may instead return Next(data) / End(data); the state applies it
  as if the handler had called the method.
- A handler that neither calls nor returns a transition is followed
  automatically, so a chain never stalls on a forgetful handler.
- Completion resolves on the first terminal transition; start() returns the
  data as it stands once every nested transition has settled.

Every change of index, data, params or option values goes through the
before_state_change / after_state_change hooks.
"""
import asyncio
import logging
from types import MappingProxyType
from typing import Any, NamedTuple

from .command import as_command_unit
from .faults import AlreadyStartedError, FaultCode
from .hooks import Hook, HookPayload
from .options import create_options_getter, merge_options
from .resolve import ResolvedCommand
from .utils import Unset, coalesce, maybe_await

logger = logging.getLogger(__name__)


class Next(NamedTuple):
    """
    Handler result: continue with the following command.
    """
    data: Any = None


class End(NamedTuple):
    """
    Handler result: end the chain early.
    """
    data: Any = None


class State:
    """
    Execution cursor.

    Parameters
    - context: the owning Context (hooks, client, merged schema, parsed values).
    - initial_data: data seen by the first command.
    - commands: the chain to execute (defaults to context.resolved_commands).
    - options: option schema of the getter (defaults to context.options).
    - option_values: values seeding the getter (defaults to context.parsed_options).
    """

    def __init__(self, context, /, *, initial_data=None, commands=None, options=None, option_values=None):
        self._context = context
        self._data = initial_data
        self._commands = tuple(context.resolved_commands if commands is None else commands)
        self._index = -1
        self._params = MappingProxyType({})
        self._actions = 0
        self._completion = None
        self._options = create_options_getter(
            context.options if options is None else options,
            context.parsed_options if option_values is None else option_values,
            client=context.client,
            on_prompt_cancel=context.exit,
        )

    @property
    def index(self):
        return self._index

    @property
    def command(self):
        """
        The ResolvedCommand at the cursor, or None before start.
        """
        if 0 <= self._index < len(self._commands):
            return self._commands[self._index]
        return None

    @property
    def commands(self):
        return self._commands

    @property
    def context(self):
        return self._context

    @property
    def client(self):
        return self._context.client

    @property
    def data(self):
        return self._data

    @property
    def params(self):
        return self._params

    @property
    def options(self):
        return self._options

    @property
    def hooks(self):
        return self._context.hooks

    async def start(self, initial_data=Unset, /):
        """
        Run the chain from the first command and return the final data.

        Raises
        - AlreadyStartedError: the state is already running.
        """
        if self._completion is not None:
            raise AlreadyStartedError("state has already started", code=FaultCode.ALREADY_STARTED)

        self._completion = asyncio.get_running_loop().create_future()
        try:
            self.next(coalesce(initial_data, self._data))
            await self._completion
        finally:
            self._completion = None
        return self._data

    def next(self, data=Unset, /):
        """
        Advance to the next command and run its handler, or complete the
        execution when the chain is exhausted.

        The transition is scheduled right away, so a handler may call next()
        without awaiting it and still hand the chain over.

        Returns
        - an awaitable resolving to the state's data once the transition (and
          everything it triggered) settled.
        """
        self._actions += 1
        return self._schedule(self._next(data))

    def end(self, data=Unset, /):
        """
        Jump to the last command of the chain without running the commands in
        between, and complete the execution.

        Scheduled right away, like next().
        """
        self._actions += 1
        return self._schedule(self._end(data))

    def _schedule(self, transition):
        task = asyncio.ensure_future(transition)
        task.add_done_callback(self._settle)
        return task

    def _settle(self, task):
        if task.cancelled():
            return
        if (error := task.exception()) is not None and self._completion is not None and not self._completion.done():
            self._completion.set_exception(error)

    async def _next(self, data):
        data = coalesce(data, self._data)
        index = self._index + 1

        if index >= len(self._commands):
            await self._apply_state(data=data)
            self._complete()
            return self._data

        command = self._commands[index]

        def set_data(value):
            nonlocal data
            data = value

        def set_params(value):
            self._params = MappingProxyType(dict(value))

        def set_command(value):
            nonlocal command
            command = value

        await self.hooks.call(Hook.BEFORE_COMMAND, HookPayload(
            state=self,
            command=command,
            data=data,
            params=self._params,
            set_data=set_data,
            set_params=set_params,
            set_command=set_command,
        ))

        await self._apply_state(data=data, index=index, params={**self._params, **command.params})

        logger.debug("running command %r (%d/%d)", command.command_name, index + 1, len(self._commands))
        actions = self._actions
        result = await maybe_await(command.command.handler(self))

        await self.hooks.call(Hook.AFTER_COMMAND, HookPayload(
            state=self,
            command=command,
            data=data,
            set_data=set_data,
        ))

        if self._actions == actions:
            match result:
                case End(data=value):
                    await self.end(value)
                case Next(data=value):
                    await self.next(value)
                case _:
                    await self.next(data)

        return self._data

    async def _end(self, data):
        data = coalesce(data, self._data)

        def set_data(value):
            nonlocal data
            data = value

        await self.hooks.call(Hook.BEFORE_END, HookPayload(state=self, data=data, set_data=set_data))
        await self._apply_state(data=data, index=len(self._commands) - 1)
        self._complete()
        return self._data

    async def fork(self, commands, /, *, initial_data=Unset, option_values=None, params=None):
        """
        Run an isolated sub-execution over the given commands and return its
        final data.

        Parameters
        - commands: CommandUnits (or anything coercible to one) and/or
          ResolvedCommands. Bare units are wrapped as "fork-command" links
          carrying the current params plus `params`.
        - initial_data: data of the first forked command (defaults to this
          state's data).
        - option_values: option overrides applied to the fork's getter.
        - params: extra params for wrapped units.
        """
        chain = []
        schema = dict(self._context.options)
        for entry in commands:
            if not isinstance(entry, ResolvedCommand):
                entry = ResolvedCommand(
                    command=as_command_unit(entry),
                    command_name="fork-command",
                    command_path="",
                    command_tokens=(),
                    remaining_command_string="",
                    subcommands_dir="",
                    params=MappingProxyType({**self._params, **(params or {})}),
                )
            schema = merge_options(schema, entry.command.options)
            chain.append(entry)

        state = type(self)(
            self._context,
            initial_data=coalesce(initial_data, self._data),
            commands=chain,
            options=schema,
            option_values=dict(self._options.values),
        )
        for name, value in (option_values or {}).items():
            state.options.set(name, value)

        logger.debug("forking state over %d command(s)", len(chain))
        return await state.start()

    def _complete(self):
        if self._completion is not None and not self._completion.done():
            self._completion.set_result(None)

    async def _apply_state(self, **changes):
        """
        Internal: apply a changeset (index, data, params, options) through the
        state-change hooks.
        """

        def set_changes(value):
            nonlocal changes
            changes = dict(value)

        def skip():
            nonlocal changes
            self.client.warn(f"skipping state update: {changes!r}")
            changes = {}

        await self.hooks.call(Hook.BEFORE_STATE_CHANGE, HookPayload(
            state=self,
            changes=MappingProxyType(changes),
            set_changes=set_changes,
            skip=skip,
        ))

        if "index" in changes:
            self._index = changes["index"]
        if "params" in changes:
            self._params = MappingProxyType(dict(changes["params"]))
        for name, value in changes.get("options", {}).items():
            self._options.set(name, value)
        if "data" in changes:
            self._data = changes["data"]

        await self.hooks.call(Hook.AFTER_STATE_CHANGE, HookPayload(state=self, changes=MappingProxyType(changes)))


__all__ = (
    "State",
    "Next",
    "End",
)
