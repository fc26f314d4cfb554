"""
Command units: the declarative definition behind one path segment.

A command file is a Python module exposing a module-level `command`:

    # commands/deploy.py
    from clide import command

    @command(description="deploy the app", options={"env": {"type": "string", "required": True}})
    async def command(state):
        env = await state.options.env()
        await state.next({"env": env})

The export may also be a CommandUnit built directly, a mapping of CommandUnit
fields, or a bare handler function.

A unit without a handler is a pass-through: it forwards the data unchanged
and requires a subcommand. Directories without a unit file behave the same.
"""
from collections.abc import Mapping

from .options.option import normalize_options
from .utils import Unset, coalesce, mirror, rename


@rename("pass_through")
async def pass_through_handler(state):
    """
    Forward the current data to the next command unchanged.
    """
    await state.next(state.data)


class CommandUnit:
    """
    Immutable command definition.

    Parameters
    - handler: callable(state), sync or async. None makes a pass-through unit.
    - description: short help text.
    - is_middleware: run even when a deeper subcommand follows (default True).
      Non-middleware units only contribute their options in that case.
    - requires_subcommand: resolution must continue past this unit (default
      False, True for pass-through units).
    - options: option schema of this unit.
    """
    description = mirror("description")
    is_middleware = mirror("is_middleware")
    requires_subcommand = mirror("requires_subcommand")
    options = mirror("options")
    handler = mirror("handler")

    def __init__(
            self,
            handler=None,
            /,
            *,
            description=None,
            is_middleware=True,
            requires_subcommand=Unset,
            options=None,
    ):
        if handler is None:
            handler = pass_through_handler
            requires_subcommand = coalesce(requires_subcommand, True)
        elif not callable(handler):
            raise TypeError("command handler must be callable")
        if not isinstance(description, str | None):
            raise TypeError("command 'description' must be a string")

        self._handler = handler
        self._description = description
        self._is_middleware = bool(is_middleware)
        self._requires_subcommand = bool(coalesce(requires_subcommand, False))
        self._options = normalize_options(options)

    @property
    def is_pass_through(self):
        return self._handler is pass_through_handler

    def __repr__(self):
        return (
            f"command-unit(handler={getattr(self._handler, "__name__", self._handler)!r}, "
            f"description={self._description!r}, is_middleware={self._is_middleware!r}, "
            f"requires_subcommand={self._requires_subcommand!r}, options={list(self._options)!r})"
        )

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fields = {
            "description": self._description,
            "is_middleware": self._is_middleware,
            "requires_subcommand": self._requires_subcommand,
            "options": self._options,
        } | overrides
        return type(self)(overrides.get("handler", self._handler), **{
            name: object for name, object in fields.items() if name != "handler"
        })


def as_command_unit(object, /):
    """
    Coerce a command export into a CommandUnit.

    Accepts a CommandUnit, a mapping of CommandUnit fields (with an optional
    "handler" key), or a bare handler callable.
    """
    match object:
        case CommandUnit():
            return object
        case Mapping():
            fields = dict(object)
            return CommandUnit(fields.pop("handler", None), **fields)
        case _ if callable(object):
            return CommandUnit(object)
    raise TypeError(f"cannot use {type(object).__name__!r} object as a command")


def command(handler=Unset, /, **metadata):
    """
    Build a CommandUnit from a handler, or return a decorator that will.

    Forms
    - command(handler, **metadata) -> CommandUnit
    - @command(**metadata) / @command -> decorator
    """
    if handler is not Unset:
        if not callable(handler):
            raise TypeError("command() first argument must be callable")
        return CommandUnit(handler, **metadata)

    def wrapper(handler, /):
        if not callable(handler):
            raise TypeError("@command() must be applied to a callable")
        return CommandUnit(handler, **metadata)

    return rename(wrapper, "command")


__all__ = (
    "CommandUnit",
    "command",
    "as_command_unit",
    "pass_through_handler",
)
