"""
Clide entry point.

run() is the one-call way to drive the engine from a script:

    # cli.py
    import asyncio
    from clide import run

    asyncio.run(run())      # routes sys.argv[1:] through ./commands

It builds the hook registry and the Context, prepares and executes it, and
returns the final data of the chain.
"""
import inspect
import logging
import os.path
import sys

from .context import Context
from .faults import ClideError, ClientError, FaultCode
from .hooks import Hook, HookRegistry
from .resolve import load_command_unit
from .utils import join_tokens

logger = logging.getLogger(__name__)

COMMANDS_DIR_NAME = "commands"


def find_commands_dir(caller=None, /):
    """
    Locate the default commands directory: "<cwd>/commands", then
    "<caller dir>/commands".

    Parameters
    - caller: path of the calling file (defaults to the file calling
      find_commands_dir).

    Raises
    - ClideError: neither directory exists.
    """
    candidates = [os.path.abspath(COMMANDS_DIR_NAME)]
    if caller is None:
        caller = inspect.stack()[1].filename
    if caller:
        candidates.append(os.path.join(os.path.dirname(os.path.abspath(caller)), COMMANDS_DIR_NAME))

    for candidate in candidates:
        if os.path.isdir(candidate):
            return candidate
    raise ClideError(
        "unable to find commands directory",
        code=FaultCode.COMMANDS_DIR_NOT_FOUND,
        hint="create a %r directory or pass commands_dir" % COMMANDS_DIR_NAME,
    )


async def run(
        command=None,
        /,
        *,
        commands_dir=None,
        default_command=None,
        initial_data=None,
        options=None,
        plugins=(),
        hooks=None,
        client=None,
        load_fn=None,
        **hook_handlers,
):
    """
    Resolve, parse and execute a command line.

    Parameters
    - command: command line string or list of words (defaults to sys.argv[1:]).
    - commands_dir: command tree root (see find_commands_dir for the default).
    - default_command: prefixed when the input is empty or starts with an option.
    - initial_data: data of the first command.
    - options: extra option schema available to every command.
    - plugins: plugins initialized before resolution.
    - hooks: existing HookRegistry to use.
    - client: Client used for output and prompts.
    - load_fn: custom command unit loader.
    - **hook_handlers: handlers keyed by hook name (before_resolve=..., error=...).

    Returns
    - the final data, or a ClientError that was already shown to the user.

    Raises
    - ClideError: every other failure, wrapped when needed.
    """
    if commands_dir is None:
        commands_dir = find_commands_dir(inspect.stack()[1].filename)

    if command is None:
        command = sys.argv[1:]
    command_string = command if isinstance(command, str) else join_tokens(command)

    if default_command and (not command_string.strip() or command_string.lstrip().startswith("-")):
        command_string = f"{default_command} {command_string}".strip()

    hooks = hooks if hooks is not None else HookRegistry()
    for name, handler in hook_handlers.items():
        try:
            hooks.on(Hook(name), handler)
        except ValueError:
            raise TypeError(f"run() got an unexpected keyword argument {name!r}") from None

    context = Context(
        command_string,
        commands_dir,
        client=client,
        hooks=hooks,
        plugins=plugins,
        load_fn=load_fn or load_command_unit,
    )
    if options:
        context.add_options(options)

    logger.debug("running %r from %r", command_string, commands_dir)
    try:
        await context.prepare()
        await context.execute(initial_data)
    except ClientError as error:
        return error
    except ClideError:
        raise
    except Exception as error:
        raise ClideError(str(error) or type(error).__name__, cause=error) from error
    return context.result


__all__ = (
    "run",
    "find_commands_dir",
)
