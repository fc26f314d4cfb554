r"""
Clide resolver: filesystem-based command routing.

resolve_command(command_string, commands_dir) turns the first word of a command
line into a ResolvedCommand by looking it up in a commands directory:

    commands/
      deploy.py            -> "deploy"
      deploy/              -> subcommands of "deploy"
        staging.py         -> "deploy staging"
      users/               -> "users" (no unit file: pass-through)
        [id].py            -> "users 42"        params {"id": "42"}
        [id]/
          index.py         -> unit for "[id]" when it also has subcommands
      files/
        [...paths].py      -> "files a b c"     params {"paths": ["a", "b", "c"]}

Lookup order for a word: a unit file "<word>.py" (or "<word>/index.py"), then a
plain directory "<word>/" (pass-through unit), then the first parameterized
entry of the directory in lexical order ("[name]" binds one word, "[...name]"
binds every remaining word). Nothing matched is a NotFoundError carrying
near-miss suggestions.

Every ResolvedCommand is then normalized (prepare_resolved_command):
- leading option words are stripped from the remainder (parsed against the
  unit's own schema, middleware or not) so the next step never mistakes a
  flag or its value for a command name;
- a non-middleware unit followed by more input gets a pass-through handler
  (its options are still honored);
- resolve_next is attached only when input remains.

Loading is injectable: load_fn(path) returns a command export (or None when no
unit file exists at path, which is the path without its ".py" extension).
"""
import copy
import difflib
import functools
import importlib.util
import logging
import os.path
import re
from types import MappingProxyType
from typing import Any, Callable, NamedTuple

from .command import CommandUnit, as_command_unit, pass_through_handler
from .faults import (
    CommandRequiredError,
    FaultCode,
    MissingExportError,
    NotFoundError,
    OptionsError,
    UsageError,
)
from .parse import parse_command
from .utils import join_tokens, maybe_await, parse_file_name, split_tokens

logger = logging.getLogger(__name__)


class ResolvedCommand(NamedTuple):
    """
    One link of a resolution chain.

    Fields
    - command: the CommandUnit (a pass-through copy for skipped non-middleware units).
    - command_name: the matched entry name ("deploy", "[id]", "[...paths]").
    - command_path: the unit path without extension.
    - command_tokens: the word(s) consumed by this link.
    - remaining_command_string: unconsumed input, leading options stripped.
    - subcommands_dir: where the next link is looked up.
    - params: path parameters captured by this link.
    - resolve_next: coroutine function resolving the next link, or None.
    """
    command: CommandUnit
    command_name: str
    command_path: str
    command_tokens: tuple
    remaining_command_string: str
    subcommands_dir: str
    params: MappingProxyType = MappingProxyType({})
    resolve_next: Callable[[], Any] | None = None


def _module_name(path):
    return "clide_command_" + re.sub(r"\W", "_", os.path.abspath(path))


def load_command_unit(path, /):
    """
    Import the command unit stored at path ("<path>.py" or "<path>/index.py").

    Returns
    - CommandUnit, or None when neither file exists.

    Raises
    - MissingExportError: the module has no `command` attribute.
    - anything the module itself raises while importing.
    """
    for candidate in (path + ".py", os.path.join(path, "index.py")):
        if os.path.isfile(candidate):
            break
    else:
        return None

    spec = importlib.util.spec_from_file_location(_module_name(candidate), candidate)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    if (export := getattr(module, "command", None)) is None:
        raise MissingExportError(
            "missing 'command' export for command %r at %r" % (os.path.basename(path), candidate),
            path=candidate,
            hint="define a module-level 'command' (e.g., with the @command decorator)",
        )
    return as_command_unit(export)


def list_commands(commands_dir, /):
    """
    Routable command names of a directory, sorted.

    Private entries ("_*", ".*"), index files and parameterized entries are
    not listed.
    """
    if not os.path.isdir(commands_dir):
        return []
    names = set()
    for entry in os.listdir(commands_dir):
        info = parse_file_name(entry)
        if entry.startswith(("_", ".")) or info.param is not None or info.name == "index":
            continue
        if os.path.isdir(os.path.join(commands_dir, entry)) or info.extension == ".py":
            names.add(info.name)
    return sorted(names)


def _not_found(name, commands_dir):
    suggestions = difflib.get_close_matches(name, list_commands(commands_dir), 3)
    try:
        hint = f'did you mean "{suggestions[0]}"?'
    except IndexError:
        hint = None
    return NotFoundError(
        f'command "{name}" not found',
        token=name,
        path=commands_dir,
        suggestions=tuple(suggestions),
        hint=hint,
    )


async def _strip_leading_options(remaining, schema, parse_fn):
    """
    Internal: drop the option words that precede the first positional token.

    The first token is located at the earliest word from which re-parsing
    yields the same tokens as the whole remainder, so option values equal to
    the token itself are never mistaken for it.
    """
    tokens = list((await maybe_await(parse_fn(remaining, schema))).tokens)
    if not tokens:
        return ""
    words = split_tokens(remaining)
    for index, word in enumerate(words):
        if word != tokens[0]:
            continue
        rest = join_tokens(words[index:])
        if list((await maybe_await(parse_fn(rest, schema))).tokens) == tokens:
            return rest
    return remaining


async def prepare_resolved_command(resolved, /, *, parse_fn=parse_command, load_fn=load_command_unit):
    """
    Normalize a freshly matched ResolvedCommand (see module docstring).
    """
    unit = resolved.command
    remaining = resolved.remaining_command_string

    if remaining:
        remaining = await _strip_leading_options(remaining, unit.options, parse_fn)

    resolve_next = None
    if remaining:
        resolve_next = functools.partial(
            resolve_command,
            remaining,
            resolved.subcommands_dir,
            parse_fn=parse_fn,
            load_fn=load_fn,
        )

    if not unit.is_middleware and resolve_next is not None:
        logger.debug("skipping handler of non-middleware command %r", resolved.command_name)
        unit = copy.replace(unit, handler=pass_through_handler)

    return resolved._replace(command=unit, remaining_command_string=remaining, resolve_next=resolve_next)


async def _resolve_param_command(words, commands_dir, parse_fn, load_fn):
    """
    Internal: bind the words to the first parameterized entry of the
    directory, in lexical order of entry names.
    """
    token, *rest = words
    seen = set()

    for entry in sorted(os.listdir(commands_dir)):
        info = parse_file_name(entry)
        if info.param is None or info.name in seen:
            continue
        path = os.path.join(commands_dir, info.name)
        if info.extension != ".py" and not os.path.isdir(path):
            continue
        seen.add(info.name)

        if (unit := await maybe_await(load_fn(path))) is not None:
            unit = as_command_unit(unit)
        else:
            # listed but no unit file: a parameterized directory
            unit = CommandUnit()

        if info.spread:
            tokens = list((await maybe_await(parse_fn(join_tokens(words), unit.options))).tokens)
            params, consumed, remaining = {info.param: tokens}, tuple(tokens), ""
        else:
            params, consumed, remaining = {info.param: token}, (token,), join_tokens(rest)

        return ResolvedCommand(
            command=unit,
            command_name=info.name,
            command_path=path,
            command_tokens=consumed,
            remaining_command_string=remaining,
            subcommands_dir=path,
            params=MappingProxyType(params),
        )
    return None


async def resolve_command(command_string, commands_dir, /, *, parse_fn=parse_command, load_fn=load_command_unit):
    """
    Resolve the first command of a command line against a commands directory.

    Parameters
    - command_string: the command line (or a list of words).
    - commands_dir: the directory to look the first word up in.
    - parse_fn: parser used to strip option words (sync or async).
    - load_fn: unit loader (sync or async), see load_command_unit.

    Returns
    - ResolvedCommand

    Raises
    - CommandRequiredError: empty input.
    - OptionsError: the first word is an option.
    - UsageError: the first word looks like a path.
    - NotFoundError: missing directory or nothing matched.
    - MissingExportError / import errors from the unit file.
    """
    words = split_tokens(command_string)
    if not words:
        raise CommandRequiredError("command required", hint="pass a command name")

    name, *remaining = words

    if name.startswith("-"):
        raise OptionsError(f'unknown option "{name}"', code=FaultCode.UNKNOWN_OPTION, token=name)

    if re.match(r"^[./\\]", name) or "/" in name or os.sep in name:
        raise UsageError(f'invalid command name "{name}"', code=FaultCode.INVALID_COMMAND_NAME, token=name)

    if not os.path.isdir(commands_dir):
        raise _not_found(name, commands_dir)

    path = os.path.join(commands_dir, name)
    resolved = None

    if (unit := await maybe_await(load_fn(path))) is not None:
        resolved = ResolvedCommand(as_command_unit(unit), name, path, (name,), join_tokens(remaining), path)
    elif os.path.isdir(path):
        resolved = ResolvedCommand(CommandUnit(), name, path, (name,), join_tokens(remaining), path)
    else:
        resolved = await _resolve_param_command(words, commands_dir, parse_fn, load_fn)

    if resolved is None:
        raise _not_found(name, commands_dir)

    logger.debug("resolved %r to %r in %r", name, resolved.command_name, commands_dir)
    return await prepare_resolved_command(resolved, parse_fn=parse_fn, load_fn=load_fn)


__all__ = (
    "ResolvedCommand",
    "resolve_command",
    "prepare_resolved_command",
    "load_command_unit",
    "list_commands",
)
