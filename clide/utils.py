"""
Clide utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the parser, the resolver, the option system
  and the execution state. Nothing here knows about commands or hooks.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided” when None is a legitimate value
    (e.g., a handler passing None as data to state.next()).
- coalesce(value, default=None)
  • Replace Unset with a concrete default while preserving None/0/""/[].
- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated wrappers (once-hooks, pass-through handlers).
- mirror("attr")
  • Read-only property exposing a private backing field (self._attr) as a copy.
- maybe_await(value)
  • Await the value when it is awaitable; plain values pass through. Lets every
    injectable callable (handlers, hooks, loaders, parse functions) be sync or async.

Token and file-name helpers
- camel_case / snake_case: option key variants ("dry-run" → "dryRun" / "dry_run").
- split_tokens / join_tokens: POSIX shell-style splitting and quoting.
- parse_file_name: recognizes "[name]" and "[...name]" parameter segments.
- remove_file_extension: "foo.py" → "foo", leaving dot-files alone.
"""
import builtins
import functools
import inspect
import re
import shlex
from collections.abc import Sequence, Mapping, Set
from typing import NamedTuple, final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns the given object unless it is Unset, in which case the default is
    returned. Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name) -> decorator

    Raises
    - TypeError: wrong arity, non-callable target, non-string name, or a
      callable whose name attributes cannot be updated (e.g., built-ins).
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values so callers cannot mutate backing state.

    - Sequence (non-string): new list.
    - Mapping: new dict with the same keys.
    - Set: new set.
    - Anything else: returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Container values are returned as fresh copies (see _immortalize) so the
    public surface of schemas and command units stays immutable.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


async def maybe_await(object, /):
    """
    Await the object if it is awaitable, otherwise return it unchanged.
    """
    if inspect.isawaitable(object):
        return await object
    return object


def camel_case(text, /):
    """
    Convert a kebab/snake-cased key into camelCase ("dry-run" -> "dryRun").

    Runs of separators are collapsed; a trailing separator is kept since it
    has no following character to capitalize.
    """
    return re.sub(r"[-_]+([^-_])", lambda match: match.group(1).upper(), text)


def snake_case(text, /):
    """
    Convert a kebab/camel-cased key into an identifier-friendly snake_case key
    ("dry-run" -> "dry_run", "dryRun" -> "dry_run").
    """
    text = re.sub(r"(?<=[a-z0-9])([A-Z])", lambda match: "_" + match.group(1).lower(), text)
    return re.sub(r"-+", "_", text)


def split_tokens(line, /):
    """
    Split a command line into words using POSIX shell rules.

    Quoted segments are kept as a single word with the quotes removed
    ('-c="c1 c2"' -> ['-c=c1 c2']). Lists and tuples are returned as lists.

    Raises
    - UsageError: the line contains an unbalanced quote.
    """
    if isinstance(line, list | tuple):
        return list(map(str, line))
    try:
        return shlex.split(line)
    except ValueError as error:
        from .faults import UsageError
        raise UsageError(f"unable to tokenize command: {str(error).lower()}") from error


def join_tokens(tokens, /):
    """
    Join words back into a command line, quoting words that need it.
    """
    return shlex.join(tokens)


class FileNameInfo(NamedTuple):
    name: str
    param: str | None
    spread: bool
    extension: str | None


_PARAM_FILE_NAME = re.compile(r"^\[(\.{3})?([a-zA-Z_][\w-]*)\](\.\w+)?$")


def parse_file_name(file_name, /):
    """
    Describe a command file or directory name.

    Returns
    - FileNameInfo(name, param, spread, extension) where `param` is the bound
      parameter name for "[id]"/"[...ids]" segments and None otherwise.

    Examples
    - parse_file_name("[id].py")     -> ("[id]", "id", False, ".py")
    - parse_file_name("[...ids]")    -> ("[...ids]", "ids", True, None)
    - parse_file_name("build.py")    -> ("build", None, False, ".py")
    """
    if match := _PARAM_FILE_NAME.match(file_name):
        spread, param, extension = match.groups()
        return FileNameInfo(remove_file_extension(file_name), param, bool(spread), extension)
    name = remove_file_extension(file_name)
    return FileNameInfo(name, None, False, file_name[len(name):] or None)


def remove_file_extension(file_name, /):
    """
    Strip the last extension of a file name, leaving dot-files untouched.
    """
    return re.sub(r"(?<!^)(?<!\.)\.[^./]+$", "", file_name)


Unset = UnsetType()
"""
Sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but the API
still needs to distinguish “no input” from “explicitly passed None”.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "maybe_await",
    "camel_case",
    "snake_case",
    "split_tokens",
    "join_tokens",
    "parse_file_name",
    "remove_file_extension",

    # Types
    "UnsetType",
    "FileNameInfo",

    # Constants
    "Unset",
)
