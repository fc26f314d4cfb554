r"""
Clide option schema entries.

Overview
- Option: one declared option (type, aliases, default, requirements, relations).
  Metadata is sanitized on construction; malformed metadata raises TypeError or
  ValueError, and self-contradictory entries raise OptionsConfigError.
- normalize_options(): normalize a schema written as Options, plain mappings or bare type
  names into a dict of Options.
- merge_options(): merge two schemas by key (aliases are unioned, never replaced).
- option_keys() / option_display_name(): how an option is addressed and named.

Types
- "string", "secret": one word.
- "number": int or float.
- "boolean": presence flag.
- "array": one or more words (list of str).
A positive `nargs` above one turns a scalar option into a fixed-size list.

Quick example:
    >>> schema = normalize_options({
    ...     "verbose": {"type": "boolean", "alias": ["v"]},
    ...     "name": Option("string", required=True),
    ...     "tags": "array",
    ... })
    >>> option_keys("dry-run", Option("boolean"))
    ['dry-run', 'dryRun', 'dry_run']
"""
import builtins
import functools
import operator
import re
from collections.abc import Iterable, Mapping, Set

from ..faults import OptionsConfigError
from ..utils import Unset, camel_case, mirror, rename, snake_case

TYPES = ("string", "number", "boolean", "array", "secret")


class SchemaType(type):
    """
    Metaclass giving schema classes stable representations and read-only
    properties for every name listed in __introspectable__.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_strings(cls, metadata, field, /):
    """
    Internal: validate a collection of names (alias/requires/conflicts) and
    normalize it to a tuple. A lone string is accepted as a single name.
    """
    if isinstance(names := metadata[field], str):
        names = (names,)
    if not isinstance(names, Iterable):
        raise TypeError(f"{cls.__typename__} {field!r} must be an iterable of strings")
    names = tuple(names)
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} {field!r} must contain only strings")
        if not name or name.startswith("-"):
            raise ValueError(f"{cls.__typename__} {field!r} must contain bare option keys (no leading dashes)")
    if len(set(names)) != len(names):
        raise ValueError(f"{cls.__typename__} {field!r} cannot contain duplicates")
    metadata[field] = names


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate option metadata in place.

    Raises
    - TypeError: a field has the wrong type.
    - ValueError: a field has the right type but an unusable value.
    """
    if not isinstance(type := metadata["type"], str):
        raise TypeError(f"{cls.__typename__} 'type' must be a string")
    if type not in TYPES:
        raise ValueError(f"{cls.__typename__} 'type' must be one of {", ".join(map(repr, TYPES))}")

    for field in ("alias", "requires", "conflicts"):
        _sanitize_strings(cls, metadata, field)

    if (nargs := metadata["nargs"]) is not None:
        if not isinstance(nargs, int) or isinstance(nargs, bool):
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer")
        if nargs < 1:
            raise ValueError(f"{cls.__typename__} 'nargs' must be a positive integer")

    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be iterable")
    if not isinstance(choices, Set) and len(set(choices := tuple(choices))) != len(choices):
        raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
    metadata["choices"] = tuple(choices)

    if not isinstance(description := metadata["description"], str | None):
        raise TypeError(f"{cls.__typename__} 'description' must be a string")
    metadata["description"] = description.strip() if description else None

    metadata["required"] = bool(metadata["required"])


class Option(metaclass=SchemaType):
    """
    Declared option (one entry of an option schema).

    Parameters
    - type: "string" | "number" | "boolean" | "array" | "secret" (default "string").
    - alias: alternate keys (e.g., ["v"] for "verbose").
    - default: value used when the option is absent (None means no default).
    - required: the option must end up with a value.
    - choices: allowed values (every element for arrays).
    - nargs: fixed number of values to capture.
    - requires: keys that must be present whenever this option is.
    - conflicts: keys that must be absent whenever this option is present.
    - description: short help text for renderers.

    Raises
    - OptionsConfigError: required together with requires/conflicts.
    """

    __introspectable__ = (
        "type",
        "alias",
        "default",
        "required",
        "choices",
        "nargs",
        "requires",
        "conflicts",
        "description",
    )

    def __init__(
            self,
            type="string",
            /,
            *,
            alias=(),
            default=None,
            required=False,
            choices=(),
            nargs=None,
            requires=(),
            conflicts=(),
            description=None,
    ):
        metadata = {
            "type": type,
            "alias": alias,
            "default": default,
            "required": required,
            "choices": choices,
            "nargs": nargs,
            "requires": requires,
            "conflicts": conflicts,
            "description": description,
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _check_relations(metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def multiple(self):
        """
        Whether the parsed value is a list (arrays and nargs > 1).
        """
        return self._type == "array" or (self._nargs or 1) > 1

    def __eq__(self, other):
        if not isinstance(other, Option):
            return NotImplemented
        return all(getattr(self, "_" + name) == getattr(other, "_" + name) for name in Option.__introspectable__)

    __hash__ = None

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fields = {name: getattr(self, "_" + name) for name in Option.__introspectable__} | overrides
        return type(self)(fields.pop("type"), **fields)


def _check_relations(metadata, name=Unset, /):
    """
    Internal: reject entries that can never be satisfied whatever the input.
    """
    label = "option" if name is Unset else f'option "{name}"'
    if metadata.get("required") and metadata.get("conflicts"):
        raise OptionsConfigError(f"{label} cannot be required and conflict with other options")
    if metadata.get("required") and metadata.get("requires"):
        raise OptionsConfigError(f"{label} cannot be required and require other options")


def validate_option_config(name, entry, /):
    """
    Validate one schema entry (an Option or a mapping of Option fields)
    without constructing it.

    Raises
    - OptionsConfigError: the entry is required and also declares conflicts
      or requires, which no input could ever satisfy.
    """
    if isinstance(entry, Option):
        entry = {"required": entry.required, "conflicts": entry.conflicts, "requires": entry.requires}
    _check_relations(entry, name)


def normalize_options(schema=None, /, **entries):
    """
    Normalize a schema into a dict of Option instances.

    Accepted entries
    - Option instances (kept as-is).
    - Mappings of Option fields (e.g., {"type": "boolean", "alias": ["v"]}).
    - Bare type names (e.g., "boolean").

    Raises
    - OptionsConfigError: an entry is self-contradictory (named in the message).
    - TypeError / ValueError: an entry is malformed.
    """
    normalized = {}
    for name, entry in {**(schema or {}), **entries}.items():
        if not isinstance(name, str) or not name or name.startswith("-"):
            raise ValueError(f"option keys must be non-empty bare strings, got {name!r}")
        match entry:
            case Option():
                normalized[name] = entry
            case str():
                normalized[name] = Option(entry)
            case Mapping():
                validate_option_config(name, entry)
                fields = dict(entry)
                normalized[name] = Option(fields.pop("type", "string"), **fields)
            case _:
                raise TypeError(f"option {name!r} must be an Option, a mapping or a type name")
    return normalized


def merge_options(base, extra, /):
    """
    Merge two schemas by key into a new dict.

    An option declared in both keeps the union of its alias lists (earlier
    aliases first); every other field takes the later declaration's value.
    """
    merged = dict(base)
    for name, option in normalize_options(extra).items():
        if (previous := merged.get(name)) is not None:
            alias = previous.alias + [alias for alias in option.alias if alias not in previous.alias]
            option = option.__replace__(alias=alias)
        merged[name] = option
    return merged


def option_keys(name, option, /):
    """
    Every key an option answers to: the key, its aliases, and the camelCase
    and snake_case variant of each, in that order and without duplicates.
    """
    keys = [name, *option.alias]
    return list(dict.fromkeys(keys + list(map(camel_case, keys)) + list(map(snake_case, keys))))


def option_display_name(name, option, /):
    """
    Human-readable name of an option: the key when longer than one character,
    otherwise its first alias longer than one character, otherwise the key.
    """
    if len(name) > 1:
        return name
    return next((alias for alias in option.alias if len(alias) > 1), name)


__all__ = (
    "TYPES",
    "Option",
    "normalize_options",
    "merge_options",
    "option_keys",
    "option_display_name",
    "validate_option_config",
)

del SchemaType
