"""
Option value normalization and validation.

Scope
- normalize_option_value(): coerce loosely-typed input (prompt answers,
  programmatic overrides, parser output) into the option's declared shape.
- validate_option_type(): check one value against its declared type, choices
  and nargs.
- validate_options(): validate a whole set of values against a schema in
  independent passes, so callers can validate early (before prompting) or late.

All failures raise OptionsError with a lowercase message naming the option by
its display name (see option_display_name).
"""
import math
import re

from ..faults import FaultCode, OptionsError
from .option import option_display_name, option_keys

_NUMBER = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")


def to_number(text, /):
    """
    Parse a decimal/exponential literal into an int or a float.

    Returns the text unchanged when it is not a number literal.
    """
    if not isinstance(text, str) or not _NUMBER.match(text := text.strip()):
        return text
    if re.fullmatch(r"[-+]?\d+", text):
        return int(text)
    return float(text)


def _normalize_scalar(value, type, /):
    match type:
        case "number" if isinstance(value, str):
            return to_number(value)
        case "boolean" if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        case "string" | "secret" if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
    return value


def normalize_option_value(value, option, /):
    """
    Coerce a value into the declared shape of an option.

    - arrays: a comma-separated string becomes a list of trimmed words, a
      scalar becomes a one-element list, a tuple becomes a list.
    - nargs > 1: a scalar becomes a one-element list and each element is
      coerced to the scalar type.
    - numbers/booleans: string literals are converted when they parse.
    None is returned unchanged.
    """
    if value is None:
        return None
    if option.type == "array":
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        elif not isinstance(value, list | tuple):
            value = [value]
        return [str(element) if isinstance(element, int | float) and not isinstance(element, bool) else element
                for element in value]
    if (option.nargs or 1) > 1:
        if not isinstance(value, list | tuple):
            value = [value]
        return [_normalize_scalar(element, option.type) for element in value]
    return _normalize_scalar(value, option.type)


def _check_scalar(display, value, option, /):
    match option.type:
        case "string" | "secret":
            if not isinstance(value, str):
                raise OptionsError(f'option "{display}" must be a string', code=FaultCode.INVALID_OPTION_TYPE)
        case "number":
            if not isinstance(value, int | float) or isinstance(value, bool) or math.isnan(value):
                raise OptionsError(f'option "{display}" must be a number', code=FaultCode.INVALID_OPTION_TYPE)
        case "boolean":
            if not isinstance(value, bool):
                raise OptionsError(f'option "{display}" must be a boolean', code=FaultCode.INVALID_OPTION_TYPE)
    if option.choices and option.type != "boolean" and value not in option.choices:
        raise OptionsError(
            f'invalid choice {value!r} for option "{display}"',
            code=FaultCode.INVALID_CHOICE,
            hint=f"choose from {", ".join(map(str, option.choices))}",
        )


def validate_option_type(name, value, option, /):
    """
    Validate a single option value. None (absent) is always accepted.

    Raises
    - OptionsError: wrong primitive type, empty array, element outside of
      choices, or a nargs count mismatch (expected vs. received).
    """
    if value is None:
        return
    display = option_display_name(name, option)

    if option.type == "array":
        if not isinstance(value, list | tuple):
            raise OptionsError(f'option "{display}" must be an array', code=FaultCode.INVALID_OPTION_TYPE)
        if not value:
            raise OptionsError(f'option "{display}" requires at least one value', code=FaultCode.INVALID_OPTION_TYPE)
        for element in value:
            if not isinstance(element, str):
                raise OptionsError(f'option "{display}" must be an array of strings', code=FaultCode.INVALID_OPTION_TYPE)
            if option.choices and element not in option.choices:
                raise OptionsError(
                    f'invalid choice {element!r} for option "{display}"',
                    code=FaultCode.INVALID_CHOICE,
                    hint=f"choose from {", ".join(map(str, option.choices))}",
                )
        if option.nargs and len(value) != option.nargs:
            raise OptionsError(
                f'option "{display}" expects {option.nargs} value(s), received {len(value)}',
                code=FaultCode.NARGS_MISMATCH,
            )
        return

    if (option.nargs or 1) > 1:
        received = len(value) if isinstance(value, list | tuple) else 1
        if received != option.nargs:
            raise OptionsError(
                f'option "{display}" expects {option.nargs} value(s), received {received}',
                code=FaultCode.NARGS_MISMATCH,
            )
        for element in value:
            _check_scalar(display, element, option)
        return

    _check_scalar(display, value, option)


def validate_options(values, schema, /, *, type=True, required=True, conflicts=True, requires=True):
    """
    Validate option values against a schema.

    Passes (each switched on/off independently)
    - type: every present value matches its declared type/choices/nargs.
    - required: every required option has a value under one of its keys.
    - conflicts: no present option has one of its declared conflicts present.
    - requires: every present option has all of its declared requirements present.

    Values may be keyed by any key variant (canonical, alias, camelCase,
    snake_case). Relation errors name the *other* option by its display name.

    Raises
    - OptionsError: on the first violation found.
    """
    present = {}
    for name, option in schema.items():
        for key in option_keys(name, option):
            if values.get(key) is not None:
                present[name] = values[key]
                break

    def resolve(key):
        for name, option in schema.items():
            if key in option_keys(name, option):
                return name, option
        return key, None

    def display(key):
        name, option = resolve(key)
        return option_display_name(name, option) if option is not None else key

    def has(key):
        name, option = resolve(key)
        if option is None:
            return values.get(key) is not None
        return name in present

    for name, option in schema.items():
        if type and name in present:
            validate_option_type(name, present[name], option)

        if required and option.required and name not in present:
            raise OptionsError(
                f'option "{option_display_name(name, option)}" is required',
                code=FaultCode.OPTION_REQUIRED,
            )

        if name not in present:
            continue

        if conflicts:
            for conflict in option.conflicts:
                if has(conflict):
                    raise OptionsError(
                        f'option "{display(conflict)}" conflicts with option "{option_display_name(name, option)}"',
                        code=FaultCode.OPTION_CONFLICT,
                    )

        if requires:
            for dependency in option.requires:
                if not has(dependency):
                    raise OptionsError(
                        f'option "{option_display_name(name, option)}" requires option "{display(dependency)}"',
                        code=FaultCode.OPTION_DEPENDENCY,
                    )


__all__ = (
    "to_number",
    "normalize_option_value",
    "validate_option_type",
    "validate_options",
)
