"""
Interactive prompting for option values.

The widget is chosen from the option's declared type:

    number   -> "number"   ("select" when choices are declared)
    boolean  -> "toggle"
    array    -> "list"     ("multiselect" when choices are declared)
    secret   -> "password"
    string   -> "text"     ("select" when choices are declared)

The prompt is pre-filled with the option's default (arrays joined by commas).
"""
import logging

from ..faults import OptionsError
from ..utils import Unset, maybe_await
from .validate import normalize_option_value, validate_option_type

logger = logging.getLogger(__name__)


def prompt_type_for(option, /):
    match option.type:
        case "number":
            return "select" if option.choices else "number"
        case "boolean":
            return "toggle"
        case "array":
            return "multiselect" if option.choices else "list"
        case "secret":
            return "password"
        case _:
            return "select" if option.choices else "text"


async def option_prompt(name, option, client, prompt=True, /, *, validate=None, on_cancel=None):
    """
    Ask the user for an option value through the client.

    Parameters
    - name: the key the value was requested under (used in the default message).
    - option: the Option being resolved.
    - client: object exposing an async prompt(**params) method.
    - prompt: True, a message string, or a mapping of prompt parameters
      (message, type, choices, initial) overriding the derived ones.
    - validate: optional callable(value) -> True | str | False used to
      re-ask until the answer is acceptable. Required options default to a
      type check.
    - on_cancel: called (and awaited when needed) when the user cancels
      with Ctrl-C or EOF.

    Returns
    - the normalized answer, or Unset when the prompt was cancelled.
    """
    params = {
        "message": f"enter {name}",
        "type": prompt_type_for(option),
        "choices": tuple(option.choices),
        "initial": ",".join(map(str, option.default)) if isinstance(option.default, list | tuple) else option.default,
    }
    match prompt:
        case str():
            params["message"] = prompt
        case dict():
            params |= prompt

    if validate is None and option.required:
        def validate(value):
            try:
                validate_option_type(name, normalize_option_value(value, option), option)
            except OptionsError as error:
                return error.message
            return True

    try:
        answer = await client.prompt(validate=validate, **params)
    except (KeyboardInterrupt, EOFError):
        logger.debug("prompt for %r cancelled", name)
        if on_cancel is not None:
            await maybe_await(on_cancel())
        return Unset

    if answer == "" and option.default is not None:
        answer = option.default
    return normalize_option_value(answer, option)


__all__ = (
    "prompt_type_for",
    "option_prompt",
)
