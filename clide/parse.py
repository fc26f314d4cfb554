r"""
Clide tokenizer/parser.

parse_command(line, schema) splits a command line into positional tokens and
option values, given an option schema. It is pure: the same line and schema
always produce the same result and nothing outside the result is touched.

Option words
- "--name", "--name=value", "-n", "-n=value"
- "-opt", "-opt=a,b,c" for declared multi-letter keys
- "-abc" clusters when every letter is a declared key
- "--no-name" negates a declared boolean
- "--" ends option scanning; every later word is a token
- negative numbers ("-5", "-1.5e3") are values, never options

Values
- boolean: no argument (an inline "=false" turns it off).
- string/secret: one argument ("" when none follows).
- number: one argument converted to int/float (kept raw when unparsable so
  validation can report it).
- array: every following bare word up to the next option (or exactly nargs
  words); inline values are split on commas; repetitions accumulate.
- nargs > 1: exactly that many following words, as a list.
- unknown options: boolean True under their bare name, so resolution can
  decide later whether they are valid.

Known values are stored under the option key and every declared alias.

Quick example:
    >>> parse_command('foo -a -b=bval -c="c1 c2"', {"a": "boolean", "b": "string", "c": "string"})
    ParsedCommand(tokens=['foo'], options={'a': True, 'b': 'bval', 'c': 'c1 c2'})
"""
import re
from typing import NamedTuple

from .options.option import normalize_options, option_keys
from .options.validate import to_number
from .utils import join_tokens, split_tokens

_OPTION = re.compile(r"^(--?)([^=]+)(?:=(.*))?$", re.DOTALL)
_NEGATIVE_NUMBER = re.compile(r"^-(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")
_TERMINATOR = "--"


class ParsedCommand(NamedTuple):
    tokens: list
    options: dict


class _Span(NamedTuple):
    start: int
    stop: int
    key: str | None
    value: object


def _is_option_word(word):
    return word.startswith("-") and word != "-" and not _NEGATIVE_NUMBER.match(word)


def _coerce(word, option):
    if option.type == "number":
        return to_number(word)
    return word


def _consume(words, index, option, inline):
    """
    Internal: read the value of a known option starting at words[index].

    Returns
    - (stop, value): stop is the index right after the last consumed word.
    """
    if option.type == "boolean":
        if inline is None:
            return index + 1, True
        return index + 1, inline.strip().lower() not in ("false", "0", "no", "off")

    if inline is not None:
        if option.multiple:
            return index + 1, [_coerce(part, option) for part in inline.split(",") if part]
        return index + 1, _coerce(inline, option)

    stop = index + 1
    if option.multiple:
        limit = option.nargs or len(words)
        while stop < len(words) and stop - index - 1 < limit and not _is_option_word(words[stop]):
            stop += 1
        return stop, [_coerce(word, option) for word in words[index + 1:stop]]

    if stop < len(words) and not _is_option_word(words[stop]):
        return stop + 1, _coerce(words[stop], option)
    return stop, ""


def _scan(words, schema):
    """
    Internal: walk the words and yield one _Span per token, option occurrence
    or terminator. Token spans have key None; unknown options carry their
    bare name as key and True as value.
    """
    lookup = {}
    for name, option in schema.items():
        for key in option_keys(name, option):
            lookup.setdefault(key, name)

    index = 0
    while index < len(words):
        word = words[index]

        if word == _TERMINATOR:
            yield _Span(index, index + 1, _TERMINATOR, None)
            for position in range(index + 1, len(words)):
                yield _Span(position, position + 1, None, words[position])
            return

        if not _is_option_word(word) or not (match := _OPTION.match(word)):
            yield _Span(index, index + 1, None, word)
            index += 1
            continue

        prefix, name, inline = match.groups()

        if (key := lookup.get(name)) is not None:
            stop, value = _consume(words, index, schema[key], inline)
            yield _Span(index, stop, key, value)
            index = stop
            continue

        if prefix == "--" and name.startswith("no-") and inline is None:
            if (key := lookup.get(name[3:])) is not None and schema[key].type == "boolean":
                yield _Span(index, index + 1, key, False)
                index += 1
                continue

        if (
            prefix == "-" and len(name) > 1 and
            all(letter in lookup for letter in name) and
            all(schema[lookup[letter]].type == "boolean" for letter in name[:-1])
        ):
            for letter in name[:-1]:
                yield _Span(index, index, lookup[letter], True)
            stop, value = _consume(words, index, schema[lookup[name[-1]]], inline)
            yield _Span(index, stop, lookup[name[-1]], value)
            index = stop
            continue

        yield _Span(index, index + 1, name, True)
        index += 1


def parse_command(line, schema=None, /):
    """
    Parse a command line against an option schema.

    Parameters
    - line: str (or a list of words, taken as already split).
    - schema: mapping of option keys to Options, Option-field mappings or
      type names. Defaults to an empty schema.

    Returns
    - ParsedCommand(tokens, options)

    Raises
    - UsageError: the line has an unbalanced quote.
    """
    schema = normalize_options(schema)
    tokens = []
    values = {}

    for span in _scan(split_tokens(line), schema):
        if span.key == _TERMINATOR:
            continue
        if span.key is None:
            tokens.append(span.value)
            continue
        if (option := schema.get(span.key)) is None:
            values[span.key] = span.value
            continue

        value = span.value
        if option.type == "array" and isinstance(previous := values.get(span.key), list):
            value = previous + value
        for key in (span.key, *option.alias):
            values[key] = value

    return ParsedCommand(tokens, values)


def remove_option_tokens(line, schema, /):
    """
    Remove every occurrence of the schema's options (and the words they
    consume) from a command line, leaving everything else in place.

    Example
    - remove_option_tokens("foo --help bar", {"help": {"type": "boolean"}}) -> "foo bar"
    """
    schema = normalize_options(schema)
    words = split_tokens(line)
    dropped = set()
    for span in _scan(words, schema):
        if span.key in schema:
            dropped.update(range(span.start, span.stop))
    return join_tokens([word for index, word in enumerate(words) if index not in dropped])


__all__ = (
    "ParsedCommand",
    "parse_command",
    "remove_option_tokens",
)
