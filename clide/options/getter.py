"""
Lazy, prompt-capable option getters.

An OptionsGetter is built from an option schema and the parsed option values.
Every key variant of every option (key, aliases, camelCase and snake_case of
each) answers with an async accessor:

    >>> getter = create_options_getter({"dry-run": {"type": "boolean", "alias": ["d"]}}, {"d": True})
    >>> await getter.dry_run()          # same as getter["dry-run"](), getter.dryRun(), getter.d()
    True

Resolution order on first read: the parsed value under any variant, then an
interactive prompt (only when the caller passes a prompt spec), then the
declared default. A required option that is still absent raises OptionsError.
The resolved value is validated, cached under the canonical key (so later
reads never re-prompt) and written back under every variant of `values`.

Names that clash with the getter's own attributes (get, set, values) are
reachable through item access: getter["values"]().
"""
import logging
from types import MappingProxyType

from ..client import Client
from ..faults import FaultCode, OptionsError
from ..utils import camel_case, coalesce
from .option import normalize_options, option_display_name, option_keys
from .prompt import option_prompt
from .validate import normalize_option_value, validate_option_type

logger = logging.getLogger(__name__)


class OptionGetter:
    """
    Async accessor for one option, bound to the key variant it was requested by.

    Call it with an optional prompt spec (True, a message, or a mapping of
    prompt parameters) and an optional validate callable used while prompting.
    """

    def __init__(self, getter, name, /):
        self._getter = getter
        self.name = name

    async def __call__(self, prompt=None, /, *, validate=None):
        return await self._getter._resolve(self.name, prompt, validate)

    def __repr__(self):
        return f"option-getter(name={self.name!r})"


class OptionsGetter:
    """
    Per-execution option accessor.

    Parameters
    - schema: option schema (Options, Option-field mappings or type names).
    - values: parsed option values keyed by any key variant.
    - client: client used for prompting (a default Client is created lazily).
    - on_prompt_cancel: called when the user cancels a prompt.
    """

    def __init__(self, schema, values=None, /, *, client=None, on_prompt_cancel=None):
        self._schema = normalize_options(schema)
        self._client = client
        self._on_prompt_cancel = on_prompt_cancel
        self._keys = {}
        self._given = {}
        self._values = {}
        self._cache = {}

        values = dict(values or {})
        for name, option in self._schema.items():
            keys = option_keys(name, option)
            for key in keys:
                self._keys.setdefault(key, name)
            given = next((values[key] for key in keys if values.get(key) is not None), None)
            self._given[name] = given
            for key in keys:
                self._values[key] = given if given is not None else option.default

        # Keys outside of the schema (e.g., unknown flags) stay inspectable.
        for key, value in values.items():
            self._values.setdefault(key, value)

    @property
    def schema(self):
        return MappingProxyType(self._schema)

    @property
    def values(self):
        """
        Read-only view of every key variant and its current value (parsed,
        default, or resolved). Reading it never prompts or validates.
        """
        return MappingProxyType(self._values)

    def __getitem__(self, name):
        if name not in self._keys:
            raise KeyError(name)
        return OptionGetter(self, name)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"unknown option {name!r}") from None

    def __contains__(self, name):
        return name in self._keys

    def __iter__(self):
        return iter(self._schema)

    def __len__(self):
        return len(self._schema)

    async def get(self, *names):
        """
        Resolve several options at once.

        Returns
        - dict keyed by every requested name and its camelCase variant.
        """
        result = {}
        for name in names:
            value = await self[name]()
            result[name] = value
            result[camel_case(name)] = value
        return result

    def set(self, name, value, /):
        """
        Override an option value under all of its key variants. The cached
        value is dropped so the override is what the next read returns.
        """
        if (key := self._keys.get(name)) is None:
            self._values[name] = value
            return
        option = self._schema[key]
        value = normalize_option_value(value, option)
        self._given[key] = value
        self._cache.pop(key, None)
        for variant in option_keys(key, option):
            self._values[variant] = value if value is not None else option.default

    async def _resolve(self, name, prompt, validate):
        key = self._keys[name]
        if key in self._cache:
            return self._cache[key]
        option = self._schema[key]

        value = normalize_option_value(self._given[key], option)
        if value is None and prompt:
            if self._client is None:
                self._client = Client()
            value = coalesce(await option_prompt(
                name,
                option,
                self._client,
                prompt,
                validate=validate,
                on_cancel=self._on_prompt_cancel,
            ))
        if value is None:
            value = normalize_option_value(option.default, option)
        if value is None:
            if option.required:
                raise OptionsError(
                    f'option "{option_display_name(key, option)}" is required',
                    code=FaultCode.OPTION_REQUIRED,
                )
            return None

        validate_option_type(key, value, option)
        self._cache[key] = value
        for variant in option_keys(key, option):
            self._values[variant] = value
        logger.debug("resolved option %r (requested as %r)", key, name)
        return value


def create_options_getter(schema, values=None, /, *, client=None, on_prompt_cancel=None):
    """
    Build an OptionsGetter for a schema and its parsed values.
    """
    return OptionsGetter(schema, values, client=client, on_prompt_cancel=on_prompt_cancel)


__all__ = (
    "OptionGetter",
    "OptionsGetter",
    "create_options_getter",
)
