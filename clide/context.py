"""
Clide context: the per-invocation lifecycle orchestrator.

Phases
    uninitialized -> plugins initialized -> resolved -> parsed -> ready
    then execute() any number of times (executing <-> idle)

- prepare() is idempotent. It runs every plugin's init(context), resolves the
  whole command chain (merging each link's option schema into the context's
  schema as it is discovered), then parses the command line once against the
  fully merged schema.
- execute(initial_data) runs a fresh State over the resolved chain and stores
  the outcome in context.result, overwriting the previous one.
- Errors escaping any phase are funneled through throw(), which gives the
  `error` hook first refusal; exit() gives the `before_exit` hook the same.

Example:
    context = Context("deploy staging --force", "/path/to/commands")
    await context.prepare()
    await context.execute({"user": "me"})
    context.result
"""
import logging
from types import MappingProxyType

from .client import Client
from .faults import ClideError, ContextNotReadyError, RequiredSubcommandError
from .hooks import Hook, HookPayload, HookRegistry
from .options import merge_options, normalize_options
from .parse import parse_command
from .plugin import PluginInfo
from .resolve import load_command_unit, resolve_command
from .state import State
from .utils import Unset, maybe_await

logger = logging.getLogger(__name__)


class Context:
    """
    Per-invocation context shared by plugins, hooks and command handlers.

    Parameters
    - command_string: the command line being run.
    - commands_dir: root directory of the command tree.
    - client: Client used for output and prompts (a new one by default).
    - hooks: HookRegistry (a new one by default).
    - plugins: plugins initialized by prepare(), in order.
    - options: extra option schema merged into every resolution.
    - parse_fn / resolve_fn / load_fn: injectable parser, resolver and unit loader.
    """

    def __init__(
            self,
            command_string,
            commands_dir,
            /,
            *,
            client=None,
            hooks=None,
            plugins=(),
            options=None,
            parse_fn=parse_command,
            resolve_fn=resolve_command,
            load_fn=load_command_unit,
    ):
        self.command_string = command_string
        self.commands_dir = commands_dir
        self.client = client or Client()
        self.hooks = hooks if hooks is not None else HookRegistry()

        self._plugins = tuple(plugins)
        self._plugin_infos = {plugin.name: PluginInfo.of(plugin, False) for plugin in self._plugins}
        self._options = normalize_options(options)
        self._parse_fn = parse_fn
        self._resolve_fn = resolve_fn
        self._load_fn = load_fn
        self._resolved_commands = []
        self._parsed_options = {}
        self._result = None
        self._is_resolved = False
        self._is_parsed = False
        self._is_ready = False

    @classmethod
    async def create(cls, command_string, commands_dir, /, **options):
        """
        Build a context and prepare it.
        """
        context = cls(command_string, commands_dir, **options)
        await context.prepare()
        return context

    @property
    def options(self):
        """
        The merged option schema (context options plus every resolved link's).
        """
        return MappingProxyType(self._options)

    @property
    def parsed_options(self):
        return MappingProxyType(self._parsed_options)

    @property
    def resolved_commands(self):
        return tuple(self._resolved_commands)

    @property
    def plugins(self):
        """
        Frozen PluginInfo records keyed by plugin name.
        """
        return MappingProxyType(self._plugin_infos)

    @property
    def result(self):
        return self._result

    @property
    def is_ready(self):
        return self._is_ready

    def add_options(self, schema, /):
        """
        Merge an option schema into the context's schema.
        """
        self._options = merge_options(self._options, schema)

    def parse_command(self, command_string=Unset, schema=None, /):
        """
        Parse a command line with the configured parser against the context
        schema augmented with `schema`. Nothing on the context changes.
        """
        if command_string is Unset:
            command_string = self.command_string
        return self._parse_fn(command_string, merge_options(self._options, schema or {}))

    def resolve_command(self, command_string=Unset, commands_dir=Unset, /):
        """
        Resolve one link with the configured resolver. Nothing on the context
        changes.
        """
        return self._resolve_fn(
            self.command_string if command_string is Unset else command_string,
            self.commands_dir if commands_dir is Unset else commands_dir,
            parse_fn=self.parse_command,
            load_fn=self._load_fn,
        )

    async def prepare(self):
        """
        Initialize plugins, resolve the command chain and parse the options.

        Errors are funneled through throw(). After an ignored error the later
        phases still run, so a missing subcommand still gets its options
        parsed, and the context ends up ready.
        """
        if self._is_ready:
            return
        try:
            for plugin in self._plugins:
                if self._plugin_infos[plugin.name].is_ready:
                    continue
                is_ready = await maybe_await(plugin.init(self))
                self._plugin_infos[plugin.name] = PluginInfo.of(plugin, is_ready)
                logger.debug("plugin %r initialized (ready=%r)", plugin.name, bool(is_ready))
            await self._resolve()
        except Exception as error:
            await self.throw(error)
        else:
            if self._resolved_commands and self._resolved_commands[-1].command.requires_subcommand:
                await self.throw(RequiredSubcommandError(
                    f'subcommand required for command "{self.command_string}"',
                    command=self._resolved_commands[-1].command_name,
                ))
        try:
            await self._parse()
        except Exception as error:
            await self.throw(error)
        self._is_ready = True

    async def execute(self, initial_data=None, /):
        """
        Run the resolved chain in a fresh State and store its final data in
        `result`.

        Raises
        - ContextNotReadyError: prepare() has not completed (unless a
          before_execute handler skipped the execution).
        """
        state = State(self, initial_data=initial_data)
        skipped = False
        result = initial_data

        def set_initial_data(value):
            nonlocal initial_data, result
            initial_data = result = value

        def set_result_and_skip(value):
            nonlocal result, skipped
            result, skipped = value, True

        def skip():
            nonlocal skipped
            skipped = True

        await self.hooks.call(Hook.BEFORE_EXECUTE, HookPayload(
            context=self,
            initial_data=initial_data,
            state=state,
            set_initial_data=set_initial_data,
            set_result_and_skip=set_result_and_skip,
            skip=skip,
        ))

        if not skipped and not self._is_ready:
            await self.throw(ContextNotReadyError(
                "context is not ready",
                hint="call prepare() before execute()",
            ))

        if not skipped:
            try:
                result = await state.start(initial_data)
            except Exception as error:
                result = self._result = None
                await self.throw(error)

        def set_result(value):
            nonlocal result
            result = value

        await self.hooks.call(Hook.AFTER_EXECUTE, HookPayload(
            context=self,
            state=state,
            result=result,
            set_result=set_result,
        ))
        self._result = result
        return result

    async def throw(self, error, /):
        """
        Give the `error` hook a chance to replace or ignore an error, then
        raise it (as a ClideError) unless ignored.
        """
        ignored = False

        def set_error(value):
            nonlocal error
            error = value

        def ignore():
            nonlocal ignored
            ignored = True

        await self.hooks.call(Hook.ERROR, HookPayload(context=self, error=error, set_error=set_error, ignore=ignore))

        if ignored:
            logger.debug("error ignored by a hook: %r", error)
            return
        if isinstance(error, ClideError):
            raise error
        raise ClideError(str(error) or type(error).__name__, cause=error) from error

    async def exit(self, code=0, message=None, /):
        """
        Request process termination.

        The `before_exit` hook may change the code or message, or cancel the
        exit entirely. Otherwise the message is logged (code 0) or reported as
        an error, and SystemExit(code) is raised.
        """
        cancelled = False

        def set_code(value):
            nonlocal code
            code = value

        def set_message(value):
            nonlocal message
            message = value

        def cancel():
            nonlocal cancelled
            cancelled = True

        await self.hooks.call(Hook.BEFORE_EXIT, HookPayload(
            context=self,
            code=code,
            message=message,
            set_code=set_code,
            set_message=set_message,
            cancel=cancel,
        ))

        if cancelled:
            logger.debug("exit(%r) cancelled by a hook", code)
            return
        if message:
            if code == 0:
                self.client.log(message)
            else:
                self.client.error(message)
        raise SystemExit(code)

    def _add_resolved_commands(self, resolved_commands, /):
        for resolved in resolved_commands:
            self._resolved_commands.append(resolved)
            if resolved.command.options:
                self.add_options(resolved.command.options)

    async def _resolve(self):
        """
        Internal: resolve the whole chain, link by link, through the resolve hooks.
        """
        if self._is_resolved:
            return
        skipped = False

        def set_resolve_fn(value):
            self._resolve_fn = value

        def set_parse_fn(value):
            self._parse_fn = value

        def skip():
            nonlocal skipped
            skipped = True

        await self.hooks.call(Hook.BEFORE_RESOLVE, HookPayload(
            context=self,
            command_string=self.command_string,
            commands_dir=self.commands_dir,
            set_resolve_fn=set_resolve_fn,
            set_parse_fn=set_parse_fn,
            add_resolved_commands=self._add_resolved_commands,
            skip=skip,
        ))

        pending = None if skipped else await maybe_await(self.resolve_command())

        while pending is not None:
            self._add_resolved_commands([pending])
            logger.debug("resolved command %r", pending.command_name)
            if pending.resolve_next is None:
                break

            await self.hooks.call(Hook.BEFORE_RESOLVE_NEXT, HookPayload(
                context=self,
                command_string=pending.remaining_command_string,
                commands_dir=pending.subcommands_dir,
                last_resolved=pending,
                set_resolve_fn=set_resolve_fn,
                set_parse_fn=set_parse_fn,
                add_resolved_commands=self._add_resolved_commands,
                skip=skip,
            ))
            if skipped:
                break
            pending = await maybe_await(self.resolve_command(
                pending.remaining_command_string,
                pending.subcommands_dir,
            ))

        await self.hooks.call(Hook.AFTER_RESOLVE, HookPayload(
            context=self,
            resolved_commands=self.resolved_commands,
            add_resolved_commands=self._add_resolved_commands,
        ))

        self._is_resolved = True

    async def _parse(self):
        """
        Internal: parse the command line once against the merged schema.
        """
        if self._is_parsed:
            return

        def set_parse_fn(value):
            self._parse_fn = value

        def set_parsed_options_and_skip(value):
            self._parsed_options = dict(value)
            self._is_parsed = True

        def skip():
            self._is_parsed = True

        await self.hooks.call(Hook.BEFORE_PARSE, HookPayload(
            context=self,
            command_string=self.command_string,
            options_config=self.options,
            set_parse_fn=set_parse_fn,
            set_parsed_options_and_skip=set_parsed_options_and_skip,
            skip=skip,
        ))

        if not self._is_parsed:
            parsed = await maybe_await(self.parse_command())
            self._parsed_options = dict(parsed.options)
            self._is_parsed = True

        def set_parsed_options(value):
            self._parsed_options = dict(value)

        await self.hooks.call(Hook.AFTER_PARSE, HookPayload(
            context=self,
            parsed_options=self.parsed_options,
            set_parsed_options=set_parsed_options,
        ))


__all__ = (
    "Context",
)
