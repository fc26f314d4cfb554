"""
Clide faults (engine errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every engine error, grouped by the
  phase that raises them (resolution, options, schema, lifecycle, delegated).
- ClideError: base type carrying a message plus read-only options (code, title,
  hint, and any context the raiser wants to attach) and knowing how to render
  itself through rich.
- The taxonomy below mirrors who is to blame:
  • UsageError and its subtypes are caused by the user's input (help plugins react to these).
  • OptionsConfigError means a schema contradicts itself, independent of input.
  • ContextNotReadyError / AlreadyStartedError are misuse of the lifecycle API.
  • ClientError has already been shown to the user by the client.

Rendering
- Lowercased, one-sentence messages with an optional hint line.
- Styles can be overridden with a __styles__ mapping in __main__, the program
  name with __prog__, and code labels with __codes__ (see FaultCode.normalize).
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by phase)
    - resolution (111xx)
      • COMMAND_REQUIRED, COMMAND_NOT_FOUND, INVALID_COMMAND_NAME,
        MISSING_EXPORT, SUBCOMMAND_REQUIRED, COMMANDS_DIR_NOT_FOUND
    - options (112xx)
      • UNKNOWN_OPTION, OPTION_REQUIRED, OPTION_CONFLICT, OPTION_DEPENDENCY,
        INVALID_OPTION_TYPE, INVALID_CHOICE, NARGS_MISMATCH, INVALID_OPTION_VALUE
    - schema (113xx)
      • INVALID_OPTIONS_CONFIG
    - lifecycle (114xx)
      • CONTEXT_NOT_READY, ALREADY_STARTED, MALFORMED_INPUT
    - delegated (115xx)
      • DELEGATED_ERROR, CLIENT_ERROR
    """
    # --- resolution errors (111xx) ---
    COMMAND_REQUIRED            = 11101
    COMMAND_NOT_FOUND           = 11102
    INVALID_COMMAND_NAME        = 11103
    MISSING_EXPORT              = 11104
    SUBCOMMAND_REQUIRED         = 11105
    COMMANDS_DIR_NOT_FOUND      = 11106

    # --- option errors (112xx) ---
    UNKNOWN_OPTION              = 11201
    OPTION_REQUIRED             = 11202
    OPTION_CONFLICT             = 11203
    OPTION_DEPENDENCY           = 11204
    INVALID_OPTION_TYPE         = 11205
    INVALID_CHOICE              = 11206
    NARGS_MISMATCH              = 11207
    INVALID_OPTION_VALUE        = 11208

    # --- schema errors (113xx) ---
    INVALID_OPTIONS_CONFIG      = 11301

    # --- lifecycle errors (114xx) ---
    CONTEXT_NOT_READY           = 11401
    ALREADY_STARTED             = 11402
    MALFORMED_INPUT             = 11403

    # --- delegated errors (115xx) ---
    DELEGATED_ERROR             = 11501
    CLIENT_ERROR                = 11502

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ClideError(Exception):
    """
    base engine error.

    options
    - code: FaultCode (defaults to the class' __code__).
    - title: short heading used by the renderer (defaults to the class' __title__).
    - hint: optional one-line suggestion shown under the message.
    - colorful: whether rendering applies styles (defaults to True).
    - any other keyword is kept verbatim for plugins (e.g., token, path, option).
    """
    __code__ = FaultCode.DELEGATED_ERROR
    __title__ = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, type(self).__title__)
        self.options = MappingProxyType(options)
        super().__init__(self.message)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-mark": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = [text("✖ ", "error-mark"), "[ "]
        if prog := getattr(main, "__prog__", None):
            header += [text(prog, "prog-name"), " — "]
        header += [text(self.code.normalize(), "code"), " | ", text(self.title, "error-title"), " ]"]

        renders = [Text.assemble(*header), text(self.message, "error-message")]
        if self.hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))
        return Group(*renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ClientError(ClideError):
    __code__ = FaultCode.CLIENT_ERROR
    __title__ = "client error"


class UsageError(ClideError):
    __code__ = FaultCode.MALFORMED_INPUT
    __title__ = "usage error"


class OptionsError(UsageError):
    __code__ = FaultCode.INVALID_OPTION_VALUE
    __title__ = "invalid option"


class OptionsConfigError(ClideError):
    __code__ = FaultCode.INVALID_OPTIONS_CONFIG
    __title__ = "invalid options config"


class NotFoundError(UsageError):
    __code__ = FaultCode.COMMAND_NOT_FOUND
    __title__ = "command not found"


class CommandRequiredError(UsageError):
    __code__ = FaultCode.COMMAND_REQUIRED
    __title__ = "command required"


class MissingExportError(UsageError):
    __code__ = FaultCode.MISSING_EXPORT
    __title__ = "missing command export"


class RequiredSubcommandError(UsageError):
    __code__ = FaultCode.SUBCOMMAND_REQUIRED
    __title__ = "subcommand required"


class ContextNotReadyError(ClideError):
    __code__ = FaultCode.CONTEXT_NOT_READY
    __title__ = "context not ready"


class AlreadyStartedError(ClideError):
    __code__ = FaultCode.ALREADY_STARTED
    __title__ = "already started"


__all__ = (
    "FaultCode",
    "ClideError",
    "ClientError",
    "UsageError",
    "OptionsError",
    "OptionsConfigError",
    "NotFoundError",
    "CommandRequiredError",
    "MissingExportError",
    "RequiredSubcommandError",
    "ContextNotReadyError",
    "AlreadyStartedError",
)
