"""
Console client used by the engine to talk to the user.

The client is deliberately thin: it prints through rich consoles and asks
questions through rich.prompt. Plugins that want a different look replace the
client on the context rather than patching the engine.

Prompt types
- text, password, number, toggle, select, list, multiselect
  (see clide.options.prompt for how option types map onto these).
"""
import asyncio
import logging

from rich.console import Console
from rich.prompt import Confirm, FloatPrompt, Prompt
from rich.text import Text

from .faults import ClideError, ClientError

logger = logging.getLogger(__name__)


class Client:
    """
    Rich-backed console client.

    Parameters
    - console: Console used for regular output (defaults to stdout).
    - error_console: Console used for warnings and errors (defaults to stderr).
    """

    def __init__(self, console=None, error_console=None):
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)

    def log(self, *messages):
        self.console.print(*messages)

    def warn(self, *messages):
        self.error_console.print(Text("⚠ ", "bold #FFB400"), *messages)

    def error(self, error):
        """
        Render an error and return it as a ClientError so callers can return
        it without showing it twice.
        """
        if not isinstance(error, ClideError):
            error = ClideError(str(error))
        self.error_console.print(error)
        if isinstance(error, ClientError):
            return error
        return ClientError(error.message, **(dict(error.options) | {"code": error.code, "title": error.title}))

    async def prompt(self, *, message, type="text", choices=(), initial=None, validate=None):
        """
        Ask a question and return the answer.

        The blocking rich prompt runs in a worker thread. Cancellation
        (KeyboardInterrupt / EOFError) propagates to the caller.
        """
        logger.debug("prompting (%s): %s", type, message)
        return await asyncio.to_thread(self._ask, message, type, list(choices), initial, validate)

    def _ask(self, message, type, choices, initial, validate):
        default = ... if initial is None else initial
        while True:
            match type:
                case "toggle":
                    answer = Confirm.ask(message, default=bool(initial), console=self.console)
                case "number":
                    answer = FloatPrompt.ask(message, default=default, console=self.console)
                    if isinstance(answer, float) and answer.is_integer():
                        answer = int(answer)
                case "password":
                    answer = Prompt.ask(message, password=True, default=default, console=self.console)
                case "select":
                    answer = Prompt.ask(message, choices=list(map(str, choices)), default=default, console=self.console)
                case "list" | "multiselect":
                    if type == "multiselect":
                        message = f"{message} [{", ".join(map(str, choices))}]"
                    raw = Prompt.ask(message, default=default, console=self.console)
                    answer = [part.strip() for part in str(raw).split(",") if part.strip()]
                    if type == "multiselect" and (invalid := [part for part in answer if part not in choices]):
                        self.warn(f"invalid choice(s): {", ".join(invalid)}")
                        continue
                case _:
                    answer = Prompt.ask(message, default=default, console=self.console)

            if validate is None:
                return answer
            match validate(answer):
                case True:
                    return answer
                case str() as reason:
                    self.warn(reason)
                case _:
                    self.warn("invalid value")


__all__ = (
    "Client",
)
