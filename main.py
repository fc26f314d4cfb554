import asyncio
import os

from rich.pretty import pprint

from clide import *


COMMANDS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "demo", "commands")


if __name__ == '__main__':
    result = asyncio.run(run(commands_dir=COMMANDS_DIR, default_command="hello"))
    if result is not None and not isinstance(result, ClideError):
        pprint(result)
