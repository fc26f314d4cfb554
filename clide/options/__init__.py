from .option import *
from .validate import *
from .prompt import *
from .getter import *

__all__ = ()

# Load the exposed API of the schema entries
__all__ += option.__all__  # type: ignore[name-defined]
# Load the exposed API of the validators
__all__ += validate.__all__  # type: ignore[name-defined]
# Load the exposed API of the prompts
__all__ += prompt.__all__  # type: ignore[name-defined]
# Load the exposed API of the getters
__all__ += getter.__all__  # type: ignore[name-defined]
