__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'clide'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .client import *
from .command import *
from .context import *
from .faults import *
from .hooks import *
from .options import *
from .parse import *
from .plugin import *
from .resolve import *
from .run import *
from .state import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the client
__all__ += client.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command units (the command() factory shadows its module)
__all__ += __import__("sys").modules[__name__ + ".command"].__all__
# Load the exposed API of the context
__all__ += context.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the hooks
__all__ += hooks.__all__  # type: ignore[attr-defined]
# Load the exposed API of the options
__all__ += options.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser
__all__ += parse.__all__  # type: ignore[attr-defined]
# Load the exposed API of the plugins
__all__ += plugin.__all__  # type: ignore[attr-defined]
# Load the exposed API of the resolver
__all__ += resolve.__all__  # type: ignore[attr-defined]
# Load the exposed API of the runner (run() shadows its module)
__all__ += __import__("sys").modules[__name__ + ".run"].__all__
# Load the exposed API of the state
__all__ += state.__all__  # type: ignore[attr-defined]
