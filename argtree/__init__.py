__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'argtree'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .settings import *
from .faults import *
from .tokens import *
from .sources import *
from .conditions import *
from .symbols import *
from .suggestions import *
from .parsing import *
from .completions import *
from .validation import *

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

# Load the exposed API of the settings
__all__ += settings.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokenizer
__all__ += tokens.__all__  # type: ignore[attr-defined]
# Load the exposed API of the value sources
__all__ += sources.__all__  # type: ignore[attr-defined]
# Load the exposed API of the conditions
__all__ += conditions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the symbol tree
__all__ += symbols.__all__  # type: ignore[attr-defined]
# Load the exposed API of the typo corrector
__all__ += suggestions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the matcher
__all__ += parsing.__all__  # type: ignore[attr-defined]
# Load the exposed API of the completion engine
__all__ += completions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the validation pipeline
__all__ += validation.__all__  # type: ignore[attr-defined]
