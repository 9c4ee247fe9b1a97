"""extcompat: VS Code extension compatibility checks against the Theia plugin API."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("extcompat")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from extcompat.api import check_package
from extcompat.contracts import CompatibilityReport
from extcompat.codes import InputCode

__all__ = [
    "__version__",
    "check_package",
    "CompatibilityReport",
    "InputCode",
]
