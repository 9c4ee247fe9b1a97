"""Error code constants for extcompat input handling.

These constants prevent stringly-typed error codes and let callers of
extcompat.api tell the fatal input failures apart.
"""

from enum import Enum


class InputCode(str, Enum):
    """Fatal input error codes."""

    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    MAIN_NOT_FOUND = "MAIN_NOT_FOUND"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_PARSE_ERROR = "CONFIG_PARSE_ERROR"
    REFERENCE_NOT_FOUND = "REFERENCE_NOT_FOUND"
