"""Base exception for occ-swap.

Concrete errors live next to the code that raises them; the CLI only
needs to catch this one class.
"""


class OccSwapError(Exception):
    """Base class for all errors reported to the user."""
    pass


class ConfigError(OccSwapError):
    """Raised when a file under the config directory cannot be read or written."""
    pass
