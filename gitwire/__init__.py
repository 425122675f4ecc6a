"""gitwire - wire parts of other git repositories into this one, declaratively."""

from gitwire.models import AggregateResult, CheckoutMethod, ConfigEntry, OperationResult
from gitwire.sequence import Mode
from gitwire.wire import GitWire

__version__ = "0.1.0"
__all__ = [
    "GitWire",
    "ConfigEntry",
    "CheckoutMethod",
    "Mode",
    "OperationResult",
    "AggregateResult",
]
