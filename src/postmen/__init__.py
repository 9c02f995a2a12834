"""Python SDK for the Postmen shipping API."""

from .clients.http import ApiError, ParseError, PostmenException, TransportError
from .clients.postmen import Postmen
from .config.config import SDK_VERSION as __version__
from .config.config import ClientConfig, ConfigurationError, load_config

__all__ = [
    "Postmen",
    "ClientConfig",
    "load_config",
    "PostmenException",
    "TransportError",
    "ParseError",
    "ApiError",
    "ConfigurationError",
    "__version__",
]
