from .config import ClientConfig, ConfigurationError, load_config

__all__ = ["ClientConfig", "ConfigurationError", "load_config"]
