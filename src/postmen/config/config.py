import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

SDK_NAME = "python-sdk"
SDK_VERSION = "1.0.0"

DEFAULT_DOMAIN = "postmen.com"
DEFAULT_TIMEOUT = 30
DEFAULT_RETRY_DELAY = 2
DEFAULT_MAX_ATTEMPTS = 5

OPTION_KEYS = ("retry", "safe", "proxy", "endpoint", "timeout")
PROXY_KEYS = ("host", "port", "username", "password")
TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """Raised when client configuration is missing or invalid."""

    pass


@dataclass(frozen=True)
class ClientConfig:
    api_key: str = ""
    region: str = ""
    retry: bool = False
    safe: bool = False
    proxy: Optional[Dict[str, Any]] = None
    endpoint: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    retry_delay: int = DEFAULT_RETRY_DELAY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay must not be negative")
        if self.proxy is not None:
            validate_proxy(self.proxy)

    @property
    def base_url(self) -> str:
        if self.endpoint:
            return self.endpoint.rstrip("/")
        return f"https://{self.region}-api.{DEFAULT_DOMAIN}"

    @classmethod
    def from_options(
        cls, api_key: str = "", region: str = "", options: Optional[Mapping[str, Any]] = None
    ) -> "ClientConfig":
        """Build a config from the constructor's options map.

        Args:
            api_key: The Postmen API key; empty means no key header is sent.
            region: The API region, e.g. "sandbox" or "production".
            options: Optional map with any of the keys in OPTION_KEYS.

        Returns:
            A ClientConfig instance.

        Raises:
            ConfigurationError: If the options map has unknown keys.
        """
        options = dict(options or {})
        unknown = sorted(set(options) - set(OPTION_KEYS))
        if unknown:
            raise ConfigurationError(f"Unknown client options: {', '.join(unknown)}")
        return cls(
            api_key=api_key or "",
            region=region or "",
            retry=bool(options.get("retry", False)),
            safe=bool(options.get("safe", False)),
            proxy=options.get("proxy"),
            endpoint=options.get("endpoint"),
            timeout=options.get("timeout", DEFAULT_TIMEOUT),
        )


def validate_proxy(proxy: Mapping[str, Any]) -> None:
    missing = [key for key in ("host", "port") if not proxy.get(key)]
    if missing:
        raise ConfigurationError(f"Proxy settings missing: {', '.join(missing)}")
    unknown = sorted(set(proxy) - set(PROXY_KEYS))
    if unknown:
        raise ConfigurationError(f"Unknown proxy settings: {', '.join(unknown)}")


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in TRUTHY


def load_config(path: Optional[str] = None) -> ClientConfig:
    """Load client configuration from a YAML file and the environment.

    Values from the environment (including a local .env file) take
    precedence over the YAML file.

    Args:
        path: Optional YAML file path. Falls back to POSTMEN_CONFIG.

    Returns:
        A validated ClientConfig instance.

    Raises:
        ConfigurationError: If the YAML document is not a mapping or has unknown keys.
        FileNotFoundError: If the YAML configuration file is not found.
        yaml.YAMLError: If the YAML file contains invalid syntax.
    """
    load_dotenv()

    path = path or os.getenv("POSTMEN_CONFIG", "").strip() or None
    settings: Dict[str, Any] = {}
    if path:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        settings.update(loaded)

    known = set(ClientConfig.__dataclass_fields__)
    unknown = sorted(set(settings) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    # Environment overrides
    for key, env_name in (("api_key", "POSTMEN_API_KEY"), ("region", "POSTMEN_REGION"), ("endpoint", "POSTMEN_ENDPOINT")):
        value = os.getenv(env_name, "").strip()
        if value:
            settings[key] = value
    for key, env_name in (("retry", "POSTMEN_RETRY"), ("safe", "POSTMEN_SAFE")):
        flag = _env_flag(env_name)
        if flag is not None:
            settings[key] = flag

    return ClientConfig(**settings)
