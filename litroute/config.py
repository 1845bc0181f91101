"""
Config system - layered server configuration.

Merge order (later overrides earlier):
1. ServerConfig defaults
2. .env file (read with python-dotenv)
3. Environment variables (LIT_* prefix, plus a bare PORT)
4. Manual overrides
"""

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from .faults import ConfigInvalidFault


DEFAULT_PORT = 3000


@dataclass
class ServerConfig:
    """Runtime configuration for the HTTP listener."""
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    log_level: str = "info"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Nested keys use a double underscore: ``LIT_SERVER__PORT=8080`` sets
    ``server.port``.
    """

    def __init__(self, env_prefix: str = "LIT_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        env_prefix: str = "LIT_",
        env_file: Optional[str] = ".env",
        overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ConfigLoader":
        loader = cls(env_prefix=env_prefix)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env(os.environ if environ is None else environ)

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return
        self._load_from_env({
            key: value
            for key, value in dotenv_values(env_path).items()
            if value is not None
        })

    def _load_from_env(self, environ: Mapping[str, str]):
        """Load config from environment variables (prefixed keys beat a bare PORT)."""
        if "PORT" in environ:
            self._set_nested("SERVER__PORT", environ["PORT"])
        for key, value in environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key[len(self.env_prefix):], value)

    def _set_nested(self, key: str, value: str):
        """Convert SERVER__PORT to {"server": {"port": ...}}."""
        parts = key.lower().split("__")
        if len(parts) == 1:
            parts = ["server"] + parts

        current = self.config_data
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def server_config(self) -> ServerConfig:
        """Build a validated ServerConfig from the ``server`` section."""
        data = self.get("server", {}) or {}
        known = {f.name for f in fields(ServerConfig)}
        config = ServerConfig(**{k: v for k, v in data.items() if k in known})

        if isinstance(config.port, bool) or not isinstance(config.port, int):
            raise ConfigInvalidFault("server.port", f"expected an integer, got {config.port!r}")
        if not 0 <= config.port <= 65535:
            raise ConfigInvalidFault("server.port", f"{config.port} is out of range")
        config.host = str(config.host)
        config.log_level = str(config.log_level).lower()
        return config
