"""Application configuration, read from environment variables."""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from src.core.exceptions import InvalidInputError

ENV_PREFIX = "TICTACTOE_"


@dataclass(frozen=True)
class Config:
    host: str = "0.0.0.0"
    port: int = 443
    cert_file: str = "ssl/cert.pem"
    key_file: str = "ssl/key.pem"
    storage_path: str = "storage"
    max_record_size: int = 512
    shutdown_grace: float = 1.0
    debug: bool = False

    @property
    def tls_enabled(self) -> bool:
        return bool(self.cert_file and self.key_file)


def _env(name: str, default: str) -> str:
    return os.environ.get(ENV_PREFIX + name, default)


def _env_number(name: str, default: int | float, cast: type[int] | type[float]) -> Any:
    raw = _env(name, str(default))
    try:
        return cast(raw)
    except ValueError as e:
        raise InvalidInputError(f"{ENV_PREFIX + name} must be a number, got {raw!r}", e)


def load_config() -> Config:
    """Build a Config from the current environment (no caching, used by tests)."""
    return Config(
        host=_env("HOST", Config.host),
        port=_env_number("PORT", Config.port, int),
        cert_file=_env("CERT_FILE", Config.cert_file),
        key_file=_env("KEY_FILE", Config.key_file),
        storage_path=_env("STORAGE_PATH", Config.storage_path),
        max_record_size=_env_number("MAX_RECORD_SIZE", Config.max_record_size, int),
        shutdown_grace=_env_number("SHUTDOWN_GRACE", Config.shutdown_grace, float),
        debug=_env("DEBUG", "0").lower() in ("1", "true", "yes"),
    )


@lru_cache
def get_config() -> Config:
    return load_config()
