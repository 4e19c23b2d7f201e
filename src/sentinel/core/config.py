"""
TOML-based configuration for Sentinel.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

The result is a plain value built once at startup and passed to whatever
needs it; there is no module-level config object.

Usage:
    from sentinel.core.config import load_config
    cfg = load_config("sentinel.toml")
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .exceptions import ConfigError
from ..security.kdf import KdfParams
from ..security.vault import SALT_MODES

DEFAULT_DATA_DIR = Path.home() / ".sentinel"


@dataclass(frozen=True)
class StorageConfig:
    """Where wallets and the KDF profile live."""
    data_dir: Path = DEFAULT_DATA_DIR
    database_path: Optional[Path] = None     # default: <data_dir>/sentinel.db
    kdf_profile_path: Optional[Path] = None  # default: <data_dir>/kdf.json

    @property
    def db_file(self) -> Path:
        return self.database_path or self.data_dir / "sentinel.db"

    @property
    def profile_file(self) -> Path:
        return self.kdf_profile_path or self.data_dir / "kdf.json"


@dataclass(frozen=True)
class SecurityConfig:
    """Argon2id costs and salt policy for new installations."""
    salt_mode: str = "random"
    time_cost: int = 3
    memory_cost: int = 65536  # KiB
    parallelism: int = 1

    @property
    def kdf_params(self) -> KdfParams:
        return KdfParams(
            time_cost=self.time_cost,
            memory_cost=self.memory_cost,
            parallelism=self.parallelism,
        )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class SentinelConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "storage": {
                "data_dir": str(self.storage.data_dir),
                "database_path": str(self.storage.db_file),
                "kdf_profile_path": str(self.storage.profile_file),
            },
            "security": {
                "salt_mode": self.security.salt_mode,
                "time_cost": self.security.time_cost,
                "memory_cost": self.security.memory_cost,
                "parallelism": self.security.parallelism,
            },
            "logging": {"level": self.logging.level},
        }


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, Mapping):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _positive_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if number < 1:
        raise ConfigError(f"{name} must be positive, got {number}")
    return number


def load_config(
    path: str | Path | None = None,
    env: Optional[Mapping[str, str]] = None,
) -> SentinelConfig:
    """
    Build the configuration from defaults, an optional TOML file and
    ``SENTINEL_*`` environment variables (highest precedence).
    """
    env = os.environ if env is None else env
    raw: dict[str, Any] = {}

    if path is not None:
        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"config file not found: {path}") from e
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {path}: {e}") from e

    storage_raw = dict(_section(raw, "storage"))
    security_raw = dict(_section(raw, "security"))
    logging_raw = dict(_section(raw, "logging"))

    if "SENTINEL_DATA_DIR" in env:
        storage_raw["data_dir"] = env["SENTINEL_DATA_DIR"]
    if "SENTINEL_DATABASE_PATH" in env:
        storage_raw["database_path"] = env["SENTINEL_DATABASE_PATH"]
    if "SENTINEL_SALT_MODE" in env:
        security_raw["salt_mode"] = env["SENTINEL_SALT_MODE"]
    if "SENTINEL_LOG_LEVEL" in env:
        logging_raw["level"] = env["SENTINEL_LOG_LEVEL"]

    data_dir = Path(storage_raw.get("data_dir", DEFAULT_DATA_DIR)).expanduser()
    db_path = storage_raw.get("database_path")
    profile_path = storage_raw.get("kdf_profile_path")
    storage = StorageConfig(
        data_dir=data_dir,
        database_path=Path(db_path).expanduser() if db_path else None,
        kdf_profile_path=Path(profile_path).expanduser() if profile_path else None,
    )

    defaults = SecurityConfig()
    salt_mode = str(security_raw.get("salt_mode", defaults.salt_mode))
    if salt_mode not in SALT_MODES:
        raise ConfigError(f"salt_mode must be one of {SALT_MODES}, got {salt_mode!r}")
    security = SecurityConfig(
        salt_mode=salt_mode,
        time_cost=_positive_int(security_raw.get("time_cost", defaults.time_cost), "time_cost"),
        memory_cost=_positive_int(security_raw.get("memory_cost", defaults.memory_cost), "memory_cost"),
        parallelism=_positive_int(security_raw.get("parallelism", defaults.parallelism), "parallelism"),
    )

    level = str(logging_raw.get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"logging level must be one of {LOG_LEVELS}, got {level!r}")

    return SentinelConfig(storage=storage, security=security, logging=LoggingConfig(level=level))
