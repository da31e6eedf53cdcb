"""Configuration loading utilities for the SapCloud client."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from .paths import default_key_path, public_key_path, runtime_config_dir
from .utils.validation import ensure_api_prefix, ensure_http_url, resolve_and_check_path

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_COMMENT = "sapcloud@client"


class ServerConfig(BaseModel):
    url: str = Field(default=DEFAULT_SERVER_URL, description="Base URL of the SapCloud API")
    api_prefix: str = Field(default="/api/v1", description="Path prefix of every API endpoint")
    timeout_seconds: float = Field(default=15.0, gt=0, description="Per-request transport timeout")

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return ensure_http_url(value)

    @field_validator("api_prefix")
    @classmethod
    def _validate_prefix(cls, value: str) -> str:
        return ensure_api_prefix(value)

    def endpoint(self, path: str) -> str:
        return f"{self.api_prefix}/{path.lstrip('/')}"


class IdentityConfig(BaseModel):
    key_path: Path = Field(default_factory=default_key_path, description="PEM private key location")
    comment: str = Field(default=DEFAULT_COMMENT, description="Comment written after the public key")
    passphrase: Optional[SecretStr] = Field(default=None, description="Passphrase protecting the private key")

    @field_validator("key_path")
    @classmethod
    def _validate_key_path(cls, value: Path) -> Path:
        return resolve_and_check_path(value)

    @field_validator("comment")
    @classmethod
    def _validate_comment(cls, value: str) -> str:
        value = value.strip()
        if any(ch.isspace() for ch in value):
            raise ValueError("Key comment must not contain whitespace")
        return value or DEFAULT_COMMENT

    @property
    def public_key_path(self) -> Path:
        return public_key_path(self.key_path)

    def passphrase_bytes(self) -> bytes | None:
        if self.passphrase is None:
            return None
        secret = self.passphrase.get_secret_value()
        return secret.encode("utf-8") if secret else None


class AuthConfig(BaseModel):
    enforce_expiry: bool = Field(
        default=True,
        description="Reject challenges and tokens whose non-zero expires_at has passed",
    )
    clock_skew_seconds: float = Field(default=30.0, ge=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Logging verbosity level")

    def normalized_level(self) -> str:
        return self.level.upper()


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()


def config_search_paths(explicit: Optional[Path] = None) -> Iterable[Path]:
    if explicit:
        yield explicit
    yield Path.cwd() / ".sapcloud" / "config.yaml"
    yield runtime_config_dir() / "config.yaml"


def load_config(path: Optional[Path] = None) -> AppConfig:
    for candidate in config_search_paths(path):
        if candidate.is_file():
            with candidate.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
            try:
                return AppConfig.model_validate(data)
            except ValidationError as exc:
                raise ValueError(f"Invalid configuration in {candidate}: {exc}") from exc
    return DEFAULT_CONFIG.model_copy(deep=True)


def dump_default_config(target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    data = DEFAULT_CONFIG.model_dump(mode="json", exclude={"identity": {"passphrase"}})
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)


__all__ = [
    "AppConfig",
    "AuthConfig",
    "DEFAULT_CONFIG",
    "IdentityConfig",
    "LoggingConfig",
    "ServerConfig",
    "config_search_paths",
    "dump_default_config",
    "load_config",
]
