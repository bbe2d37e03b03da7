"""Exporter configuration loaded from environment variables or a JSON file."""

import json
import logging
import re
from pathlib import Path
from typing import Annotated, Any
from urllib.parse import urlsplit

from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

CAPABILITY_NO_SORT = "no_sort"
CAPABILITY_BERT = "bert"
ALL_CAPABILITIES = frozenset({CAPABILITY_NO_SORT, CAPABILITY_BERT})

_URL_PATTERN = re.compile(r"https?://[a-zA-Z.0-9]+")


class ConfigError(ValueError):
    """Raised when the exporter configuration is invalid."""


def parse_capabilities(raw: str) -> frozenset[str]:
    """Parse a comma separated capability list, dropping unknown entries."""
    candidates = (item.strip() for item in raw.split(","))
    return frozenset(item for item in candidates if item in ALL_CAPABILITIES)


def _split_list(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ExporterConfig(BaseSettings):
    """Application configuration.

    Environment variable names follow the upstream exporter (RABBIT_URL,
    RABBIT_USER, PUBLISH_PORT, ...). The lowercase aliases are the keys of
    the JSON config file.
    """

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    rabbit_url: str = Field(
        "http://127.0.0.1:15672",
        validation_alias=AliasChoices("RABBIT_URL", "rabbit_url"),
    )
    rabbit_user: str = Field(
        "guest", validation_alias=AliasChoices("RABBIT_USER", "rabbit_user")
    )
    rabbit_password: str = Field(
        "guest", validation_alias=AliasChoices("RABBIT_PASSWORD", "rabbit_pass")
    )
    rabbit_user_file: str | None = Field(
        None, validation_alias=AliasChoices("RABBIT_USER_FILE", "rabbit_user_file")
    )
    rabbit_password_file: str | None = Field(
        None,
        validation_alias=AliasChoices("RABBIT_PASSWORD_FILE", "rabbit_pass_file"),
    )
    publish_port: int = Field(
        9419, validation_alias=AliasChoices("PUBLISH_PORT", "publish_port")
    )
    publish_addr: str = Field(
        "", validation_alias=AliasChoices("PUBLISH_ADDR", "publish_addr")
    )
    output_format: str = Field(
        "TTY", validation_alias=AliasChoices("OUTPUT_FORMAT", "output_format")
    )
    log_level: str = Field(
        "info", validation_alias=AliasChoices("LOG_LEVEL", "log_level")
    )
    ca_file: str = Field("ca.pem", validation_alias=AliasChoices("CAFILE", "ca_file"))
    cert_file: str = Field(
        "client-cert.pem", validation_alias=AliasChoices("CERTFILE", "cert_file")
    )
    key_file: str = Field(
        "client-key.pem", validation_alias=AliasChoices("KEYFILE", "key_file")
    )
    insecure_skip_verify: bool = Field(
        False, validation_alias=AliasChoices("SKIPVERIFY", "insecure_skip_verify")
    )
    exclude_metrics: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "EXCLUDE_METRICS", "exlude_metrics", "exclude_metrics"
        ),
    )
    skip_queues: re.Pattern[str] = Field(
        re.compile("^$"), validation_alias=AliasChoices("SKIP_QUEUES", "skip_queues")
    )
    include_queues: re.Pattern[str] = Field(
        re.compile(".*"),
        validation_alias=AliasChoices("INCLUDE_QUEUES", "include_queues"),
    )
    skip_vhost: re.Pattern[str] = Field(
        re.compile("^$"), validation_alias=AliasChoices("SKIP_VHOST", "skip_vhost")
    )
    include_vhost: re.Pattern[str] = Field(
        re.compile(".*"),
        validation_alias=AliasChoices("INCLUDE_VHOST", "include_vhost"),
    )
    rabbit_capabilities: Annotated[frozenset[str], NoDecode] = Field(
        frozenset({CAPABILITY_NO_SORT, CAPABILITY_BERT}),
        validation_alias=AliasChoices("RABBIT_CAPABILITIES", "rabbit_capabilities"),
    )
    enabled_exporters: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["exchange", "node", "overview", "queue"],
        validation_alias=AliasChoices("RABBIT_EXPORTERS", "enabled_exporters"),
    )
    timeout: int = Field(30, validation_alias=AliasChoices("RABBIT_TIMEOUT", "timeout"))
    max_queues: int = Field(
        0, validation_alias=AliasChoices("MAX_QUEUES", "max_queues")
    )
    subsystem_name: str = Field(
        "", validation_alias=AliasChoices("SUBSYSTEM_NAME", "subsystem_name")
    )
    subsystem_id: str = Field(
        "", validation_alias=AliasChoices("SUBSYSTEM_ID", "subsystem_id")
    )

    @field_validator("rabbit_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not _URL_PATTERN.match(value.lower()):
            raise ValueError("Rabbit URL must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("exclude_metrics", "enabled_exporters", mode="before")
    @classmethod
    def _split_comma_list(cls, value: Any) -> Any:
        return _split_list(value)

    @field_validator("rabbit_capabilities", mode="before")
    @classmethod
    def _parse_capabilities(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_capabilities(value)
        return frozenset(item for item in value if item in ALL_CAPABILITIES)

    @model_validator(mode="after")
    def _read_credential_files(self) -> "ExporterConfig":
        if self.rabbit_user_file:
            self.rabbit_user = Path(self.rabbit_user_file).read_text().strip()
        if self.rabbit_password_file:
            self.rabbit_password = Path(self.rabbit_password_file).read_text().strip()
        return self

    def has_capability(self, capability: str) -> bool:
        """Check whether a broker capability (bert, no_sort) is enabled."""
        return capability in self.rabbit_capabilities

    def summary(self) -> dict[str, Any]:
        """Active settings for the startup log, without the password."""
        return {
            "PUBLISH_ADDR": self.publish_addr,
            "PUBLISH_PORT": self.publish_port,
            "RABBIT_URL": self.rabbit_url,
            "RABBIT_USER": self.rabbit_user,
            "OUTPUT_FORMAT": self.output_format,
            "RABBIT_CAPABILITIES": ",".join(sorted(self.rabbit_capabilities)),
            "RABBIT_EXPORTERS": ",".join(self.enabled_exporters),
            "CAFILE": self.ca_file,
            "CERTFILE": self.cert_file,
            "KEYFILE": self.key_file,
            "SKIPVERIFY": self.insecure_skip_verify,
            "EXCLUDE_METRICS": ",".join(self.exclude_metrics),
            "SKIP_QUEUES": self.skip_queues.pattern,
            "INCLUDE_QUEUES": self.include_queues.pattern,
            "SKIP_VHOST": self.skip_vhost.pattern,
            "INCLUDE_VHOST": self.include_vhost.pattern,
            "RABBIT_TIMEOUT": self.timeout,
            "MAX_QUEUES": self.max_queues,
            "SUBSYSTEM_NAME": self.subsystem_name,
            "SUBSYSTEM_ID": self.subsystem_id,
        }

    @property
    def host_info(self) -> str:
        """Host and port part of the management URL (e.g., "rabbit:15672")."""
        return urlsplit(self.rabbit_url).netloc


def load_config(config_file: str | Path | None = None) -> ExporterConfig:
    """Load the configuration.

    Values from the JSON config file take precedence; settings it does not
    contain are read from the environment, then fall back to defaults. A
    missing file is not an error.

    Args:
        config_file: Path to a JSON config file.

    Raises:
        ConfigError: If the file is not valid JSON or a setting is invalid.
    """
    data: dict[str, Any] = {}
    if config_file is not None:
        path = Path(config_file)
        if path.is_file():
            try:
                data = json.loads(path.read_text())
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid config file {path}: {e}") from e
        else:
            logger.debug("Config file %s not found, using environment", path)

    try:
        return ExporterConfig(**data)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
    except OSError as e:
        raise ConfigError(f"Could not read credential file: {e}") from e
