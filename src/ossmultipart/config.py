"""Configuration loading and Pydantic models for ossmultipart."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class EndpointConfig(BaseModel):
    """Service endpoint and addressing style."""

    host: str = "oss.aliyuncs.com"
    scheme: str = "https"
    path_style: bool = False


class TransportConfig(BaseModel):
    """HTTP transport settings."""

    timeout: float = 60.0


class UploadConfig(BaseModel):
    """Defaults for the high-level file uploader."""

    part_size: int = Field(default=8 * 1024 * 1024, gt=0)
    concurrency: int = Field(default=4, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)


class LoggingConfig(BaseModel):
    """Output settings for the ``ossmultipart`` logger.

    ``format`` is "text" or "json". With ``propagate`` off, records stop at
    the package handler instead of also reaching the application's root
    handlers.
    """

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    propagate: bool = False


class MetricsConfig(BaseModel):
    """Prometheus client-side metrics."""

    enabled: bool = False


class ClientConfig(BaseModel):
    """Top-level ossmultipart configuration."""

    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


def _parse_endpoint(data: Any) -> dict[str, Any]:
    """Parse the endpoint section.

    Accepts either a mapping or a bare host string (``endpoint: oss.example.com``).
    """
    if data is None:
        return {}
    if isinstance(data, str):
        return {"host": data}
    return {
        "host": data.get("host", "oss.aliyuncs.com"),
        "scheme": data.get("scheme", "https"),
        "path_style": data.get("path_style", False),
    }


def _parse_upload(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the upload section.

    Handles ``part_size_mb`` as a convenience for ``part_size``.
    """
    if data is None:
        return {}
    result: dict[str, Any] = {}
    if "part_size" in data:
        result["part_size"] = data["part_size"]
    elif "part_size_mb" in data:
        result["part_size"] = int(data["part_size_mb"]) * 1024 * 1024
    for name in ("concurrency", "chunk_size"):
        if name in data:
            result[name] = data[name]
    return result


def _section(data: dict[str, Any] | None) -> dict[str, Any]:
    return data if isinstance(data, dict) else {}


def load_config(path: Path) -> ClientConfig:
    """Load a ClientConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated ClientConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a value has the wrong type or range.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return ClientConfig(
        endpoint=EndpointConfig(**_parse_endpoint(raw.get("endpoint"))),
        transport=TransportConfig(**_section(raw.get("transport"))),
        upload=UploadConfig(**_parse_upload(raw.get("upload"))),
        logging=LoggingConfig(**_section(raw.get("logging"))),
        metrics=MetricsConfig(**_section(raw.get("metrics"))),
    )
