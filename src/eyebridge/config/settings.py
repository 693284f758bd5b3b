"""Configuration management for eyebridge.

Loads settings from a YAML configuration file with environment variable
overrides for the device location (serial port, controller host/port).
Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/eyebridge.yaml")

# The firmware only listens at this rate
BAUD_RATE = 115200
READY_SENTINEL = "Animatronic Eyes Ready"


class SerialConfig(BaseModel):
    port: str = Field(default="/dev/tty.usbserial-0001", description="Serial device path")
    baud_rate: int = Field(default=BAUD_RATE, ge=BAUD_RATE, le=BAUD_RATE)
    reset_pulse: float = Field(default=0.1, ge=0, description="Seconds DTR is held low")
    boot_delay: float = Field(default=1.5, ge=0, description="Seconds to wait after reset")
    ready_timeout: float = Field(default=10.0, gt=0)
    ready_sentinel: str = Field(default=READY_SENTINEL)


class HttpConfig(BaseModel):
    host: str = Field(default="192.168.4.1")
    port: int = Field(default=80, ge=1, le=65535)
    timeout: float = Field(default=5.0, gt=0)

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8765, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the eyebridge system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "EYEBRIDGE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    transport: Literal["serial", "http"] = Field(default="serial")

    # Configuration sections
    serial: SerialConfig = Field(default_factory=SerialConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Init kwargs carry the YAML file, so they rank below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: EYEBRIDGE_* env vars > .env file > SERIAL_PORT/EYES_HOST/EYES_PORT
    > YAML file > defaults. Sections merge key by key, so
    EYEBRIDGE_SERIAL__PORT replaces only the port from the YAML.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    serial_port = os.environ.get("SERIAL_PORT", "")
    eyes_host = os.environ.get("EYES_HOST", "")
    eyes_port = os.environ.get("EYES_PORT", "")

    if serial_port:
        yaml_data.setdefault("serial", {})["port"] = serial_port

    if eyes_host:
        yaml_data.setdefault("http", {})["host"] = eyes_host

    if eyes_port:
        yaml_data.setdefault("http", {})["port"] = eyes_port
