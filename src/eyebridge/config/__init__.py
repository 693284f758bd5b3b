"""Configuration management for eyebridge.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for the device location.
"""

from eyebridge.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
