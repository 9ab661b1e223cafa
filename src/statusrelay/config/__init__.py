"""Configuration management for statusrelay.

Loads and validates YAML-based configuration with Pydantic models.
Environment variables fill in whatever the YAML file leaves unset.
"""

from statusrelay.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
