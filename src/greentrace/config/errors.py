"""Errors raised while reading greentrace settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but cannot be used."""


class MissingConfigurationError(ConfigurationError):
    """A required setting is unset or blank."""
