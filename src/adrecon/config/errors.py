"""Errors raised while reading adrecon settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """An ``ADRECON_*`` or database setting is present but unusable, e.g. a non-positive size."""


class MissingConfigurationError(ConfigurationError):
    """One or more variables passed to ``require_env_vars`` are unset or blank."""
