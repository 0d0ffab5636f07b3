"""Errors raised while reading ratingsync settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, e.g. a bad ``CAPABILITIES`` flag."""


class MissingConfigurationError(ConfigurationError):
    """A required variable such as ``PLEX_DATA_DIR`` is unset or blank."""
