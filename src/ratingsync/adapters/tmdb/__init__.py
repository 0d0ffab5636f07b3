"""TMDB lookup adapter."""

from __future__ import annotations

from .client import TmdbClient

__all__ = ["TmdbClient"]
