"""TVDB lookup adapter."""

from __future__ import annotations

from .client import TvdbClient

__all__ = ["TvdbClient"]
