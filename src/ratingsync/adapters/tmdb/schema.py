"""TMDB v3 response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TmdbBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ExternalIdsResponse(TmdbBaseModel):
    """Payload of ``/movie/{id}/external_ids`` and ``/tv/{id}/external_ids``."""

    id: int | None = None
    imdb_id: str | None = None
    tvdb_id: int | None = None

    @property
    def imdb(self) -> str | None:
        value = (self.imdb_id or "").strip()
        return value or None


class ErrorResponse(TmdbBaseModel):
    status_code: int | None = None
    status_message: str = ""
    success: bool = False
