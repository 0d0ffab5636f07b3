"""TVDB v4 response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

IMDB_SOURCE_NAME = "IMDB"


class TvdbBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LoginData(TvdbBaseModel):
    token: str


class LoginResponse(TvdbBaseModel):
    status: str | None = None
    data: LoginData


class RemoteId(TvdbBaseModel):
    id: str
    type: int | None = None
    source_name: str | None = Field(default=None, alias="sourceName")


class SeriesExtended(TvdbBaseModel):
    id: int
    name: str | None = None
    remote_ids: list[RemoteId] | None = Field(default=None, alias="remoteIds")

    @property
    def imdb_id(self) -> str | None:
        for remote in self.remote_ids or ():
            if remote.source_name == IMDB_SOURCE_NAME and remote.id.strip():
                return remote.id.strip()
        return None


class SeriesExtendedResponse(TvdbBaseModel):
    status: str | None = None
    data: SeriesExtended
