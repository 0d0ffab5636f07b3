"""On-disk JSON schemas for resolution caches and job state."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, RootModel

from ratingsync.domain.model import LibraryKind

JOB_STATE_VERSION = 1


class CacheRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: str | None
    stored_at: float


class CacheFile(RootModel[dict[str, CacheRecord]]):
    root: dict[str, CacheRecord] = Field(default_factory=dict[str, CacheRecord])


class ItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    guid: str
    title: str = ""
    metadata_hash: str | None = None
    rating: float | None = None
    votes: int | None = None
    imdb_id: str | None = None


class JobRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    library_id: int
    library_name: str
    kind: LibraryKind
    run_token: str
    stage: str
    items: list[ItemRecord] = Field(default_factory=list[ItemRecord])


class JobStateFile(BaseModel):
    version: int = JOB_STATE_VERSION
    jobs: list[JobRecord] = Field(default_factory=list[JobRecord])
