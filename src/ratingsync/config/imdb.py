"""IMDb rating dataset configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .http_resilience import ResilienceConfig, RetryPolicy

IMDB_DATASET_BASE_URL = "https://datasets.imdbws.com/"
IMDB_RATINGS_PATH = "title.ratings.tsv.gz"


@dataclass(frozen=True, slots=True)
class ImdbDatasetConfig:
    path: str = IMDB_RATINGS_PATH
    resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(
            name="imdb-dataset",
            base_url=IMDB_DATASET_BASE_URL,
            timeout_seconds=120.0,
            retry=RetryPolicy(total=3, backoff_factor=2.0),
            cache=None,
        )
    )


def get_imdb_dataset_config() -> ImdbDatasetConfig:
    return ImdbDatasetConfig()
