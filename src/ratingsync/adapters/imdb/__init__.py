"""IMDb bulk dataset adapter."""

from __future__ import annotations

from .dataset import ImdbRatingDataset, download_rating_dataset, parse_rating_tsv

__all__ = ["ImdbRatingDataset", "download_rating_dataset", "parse_rating_tsv"]
