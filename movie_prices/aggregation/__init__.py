"""Aggregation core: domain models, merge fold, poster selection, engine."""

from movie_prices.aggregation.aggregator import MOVIES_CACHE_KEY, AggregationStats, MovieAggregator
from movie_prices.aggregation.merger import ContributionEntry, DataMerger, ProviderContribution
from movie_prices.aggregation.posters import PosterResolver
from movie_prices.aggregation.schemas import (
    MovieProviderDetail,
    MovieSummary,
    ProviderHealth,
    parse_price,
)

__all__ = [
    "MOVIES_CACHE_KEY",
    "AggregationStats",
    "ContributionEntry",
    "DataMerger",
    "MovieAggregator",
    "MovieProviderDetail",
    "MovieSummary",
    "PosterResolver",
    "ProviderContribution",
    "ProviderHealth",
    "parse_price",
]
