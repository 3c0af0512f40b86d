"""Fold provider contributions into merged movie summaries.

Each provider pass produces an independent ``ProviderContribution``. The
merger folds contributions, in order, into an accumulator keyed by title
(or title and year), so the merge is a pure function of its inputs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import reduce

from movie_prices.aggregation.schemas import (
    MovieProviderDetail,
    MovieSummary,
    parse_price,
    utc_now,
)
from movie_prices.providers.schemas import ExternalMovieDetail, ExternalMovieSummary

logger = logging.getLogger(__name__)

MergeKey = str | tuple[str, str | None]


# =============================================================================
# CONTRIBUTIONS
# =============================================================================


@dataclass(frozen=True)
class ContributionEntry:
    """One movie from one provider.

    Attributes:
        stub: Entry of the provider's movie list.
        detail: Detail record, None when the detail call failed.
    """

    stub: ExternalMovieSummary
    detail: ExternalMovieDetail | None = None


@dataclass(frozen=True)
class ProviderContribution:
    """Everything one provider returned during a pass.

    Attributes:
        provider_id: Provider identifier.
        provider_name: Display name recorded on price rows.
        entries: Movies in provider list order.
    """

    provider_id: str
    provider_name: str
    entries: list[ContributionEntry] = field(default_factory=list)


# =============================================================================
# MERGE STATISTICS
# =============================================================================


@dataclass
class MergeStats:
    """Statistics for one merge.

    Attributes:
        providers: Contributions folded.
        entries: Provider movies seen.
        movies: Distinct summaries produced.
        missing_details: Entries merged from the list stub only.
        invalid_prices: Entries whose price string did not parse.
    """

    providers: int = 0
    entries: int = 0
    movies: int = 0
    missing_details: int = 0
    invalid_prices: int = 0

    def log_summary(self) -> None:
        """Log merge statistics summary."""
        logger.info(
            "Merge complete: %d providers, %d entries -> %d movies (missing details=%d, invalid prices=%d)",
            self.providers,
            self.entries,
            self.movies,
            self.missing_details,
            self.invalid_prices,
        )


# =============================================================================
# DATA MERGER
# =============================================================================


class DataMerger:
    """Merges provider contributions into ``MovieSummary`` records.

    Attributes:
        match_on_year: Key summaries on (title, year) instead of title.
        stats: Statistics of the last merge.
    """

    def __init__(self, match_on_year: bool = False) -> None:
        self.match_on_year = match_on_year
        self.stats = MergeStats()

    # =========================================================================
    # Public API
    # =========================================================================

    def merge(
        self,
        contributions: list[ProviderContribution],
        now: datetime | None = None,
    ) -> list[MovieSummary]:
        """Fold contributions into summaries.

        Args:
            contributions: Provider contributions in processing order.
            now: Timestamp recorded on summaries and details.

        Returns:
            Summaries in first-seen order.
        """
        self.stats = MergeStats(providers=len(contributions))
        timestamp = now or utc_now()

        merged: dict[MergeKey, MovieSummary] = reduce(
            lambda acc, contribution: self._fold(acc, contribution, timestamp),
            contributions,
            {},
        )

        self.stats.movies = len(merged)
        self.stats.log_summary()
        return list(merged.values())

    def merge_key(self, title: str, year: str | None) -> MergeKey:
        """Identity key of a movie."""
        if self.match_on_year:
            return (title, year)
        return title

    # =========================================================================
    # Folding
    # =========================================================================

    def _fold(
        self,
        acc: dict[MergeKey, MovieSummary],
        contribution: ProviderContribution,
        now: datetime,
    ) -> dict[MergeKey, MovieSummary]:
        """Merge one provider's entries into the accumulator."""
        for entry in contribution.entries:
            self.stats.entries += 1
            stub, detail = entry.stub, entry.detail

            year = stub.year or (detail.year if detail else None)
            key = self.merge_key(stub.title, year)
            summary = acc.get(key)
            if summary is None:
                summary = MovieSummary(title=stub.title, updated_at=now)
                acc[key] = summary

            values = {"year": stub.year, "type": stub.type, "poster": stub.poster}
            if detail is None:
                self.stats.missing_details += 1
            else:
                values.update(
                    {k: v for k, v in detail.model_dump(exclude={"title", "id", "price"}).items() if v}
                )
            summary.update_details(values, now)

            summary.add_detail(self._build_detail(summary, contribution, entry, now))

        return acc

    def _build_detail(
        self,
        summary: MovieSummary,
        contribution: ProviderContribution,
        entry: ContributionEntry,
        now: datetime,
    ) -> MovieProviderDetail:
        """Build the price row of one entry, keeping a known poster URL."""
        stub, detail = entry.stub, entry.detail

        price = None
        if detail is not None and detail.price is not None:
            price = parse_price(detail.price)
            if price is None:
                self.stats.invalid_prices += 1
                logger.debug(
                    "Invalid price %r for %s from %s",
                    detail.price,
                    stub.id,
                    contribution.provider_id,
                )

        poster_url = (detail.poster if detail else None) or stub.poster
        existing = summary.find_detail(contribution.provider_id, stub.id)
        if not poster_url and existing is not None:
            poster_url = existing.poster_url

        return MovieProviderDetail(
            provider_id=contribution.provider_id,
            provider=contribution.provider_name,
            movie_id=stub.id,
            price=price,
            poster_url=poster_url,
            updated_at=now,
        )
