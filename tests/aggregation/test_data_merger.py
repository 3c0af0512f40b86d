"""Unit tests for the contribution merger."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from movie_prices.aggregation.merger import (
    ContributionEntry,
    DataMerger,
    MergeStats,
    ProviderContribution,
)
from movie_prices.providers.schemas import ExternalMovieDetail, ExternalMovieSummary

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _make_stub(**overrides) -> ExternalMovieSummary:
    base = {"Title": "Star Wars", "Year": "1977", "ID": "cw001", "Type": "movie", "Poster": None}
    base.update(overrides)
    return ExternalMovieSummary.model_validate(base)


def _make_detail(**overrides) -> ExternalMovieDetail:
    base = {"Title": "Star Wars", "Year": "1977", "Price": "30.99"}
    base.update(overrides)
    return ExternalMovieDetail.model_validate(base)


def _contribution(provider_id: str, *entries: ContributionEntry) -> ProviderContribution:
    return ProviderContribution(provider_id, provider_id.title(), list(entries))


def _star_wars_contributions() -> list[ProviderContribution]:
    return [
        _contribution(
            "cinemaworld",
            ContributionEntry(_make_stub(ID="cw001"), _make_detail(Price="30.99", Director="George Lucas")),
        ),
        _contribution(
            "filmworld",
            ContributionEntry(_make_stub(ID="fw001"), _make_detail(Price="25.99", Plot="Luke meets Leia")),
        ),
    ]


# -------------------------------------------------------------------------
# MergeStats
# -------------------------------------------------------------------------


class TestMergeStats:
    @staticmethod
    def test_default_values() -> None:
        stats = MergeStats()
        assert stats.entries == 0
        assert stats.movies == 0

    @staticmethod
    def test_log_summary_no_error() -> None:
        MergeStats(providers=2, entries=4, movies=3).log_summary()


# -------------------------------------------------------------------------
# Merge
# -------------------------------------------------------------------------


class TestMerge:
    @staticmethod
    def test_same_title_merged_across_providers() -> None:
        merger = DataMerger()
        movies = merger.merge(_star_wars_contributions(), now=NOW)

        assert len(movies) == 1
        star_wars = movies[0]
        assert star_wars.title == "Star Wars"
        assert len(star_wars.provider_details) == 2

        cheapest = star_wars.cheapest_price()
        assert cheapest.price == Decimal("25.99")
        assert cheapest.provider_id == "filmworld"

    @staticmethod
    def test_fields_filled_from_every_provider() -> None:
        movies = DataMerger().merge(_star_wars_contributions(), now=NOW)
        assert movies[0].director == "George Lucas"
        assert movies[0].plot == "Luke meets Leia"

    @staticmethod
    def test_first_non_null_value_wins() -> None:
        contributions = [
            _contribution("a", ContributionEntry(_make_stub(ID="a1"), _make_detail(Genre="Sci-Fi"))),
            _contribution("b", ContributionEntry(_make_stub(ID="b1"), _make_detail(Genre="Fantasy"))),
        ]
        movies = DataMerger().merge(contributions, now=NOW)
        assert movies[0].genre == "Sci-Fi"

    @staticmethod
    def test_title_match_is_case_sensitive() -> None:
        contributions = [
            _contribution("a", ContributionEntry(_make_stub(ID="a1"), _make_detail())),
            _contribution("b", ContributionEntry(_make_stub(Title="STAR WARS", ID="b1"), _make_detail())),
        ]
        assert len(DataMerger().merge(contributions, now=NOW)) == 2

    @staticmethod
    def test_match_on_year_separates_remakes() -> None:
        contributions = [
            _contribution("a", ContributionEntry(_make_stub(Title="Dune", Year="1984", ID="a1"), None)),
            _contribution("b", ContributionEntry(_make_stub(Title="Dune", Year="2021", ID="b1"), None)),
        ]
        assert len(DataMerger().merge(contributions, now=NOW)) == 1
        assert len(DataMerger(match_on_year=True).merge(contributions, now=NOW)) == 2

    @staticmethod
    def test_invalid_price_keeps_record() -> None:
        contributions = [
            _contribution("cinemaworld", ContributionEntry(_make_stub(), _make_detail(Price="invalid_price"))),
        ]
        merger = DataMerger()
        movies = merger.merge(contributions, now=NOW)

        detail = movies[0].provider_details[0]
        assert detail.price is None
        assert merger.stats.invalid_prices == 1
        assert movies[0].cheapest_price() is None

    @staticmethod
    def test_missing_detail_uses_stub() -> None:
        stub = _make_stub(Poster="https://img.test/sw.jpg")
        merger = DataMerger()
        movies = merger.merge([_contribution("cinemaworld", ContributionEntry(stub, None))], now=NOW)

        movie = movies[0]
        assert movie.year == "1977"
        assert movie.type == "movie"
        assert movie.poster == "https://img.test/sw.jpg"
        assert movie.provider_details[0].poster_url == "https://img.test/sw.jpg"
        assert movie.provider_details[0].price is None
        assert merger.stats.missing_details == 1

    @staticmethod
    def test_duplicate_entry_replaces_and_keeps_poster() -> None:
        contribution = _contribution(
            "cinemaworld",
            ContributionEntry(_make_stub(Poster="https://img.test/sw.jpg"), _make_detail(Price="30.99")),
            ContributionEntry(_make_stub(), _make_detail(Price="28.50")),
        )
        movies = DataMerger().merge([contribution], now=NOW)

        details = movies[0].provider_details
        assert len(details) == 1
        assert details[0].price == Decimal("28.50")
        assert details[0].poster_url == "https://img.test/sw.jpg"

    @staticmethod
    def test_timestamps_recorded() -> None:
        movies = DataMerger().merge(_star_wars_contributions(), now=NOW)
        assert movies[0].updated_at == NOW
        assert all(d.updated_at == NOW for d in movies[0].provider_details)

    @staticmethod
    def test_empty_contributions() -> None:
        assert DataMerger().merge([], now=NOW) == []

    @staticmethod
    def test_first_seen_order() -> None:
        contributions = [
            _contribution(
                "a",
                ContributionEntry(_make_stub(Title="Alien", ID="a1"), None),
                ContributionEntry(_make_stub(Title="Blade Runner", ID="a2"), None),
            ),
            _contribution("b", ContributionEntry(_make_stub(Title="Aliens", ID="b1"), None)),
        ]
        movies = DataMerger().merge(contributions, now=NOW)
        assert [m.title for m in movies] == ["Alien", "Blade Runner", "Aliens"]

    @staticmethod
    def test_merge_is_idempotent() -> None:
        merger = DataMerger()
        first = merger.merge(_star_wars_contributions(), now=NOW)
        second = merger.merge(_star_wars_contributions(), now=NOW)
        assert [m.model_dump() for m in first] == [m.model_dump() for m in second]

    @staticmethod
    def test_stats_counted() -> None:
        merger = DataMerger()
        merger.merge(_star_wars_contributions(), now=NOW)
        assert merger.stats.providers == 2
        assert merger.stats.entries == 2
        assert merger.stats.movies == 1
