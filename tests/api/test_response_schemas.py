"""Tests for API response shaping."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from movie_prices.aggregation import MovieProviderDetail, MovieSummary
from movie_prices.api.schemas import MovieComparison, MovieDetailResponse, MoviePriceResponse

pytestmark = pytest.mark.unit


def _make_detail(**overrides) -> MovieProviderDetail:
    base = {
        "provider_id": "filmworld",
        "provider": "Filmworld",
        "movie_id": "fw001",
        "price": Decimal("25.99"),
        "updated_at": datetime.now(UTC),
    }
    base.update(overrides)
    return MovieProviderDetail(**base)


class TestMoviePriceResponse:
    @staticmethod
    def test_price_as_number() -> None:
        row = MoviePriceResponse.from_detail(_make_detail())
        assert row.price == 25.99
        assert row.is_stale is False

    @staticmethod
    def test_absent_price() -> None:
        assert MoviePriceResponse.from_detail(_make_detail(price=None)).price is None

    @staticmethod
    def test_stale_flag() -> None:
        old = _make_detail(updated_at=datetime.now(UTC) - timedelta(hours=1))
        assert MoviePriceResponse.from_detail(old, timedelta(minutes=10)).is_stale is True


class TestMovieViews:
    @staticmethod
    def test_comparison_view() -> None:
        summary = MovieSummary(title="Star Wars", writer="George Lucas")
        summary.add_detail(_make_detail(provider_id="cinemaworld", movie_id="cw001", price=Decimal("0")))
        summary.add_detail(_make_detail())

        view = MovieComparison.from_summary(summary)

        assert view.id == "cw001"
        assert len(view.prices) == 2
        assert view.cheapest_price.provider_id == "filmworld"
        assert "writer" not in view.model_dump()

    @staticmethod
    def test_detail_view_has_every_field() -> None:
        summary = MovieSummary(title="Star Wars", writer="George Lucas", runtime="121 min")
        view = MovieDetailResponse.from_summary(summary)
        assert view.writer == "George Lucas"
        assert view.runtime == "121 min"
        assert view.updated_at == summary.updated_at
        assert view.cheapest_price is None
