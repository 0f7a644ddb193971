"""batch モジュールのユニットテスト."""

from unittest.mock import patch

import pytest

from localrank.batch import batch_location_search, compare_competitors, summarize_locations
from localrank.errors import ProviderError, TransportError, ValidationError
from localrank.models import Business, LocationSearchResult


def _biz(id_: str, name: str, rank: int = 1, rating: float = 4.0, is_open=None) -> Business:
    return Business(id=id_, name=name, rank=rank, rating=rating, is_open=is_open)


class TestBatchLocationSearch:
    """batch_location_search のテスト."""

    @patch("localrank.batch.wait_interval")
    def test_sequential_with_interval(self, mock_wait):
        events = []
        mock_wait.side_effect = lambda seconds: events.append(("wait", seconds))

        def search(keyword, location):
            events.append(("search", keyword, location))
            return [_biz("a", "Tony's Pizza")]

        results = batch_location_search(
            " pizza ", ["Springfield", "Shelbyville", "Capital City"], search=search
        )

        assert [r.location for r in results] == ["Springfield", "Shelbyville", "Capital City"]
        assert events == [
            ("search", "pizza", "Springfield"),
            ("wait", 0.5),
            ("search", "pizza", "Shelbyville"),
            ("wait", 0.5),
            ("search", "pizza", "Capital City"),
        ]

    @patch("localrank.batch.wait_interval")
    def test_failure_isolated_per_location(self, mock_wait):
        def search(keyword, location):
            if location == "Shelbyville":
                raise TransportError("Network error")
            return [_biz("a", "Tony's Pizza")]

        results = batch_location_search("pizza", ["Springfield", "Shelbyville", "Ogdenville"], search=search)

        assert [r.error for r in results] == [None, "Network error", None]
        assert results[1].businesses == []
        assert len(results[2].businesses) == 1

    @patch("localrank.batch.wait_interval")
    def test_locations_trimmed_and_deduplicated(self, mock_wait):
        called = []
        batch_location_search(
            "pizza", [" Springfield", "Springfield ", "", "Shelbyville"],
            search=lambda k, l: called.append(l) or [],
        )
        assert called == ["Springfield", "Shelbyville"]

    @pytest.mark.parametrize("keyword, locations", [("", ["Springfield"]), ("pizza", []), ("pizza", ["  "])])
    def test_validation(self, keyword, locations):
        with pytest.raises(ValidationError):
            batch_location_search(keyword, locations, search=lambda k, l: [])


class TestLocationSearchResult:
    """LocationSearchResult の集計プロパティのテスト."""

    def test_stats(self):
        result = LocationSearchResult(
            location="Springfield",
            businesses=[
                _biz("a", "A", rating=4.5, is_open=True),
                _biz("b", "B", rating=4.0, is_open=False),
                _biz("c", "C", rating=0.0, is_open=None),
            ],
        )
        assert result.top_business.id == "a"
        assert result.average_rating == 2.8
        assert result.open_count == 1

    def test_empty(self):
        result = LocationSearchResult(location="Nowhere")
        assert result.top_business is None
        assert result.average_rating == 0.0
        assert result.open_count == 0


class TestSummarizeLocations:
    """summarize_locations のテスト."""

    def test_summary(self):
        results = [
            LocationSearchResult("Springfield", [_biz("a", "A", rating=4.0), _biz("b", "B", rating=4.0)]),
            LocationSearchResult("Shelbyville", [_biz("c", "C", rating=4.9)]),
            LocationSearchResult("Ogdenville", error="Google Places API error: OVER_QUERY_LIMIT"),
        ]
        summary = summarize_locations(results)

        assert summary.most_results == "Springfield"
        assert summary.highest_rated == "Shelbyville"
        assert summary.fewest_results == "Shelbyville"

    def test_no_successful_locations(self):
        assert summarize_locations([LocationSearchResult("X", error="boom")]) is None


class TestCompareCompetitors:
    """compare_competitors のテスト."""

    def _selected(self):
        return [_biz("p1", "Tony's Pizza"), _biz("p2", "Slice House")]

    @patch("localrank.batch.wait_interval")
    def test_rankings_per_keyword(self, mock_wait):
        pages = {
            "pizza": [_biz("x", "Slice House Pizzeria"), _biz("y", "Tony's Pizza")],
            "delivery": [_biz("z", "Burger Barn")],
        }

        results = compare_competitors(
            self._selected(), ["pizza", "delivery"], "Springfield",
            search=lambda k, l: pages[k],
        )

        assert [r.keyword for r in results] == ["pizza", "delivery"]
        assert results[0].rankings == {"p1": 2, "p2": 1}
        assert results[1].rankings == {"p1": None, "p2": None}
        mock_wait.assert_called_once_with(0.3)

    @patch("localrank.batch.wait_interval")
    def test_failure_isolated_per_keyword(self, mock_wait):
        def search(keyword, location):
            if keyword == "pizza":
                raise ProviderError("OVER_QUERY_LIMIT")
            return [_biz("y", "Tony's Pizza")]

        results = compare_competitors(self._selected(), ["pizza", "takeout"], "Springfield", search=search)

        assert results[0].error == "Google Places API error: OVER_QUERY_LIMIT"
        assert results[0].rankings == {"p1": None, "p2": None}
        assert results[1].error is None
        assert results[1].rankings == {"p1": 1, "p2": None}

    def test_requires_two_to_five_businesses(self):
        one = [_biz("a", "A")]
        six = [_biz(str(i), f"B{i}") for i in range(6)]
        with pytest.raises(ValidationError):
            compare_competitors(one, ["pizza"], "Springfield", search=lambda k, l: [])
        with pytest.raises(ValidationError):
            compare_competitors(six, ["pizza"], "Springfield", search=lambda k, l: [])

    def test_requires_keyword(self):
        with pytest.raises(ValidationError):
            compare_competitors(self._selected(), ["  "], "Springfield", search=lambda k, l: [])
