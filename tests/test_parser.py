import pytest

from clustercost.errors import ParseError
from clustercost.models import Sample
from clustercost.parser import parse_query_results


def _response(result_type: "str", result: "object") -> "dict":
    return {
        "status": "success",
        "data": {"resultType": result_type, "result": result},
    }


class TestParseQueryResults:
    def test_parses_vector(self) -> "None":
        raw = _response(
            "vector",
            [
                {"metric": {"cluster_id": "a"}, "value": [1700000000, "10.5"]},
                {"metric": {}, "value": [1700000000.5, "2"]},
            ],
        )

        results = parse_query_results(raw)

        assert len(results) == 2
        assert results[0].labels == {"cluster_id": "a"}
        assert results[0].values == (Sample(1700000000.0, 10.5),)
        assert results[1].labels == {}
        assert results[1].values == (Sample(1700000000.5, 2.0),)

    def test_parses_matrix_in_order(self) -> "None":
        raw = _response(
            "matrix",
            [
                {
                    "metric": {"cluster_id": "a"},
                    "values": [[100, "1"], [160, "2"], [220, "3"]],
                }
            ],
        )

        results = parse_query_results(raw)

        assert [s.value for s in results[0].values] == [1.0, 2.0, 3.0]
        assert [s.timestamp for s in results[0].values] == [100.0, 160.0, 220.0]

    def test_parses_scalar(self) -> "None":
        results = parse_query_results(_response("scalar", [100, "0.25"]))
        assert len(results) == 1
        assert results[0].labels == {}
        assert results[0].first == Sample(100.0, 0.25)

    def test_empty_result_is_not_an_error(self) -> "None":
        assert parse_query_results(_response("vector", [])) == []

    def test_series_without_values_is_kept(self) -> "None":
        raw = _response("matrix", [{"metric": {"cluster_id": "a"}, "values": []}])
        results = parse_query_results(raw)
        assert len(results) == 1
        assert results[0].first is None

    def test_rejects_error_status(self) -> "None":
        raw = {"status": "error", "errorType": "bad_data", "error": "parse error"}
        with pytest.raises(ParseError, match="parse error"):
            parse_query_results(raw)

    def test_rejects_non_object(self) -> "None":
        with pytest.raises(ParseError):
            parse_query_results(["not", "a", "response"])

    def test_rejects_missing_data(self) -> "None":
        with pytest.raises(ParseError, match="data"):
            parse_query_results({"status": "success"})

    def test_rejects_unknown_result_type(self) -> "None":
        with pytest.raises(ParseError, match="unsupported"):
            parse_query_results(_response("string", [100, "x"]))

    def test_rejects_non_numeric_value(self) -> "None":
        raw = _response("vector", [{"metric": {}, "value": [100, "abc"]}])
        with pytest.raises(ParseError, match="non-numeric"):
            parse_query_results(raw)

    def test_rejects_malformed_sample(self) -> "None":
        raw = _response("vector", [{"metric": {}, "value": [100]}])
        with pytest.raises(ParseError, match="malformed"):
            parse_query_results(raw)
