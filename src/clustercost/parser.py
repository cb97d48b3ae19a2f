from typing import Any

from clustercost.errors import ParseError
from clustercost.models import QueryResult, Sample


def parse_query_results(raw: "Any") -> "list[QueryResult]":
    """
    parses a Prometheus HTTP API response body into QueryResults.

    Accepts vector, matrix and scalar result types. A response with
    zero series is valid and yields an empty list.
    """
    if not isinstance(raw, dict):
        raise ParseError(f"unexpected response type {type(raw).__name__}")

    status = raw.get("status")
    if status != "success":
        error = raw.get("error") or f"status {status!r}"
        raise ParseError(f"query failed: {error}")

    data = raw.get("data")
    if not isinstance(data, dict):
        raise ParseError("response is missing the data field")

    result_type = data.get("resultType")
    result = data.get("result")

    if result_type == "scalar":
        return [QueryResult(labels={}, values=(_parse_sample(result),))]

    if result_type not in ("vector", "matrix"):
        raise ParseError(f"unsupported result type {result_type!r}")

    if result is None:
        return []
    if not isinstance(result, list):
        raise ParseError("result is not a list")

    results: "list[QueryResult]" = []
    for series in result:
        if not isinstance(series, dict):
            raise ParseError("series is not an object")

        metric = series.get("metric") or {}
        if not isinstance(metric, dict):
            raise ParseError("series metric is not an object")
        labels = {str(k): str(v) for k, v in metric.items()}

        # vectors carry a single "value", matrices a list of "values"
        if result_type == "vector":
            raw_values = [series["value"]] if "value" in series else []
        else:
            raw_values = series.get("values") or []

        samples = tuple(_parse_sample(v) for v in raw_values)
        results.append(QueryResult(labels=labels, values=samples))

    return results


def _parse_sample(raw: "Any") -> "Sample":
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ParseError(f"malformed sample {raw!r}")

    try:
        return Sample(timestamp=float(raw[0]), value=float(raw[1]))
    except (TypeError, ValueError) as e:
        raise ParseError(f"non-numeric sample {raw!r}") from e
