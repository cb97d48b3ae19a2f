from datetime import datetime, timezone

import httpx
import pytest
import respx

from clustercost.errors import ParseError, TransportError
from clustercost.transport.prometheus import (
    QUERY_PATH,
    QUERY_RANGE_PATH,
    PrometheusTransport,
)

PROM_URL = "http://prometheus.test:9090"

VECTOR_BODY = {
    "status": "success",
    "data": {
        "resultType": "vector",
        "result": [{"metric": {"cluster_id": "a"}, "value": [1000, "1"]}],
    },
}


class TestPrometheusTransportQuery:
    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_decoded_body(self) -> "None":
        route = respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(200, json=VECTOR_BODY)
        )

        transport = PrometheusTransport(PROM_URL + "/")
        body = await transport.query("up")
        await transport.close()

        assert body == VECTOR_BODY
        assert route.call_count == 1
        assert route.calls.last.request.url.params["query"] == "up"

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_configured_headers(self) -> "None":
        route = respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(200, json=VECTOR_BODY)
        )

        transport = PrometheusTransport(
            PROM_URL, headers={"Authorization": "Bearer s3cret"}
        )
        await transport.query("up")
        await transport.close()

        assert route.calls.last.request.headers["Authorization"] == "Bearer s3cret"

    @pytest.mark.asyncio
    @respx.mock
    async def test_bad_query_keeps_backend_error(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(
                400,
                json={
                    "status": "error",
                    "errorType": "bad_data",
                    "error": "1:5: parse error: unexpected end of input",
                },
            )
        )

        transport = PrometheusTransport(PROM_URL)
        with pytest.raises(TransportError) as exc_info:
            await transport.query("sum(")
        await transport.close()

        assert "bad_data: 1:5: parse error" in exc_info.value.detail
        assert exc_info.value.query == "sum("

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_keeps_raw_body(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(503, text="service unavailable")
        )

        transport = PrometheusTransport(PROM_URL)
        with pytest.raises(TransportError, match="service unavailable"):
            await transport.query("up")
        await transport.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_unreachable_backend(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        transport = PrometheusTransport(PROM_URL)
        with pytest.raises(TransportError, match="connection refused"):
            await transport.query("up")
        await transport.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json_is_parse_error(self) -> "None":
        respx.get(f"{PROM_URL}{QUERY_PATH}").mock(
            return_value=httpx.Response(200, text="<html>proxy</html>")
        )

        transport = PrometheusTransport(PROM_URL)
        with pytest.raises(ParseError):
            await transport.query("up")
        await transport.close()


class TestPrometheusTransportQueryRange:
    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_unix_bounds_and_step(self) -> "None":
        route = respx.get(f"{PROM_URL}{QUERY_RANGE_PATH}").mock(
            return_value=httpx.Response(
                200,
                json={"status": "success", "data": {"resultType": "matrix", "result": []}},
            )
        )

        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 2, tzinfo=timezone.utc)

        transport = PrometheusTransport(PROM_URL)
        await transport.query_range("up", start, end, 3600.0)
        await transport.close()

        params = route.calls.last.request.url.params
        assert params["query"] == "up"
        assert float(params["start"]) == start.timestamp()
        assert float(params["end"]) == end.timestamp()
        assert params["step"] == "3600"
