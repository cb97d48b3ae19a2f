from datetime import datetime
from typing import Any

import httpx
import structlog

from clustercost.errors import ParseError, TransportError

logger = structlog.get_logger()

QUERY_PATH = "/api/v1/query"
QUERY_RANGE_PATH = "/api/v1/query_range"


class PrometheusTransport:
    """
    PrometheusTransport implements the MetricsTransport protocol for
    the Prometheus HTTP API. It returns decoded JSON bodies and turns
    connection failures and rejected queries into TransportError,
    keeping the backend's own error text.
    """

    def __init__(
        self,
        url: "str",
        timeout: "float" = 30.0,
        headers: "dict[str, str] | None" = None,
    ) -> "None":
        self._url = url.rstrip("/")
        self._client: "httpx.AsyncClient" = httpx.AsyncClient(
            timeout=timeout,
            headers=headers or {},
        )

    @property
    def url(self) -> "str":
        return self._url

    async def close(self) -> "None":
        """
        closes the underlying HTTP client.
        """
        await self._client.aclose()

    async def query(self, text: "str") -> "Any":
        """
        runs an instant query.
        """
        return await self._get(QUERY_PATH, {"query": text}, text)

    async def query_range(
        self,
        text: "str",
        start: "datetime",
        end: "datetime",
        step: "float",
    ) -> "Any":
        """
        runs a range query between start and end with a step in seconds.
        """
        params = {
            "query": text,
            "start": f"{start.timestamp():f}",
            "end": f"{end.timestamp():f}",
            "step": f"{step:g}",
        }
        return await self._get(QUERY_RANGE_PATH, params, text)

    async def _get(
        self,
        path: "str",
        params: "dict[str, str]",
        text: "str",
    ) -> "Any":
        logger.debug("prometheus_request", path=path, query=text)

        try:
            resp = await self._client.get(f"{self._url}{path}", params=params)
        except httpx.HTTPError as e:
            raise TransportError(
                f"request to {self._url}{path} failed: {e}", query=text
            ) from e

        if resp.status_code >= 400:
            raise TransportError(
                f"{resp.status_code} from {path}: {_error_text(resp)}",
                query=text,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"response is not valid JSON: {e}", query=text) from e


def _error_text(resp: "httpx.Response") -> "str":
    """
    extracts the backend's error message, falling back to the raw body.
    """
    try:
        body = resp.json()
    except ValueError:
        return resp.text

    if isinstance(body, dict) and body.get("error"):
        error_type = body.get("errorType")
        if error_type:
            return f"{error_type}: {body['error']}"
        return str(body["error"])

    return resp.text
