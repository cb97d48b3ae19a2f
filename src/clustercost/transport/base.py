from datetime import datetime
from typing import Any, Protocol


class MetricsTransport(Protocol):
    """
    MetricsTransport stands as the common protocol for clients
    that send query text to a metrics backend.

    Transports return the raw decoded response body and raise
    TransportError when the backend is unreachable or rejects
    the call. Retries, if any, belong here.
    """

    async def query(self, text: "str") -> "Any": ...

    async def query_range(
        self,
        text: "str",
        start: "datetime",
        end: "datetime",
        step: "float",
    ) -> "Any": ...

    async def close(self) -> "None": ...
