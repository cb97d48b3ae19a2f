from datetime import datetime

import structlog

from clustercost.errors import QueryError
from clustercost.models import QueryResult
from clustercost.parser import parse_query_results
from clustercost.transport.base import MetricsTransport

logger = structlog.get_logger()


class QueryExecutor:
    """
    QueryExecutor runs one fully-formed query against a metrics
    transport and parses the response into QueryResults. It does not
    retry; that policy belongs to the transport.
    """

    def __init__(self, transport: "MetricsTransport") -> "None":
        self._transport = transport

    async def execute(self, query: "str") -> "list[QueryResult]":
        raw = await self._transport.query(query)
        return self._parse(raw, query)

    async def execute_range(
        self,
        query: "str",
        start: "datetime",
        end: "datetime",
        step: "float",
    ) -> "list[QueryResult]":
        raw = await self._transport.query_range(query, start, end, step)
        return self._parse(raw, query)

    @staticmethod
    def _parse(raw: "object", query: "str") -> "list[QueryResult]":
        try:
            results = parse_query_results(raw)
        except QueryError as e:
            # attach the query text for diagnostics
            e.query = e.query or query
            raise

        logger.debug("query_parsed", series=len(results))
        return results
