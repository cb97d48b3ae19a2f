import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Union

import structlog

from clustercost.error_collector import ErrorCollector
from clustercost.errors import BatchError, ParseError, QueryError, TransportError
from clustercost.executor import QueryExecutor
from clustercost.metrics import QueryMetrics
from clustercost.models import QueryResult

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class RangeQuery:
    """
    RangeQuery is a query evaluated over [start, end] at a fixed step.
    """

    text: "str"
    start: "datetime"
    end: "datetime"
    # resolution in seconds
    step: "float"


Query = Union[str, RangeQuery]


@dataclass(slots=True)
class BatchResult:
    """
    BatchResult holds one result list per submitted query, keyed
    and ordered by the names the queries were submitted under, and
    the errors collected while running them. A failed query maps to
    an empty list.
    """

    results: "dict[str, list[QueryResult]]"
    errors: "ErrorCollector"

    def __getitem__(self, name: "str") -> "list[QueryResult]":
        return self.results[name]

    def errors_for(self, names: "Iterable[str]") -> "list[Exception]":
        """
        returns the collected errors of the named queries.
        """
        wanted = set(names)
        return [
            e
            for e in self.errors.errors()
            if isinstance(e, QueryError) and e.name in wanted
        ]

    def raise_for(self, names: "Iterable[str]") -> "None":
        """
        promotes the errors of the named queries to a single BatchError.
        """
        errs = self.errors_for(names)
        if errs:
            raise BatchError(errs)

    def raise_for_any(self) -> "None":
        """
        raises every collected error as a single BatchError.
        """
        err = self.errors.error()
        if err is not None:
            raise err


async def run_queries(
    executor: "QueryExecutor",
    queries: "Mapping[str, Query]",
    metrics: "QueryMetrics | None" = None,
) -> "BatchResult":
    """
    runs every query concurrently and waits for all of them. A
    failing query never cancels its siblings: its error goes to the
    shared collector and its slot resolves to an empty list.
    """
    errors = ErrorCollector()
    names = list(queries)

    tasks = [
        _run_query(executor, name, queries[name], errors, metrics) for name in names
    ]
    # gather keeps submission order regardless of completion order
    results = await asyncio.gather(*tasks)

    if errors.is_error():
        logger.warning(
            "query_batch_errors",
            failed=len(errors.errors()),
            total=len(names),
        )

    return BatchResult(results=dict(zip(names, results)), errors=errors)


async def _run_query(
    executor: "QueryExecutor",
    name: "str",
    query: "Query",
    errors: "ErrorCollector",
    metrics: "QueryMetrics | None",
) -> "list[QueryResult]":
    started = time.monotonic()
    results: "list[QueryResult]" = []

    try:
        if isinstance(query, RangeQuery):
            results = await executor.execute_range(
                query.text, query.start, query.end, query.step
            )
        else:
            results = await executor.execute(query)
    except QueryError as e:
        e.name = name
        logger.warning("query_failed", query=name, error=e.detail)
        errors.report(e)
        _inc_error(metrics, name, e)
    except Exception as e:
        logger.exception("query_crashed", query=name)
        err = QueryError(str(e) or type(e).__name__, name=name)
        errors.report(err)
        _inc_error(metrics, name, err)

    if metrics is not None:
        metrics.observe_query_duration(name, time.monotonic() - started)

    return results


def _inc_error(
    metrics: "QueryMetrics | None",
    name: "str",
    err: "QueryError",
) -> "None":
    if metrics is None:
        return

    if isinstance(err, TransportError):
        kind = "transport"
    elif isinstance(err, ParseError):
        kind = "parse"
    else:
        kind = "other"
    metrics.inc_query_error(name, kind)
