from datetime import datetime
from typing import Sequence

import structlog

from clustercost.aggregator import aggregate_cluster_costs, cluster_id_of
from clustercost.discount import DiscountProvider, resolve_discounts
from clustercost.errors import InsufficientDataError, InvalidRangeError
from clustercost.executor import QueryExecutor
from clustercost.metrics import QueryMetrics
from clustercost.models import ClusterCosts, QueryResult, Totals
from clustercost.orchestrator import RangeQuery, run_queries
from clustercost.queries import cluster_cost_queries, cluster_totals_queries
from clustercost.timeutil import parse_duration, parse_timestamp, resolve_window

logger = structlog.get_logger()

# a failure of any of these aborts compute_cluster_costs; failures of
# the remaining queries fall back to zero cost or no breakdown
FATAL_COST_QUERIES = ("total_cpu", "total_ram", "total_storage")

# Totals field per monthly-rate query
_TOTALS_FIELDS: "dict[str, str]" = {
    "cluster_cores": "cpu_cost",
    "cluster_ram": "mem_cost",
    "cluster_storage": "storage_cost",
    "cluster_total": "total_cost",
}


async def compute_cluster_costs(
    executor: "QueryExecutor",
    discount_provider: "DiscountProvider | None",
    window: "str",
    offset: "str" = "",
    *,
    default_cluster_id: "str",
    local_storage_query: "str" = "",
    now: "datetime | None" = None,
    metrics: "QueryMetrics | None" = None,
) -> "dict[str, ClusterCosts]":
    """
    gives the cumulative and monthly-rate costs of every cluster over
    `window`, ending `offset` before now.
    """
    # invalid ranges fail before anything is queried
    start, end = resolve_window(window, offset, now)

    queries = cluster_cost_queries(window, offset, local_storage_query)
    for name, text in queries.items():
        logger.debug("cluster_cost_query", query=name, text=text)

    batch = await run_queries(executor, queries, metrics)

    batch.raise_for(FATAL_COST_QUERIES)
    for err in batch.errors_for(n for n in queries if n not in FATAL_COST_QUERIES):
        logger.warning("cluster_cost_query_degraded", error=str(err))

    discount, custom_discount = resolve_discounts(discount_provider)

    costs = aggregate_cluster_costs(
        batch.results,
        start,
        end,
        default_cluster_id,
        discount=discount,
        custom_discount=custom_discount,
    )
    logger.info(
        "cluster_costs_computed",
        clusters=len(costs),
        window=window,
        offset=offset,
    )
    return costs


async def cluster_costs_for_all_clusters(
    executor: "QueryExecutor",
    window: "str",
    offset: "str" = "",
    *,
    default_cluster_id: "str",
    local_storage_query: "str" = "",
    metrics: "QueryMetrics | None" = None,
) -> "dict[str, Totals]":
    """
    gives the monthly cost rates of every cluster, averaged over `window`.
    """
    # invalid ranges fail before anything is queried
    resolve_window(window, offset)

    queries = cluster_totals_queries(window, offset, local_storage_query)
    batch = await run_queries(executor, queries, metrics)
    batch.raise_for_any()

    by_cluster: "dict[str, Totals]" = {}
    for name, field_name in _TOTALS_FIELDS.items():
        if name not in queries:
            continue
        for cluster_id, pairs in leading_pairs(batch[name], default_cluster_id).items():
            totals = by_cluster.setdefault(cluster_id, Totals())
            setattr(totals, field_name, pairs)

    return by_cluster


async def average_cluster_totals(
    executor: "QueryExecutor",
    window: "str",
    offset: "str" = "",
    *,
    default_cluster_id: "str",
    local_storage_query: "str" = "",
    metrics: "QueryMetrics | None" = None,
) -> "Totals":
    """
    gives the current monthly cost rates of the default cluster,
    averaged over `window`.
    """
    resolve_window(window, offset)

    queries = cluster_totals_queries(
        window, offset, local_storage_query, include_total=True
    )
    batch = await run_queries(executor, queries, metrics)
    batch.raise_for_any()

    totals = Totals()
    for name, field_name in _TOTALS_FIELDS.items():
        pairs = leading_pairs(batch[name], default_cluster_id)
        setattr(totals, field_name, pairs.get(default_cluster_id, []))

    if not totals.total_cost:
        raise InsufficientDataError(
            f"no total cost for cluster {default_cluster_id!r} in the selected time range"
        )
    return totals


async def cluster_costs_over_time(
    executor: "QueryExecutor",
    start: "str",
    end: "str",
    window: "str",
    offset: "str" = "",
    *,
    local_storage_query: "str" = "",
    metrics: "QueryMetrics | None" = None,
) -> "Totals":
    """
    gives the monthly cost rates between `start` and `end`, sampled
    every `window`.
    """
    start_time = parse_timestamp(start)
    end_time = parse_timestamp(end)
    step = parse_duration(window).total_seconds()
    if step <= 0 or end_time <= start_time:
        raise InvalidRangeError(f"illegal time range: {start} to {end} every {window}")
    if offset.strip():
        parse_duration(offset)

    queries = {
        name: RangeQuery(text=text, start=start_time, end=end_time, step=step)
        for name, text in cluster_totals_queries(
            window, offset, local_storage_query, include_total=True
        ).items()
    }
    batch = await run_queries(executor, queries, metrics)
    batch.raise_for_any()

    totals = Totals()
    for name, field_name in _TOTALS_FIELDS.items():
        setattr(totals, field_name, range_pairs(batch[name], name))
    return totals


def leading_pairs(
    results: "Sequence[QueryResult]",
    default_cluster_id: "str",
) -> "dict[str, list[tuple[float, float]]]":
    """
    maps each cluster id to the leading (timestamp, value) pair of
    each of its series. Series without samples are skipped.
    """
    pairs: "dict[str, list[tuple[float, float]]]" = {}
    for result in results:
        sample = result.first
        if sample is None:
            logger.warning("series_without_data", labels=dict(result.labels))
            continue

        cluster_id = cluster_id_of(result, default_cluster_id)
        pairs.setdefault(cluster_id, []).append((sample.timestamp, sample.value))
    return pairs


def range_pairs(
    results: "Sequence[QueryResult]",
    name: "str",
) -> "list[tuple[float, float]]":
    """
    returns every (timestamp, value) pair of the first series.
    """
    if not results:
        raise InsufficientDataError(
            f"query {name}: not enough data available in the selected time range"
        )
    return [(s.timestamp, s.value) for s in results[0].values]
