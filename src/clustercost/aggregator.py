from collections import defaultdict
from datetime import datetime
from typing import Mapping, Sequence

import structlog

from clustercost.discount import discount_multiplier
from clustercost.errors import InvalidRangeError
from clustercost.models import (
    HOURS_PER_MONTH,
    MINUTES_PER_HOUR,
    ClusterCosts,
    CostBreakdown,
    QueryResult,
)
from clustercost.timeutil import hours_between

logger = structlog.get_logger()

CLUSTER_ID_LABEL = "cluster_id"

# cost category -> name of the batch query that produces it
COST_QUERIES: "dict[str, str]" = {
    "gpu": "total_gpu",
    "cpu": "total_cpu",
    "ram": "total_ram",
    "storage": "total_storage",
}


def cluster_id_of(result: "QueryResult", default_cluster_id: "str") -> "str":
    return result.label(CLUSTER_ID_LABEL) or default_cluster_id


def new_cluster_costs_from_cumulative(
    cpu: "float",
    gpu: "float",
    ram: "float",
    storage: "float",
    start: "datetime",
    end: "datetime",
    data_hours: "float" = 0.0,
    cpu_breakdown: "CostBreakdown | None" = None,
    ram_breakdown: "CostBreakdown | None" = None,
) -> "ClusterCosts":
    """
    computes monthly rates from cumulative costs observed over
    `data_hours`. A zero `data_hours` means "use the window length";
    a non-positive duration after that is rejected.
    """
    if data_hours == 0:
        data_hours = hours_between(start, end)

    if data_hours <= 0:
        raise InvalidRangeError(
            f"illegal time range: {start.isoformat()} to {end.isoformat()}"
            f" ({data_hours} data hours)"
        )

    cpu_monthly = cpu / data_hours * HOURS_PER_MONTH
    gpu_monthly = gpu / data_hours * HOURS_PER_MONTH
    ram_monthly = ram / data_hours * HOURS_PER_MONTH
    storage_monthly = storage / data_hours * HOURS_PER_MONTH

    return ClusterCosts(
        start=start,
        end=end,
        cpu_cumulative=cpu,
        cpu_monthly=cpu_monthly,
        gpu_cumulative=gpu,
        gpu_monthly=gpu_monthly,
        ram_cumulative=ram,
        ram_monthly=ram_monthly,
        storage_cumulative=storage,
        storage_monthly=storage_monthly,
        total_cumulative=cpu + gpu + ram + storage,
        total_monthly=cpu_monthly + gpu_monthly + ram_monthly + storage_monthly,
        cpu_breakdown=cpu_breakdown,
        ram_breakdown=ram_breakdown,
    )


def resolve_data_minutes(
    data_count: "Sequence[QueryResult]",
    start: "datetime",
    end: "datetime",
) -> "float":
    """
    returns the number of observed scrape minutes, falling back to the
    minutes of the window when the data count query has no answer.
    """
    if data_count and data_count[0].first is not None:
        minutes = data_count[0].first.value
        if minutes > 0:
            return minutes

    logger.warning("data_count_missing", fallback="window")
    return hours_between(start, end) * MINUTES_PER_HOUR


def accumulate_costs(
    results: "Mapping[str, Sequence[QueryResult]]",
    default_cluster_id: "str",
    discount: "float",
    custom_discount: "float",
) -> "dict[str, dict[str, float]]":
    """
    sums the leading value of every cost series into
    cluster id -> category -> cost, including a "total" category.
    Series sharing a cluster id add up.
    """
    costs: "dict[str, dict[str, float]]" = {}

    for category, query_name in COST_QUERIES.items():
        multiplier = discount_multiplier(category, discount, custom_discount)

        for result in results.get(query_name, ()):
            cluster_id = cluster_id_of(result, default_cluster_id)
            cluster = costs.setdefault(cluster_id, defaultdict(float))

            sample = result.first
            if sample is None:
                continue

            cost = sample.value * multiplier
            cluster[category] += cost
            cluster["total"] += cost

    return {cid: dict(categories) for cid, categories in costs.items()}


def cpu_breakdowns(
    results: "Sequence[QueryResult]",
    default_cluster_id: "str",
) -> "dict[str, CostBreakdown]":
    """
    classifies per-mode CPU fractions into idle, system, user and other.
    """
    fractions: "dict[str, dict[str, float]]" = {}

    for result in results:
        cluster_id = cluster_id_of(result, default_cluster_id)
        cluster = fractions.setdefault(cluster_id, defaultdict(float))

        sample = result.first
        if sample is None:
            continue

        mode = result.label("mode")
        if mode not in ("idle", "system", "user"):
            mode = "other"
        cluster[mode] += sample.value

    return {cid: CostBreakdown(**modes) for cid, modes in fractions.items()}


def ram_breakdowns(
    system_results: "Sequence[QueryResult]",
    default_cluster_id: "str",
) -> "dict[str, CostBreakdown]":
    """
    accumulates the system-namespace memory fraction per cluster.
    """
    system: "dict[str, float]" = {}

    for result in system_results:
        cluster_id = cluster_id_of(result, default_cluster_id)
        system.setdefault(cluster_id, 0.0)

        sample = result.first
        if sample is not None:
            system[cluster_id] += sample.value

    return {cid: CostBreakdown(system=value) for cid, value in system.items()}


def aggregate_cluster_costs(
    results: "Mapping[str, Sequence[QueryResult]]",
    start: "datetime",
    end: "datetime",
    default_cluster_id: "str",
    discount: "float" = 0.0,
    custom_discount: "float" = 0.0,
) -> "dict[str, ClusterCosts]":
    """
    folds the results of the cluster cost batch into ClusterCosts
    per cluster id. The batch is read, never modified, so the same
    inputs always produce equal outputs.
    """
    data_minutes = resolve_data_minutes(results.get("data_count", ()), start, end)
    data_hours = data_minutes / MINUTES_PER_HOUR

    costs = accumulate_costs(results, default_cluster_id, discount, custom_discount)
    cpu_bds = cpu_breakdowns(results.get("cpu_mode_pct", ()), default_cluster_id)
    ram_bds = ram_breakdowns(results.get("ram_system_pct", ()), default_cluster_id)

    # TODO: merge ram_other_pct into RAMBreakdown.other once the intended formula is confirmed
    if results.get("ram_other_pct"):
        logger.debug("ram_other_pct_unmerged", series=len(results["ram_other_pct"]))

    by_cluster: "dict[str, ClusterCosts]" = {}
    for cluster_id, cd in costs.items():
        by_cluster[cluster_id] = new_cluster_costs_from_cumulative(
            cpu=cd.get("cpu", 0.0),
            gpu=cd.get("gpu", 0.0),
            ram=cd.get("ram", 0.0),
            storage=cd.get("storage", 0.0),
            start=start,
            end=end,
            data_hours=data_hours,
            cpu_breakdown=cpu_bds.get(cluster_id),
            ram_breakdown=ram_bds.get(cluster_id),
        )
        logger.debug(
            "cluster_costs_computed",
            cluster_id=cluster_id,
            total_cumulative=by_cluster[cluster_id].total_cumulative,
        )

    return by_cluster
