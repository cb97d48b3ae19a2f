"""
PromQL templates for the cluster cost batches.

Cumulative queries sample every minute (`[<window>:1m]`) and divide
by 60, so each value is a cost summed over the observed minutes.
Monthly-rate queries multiply hourly prices by 730.
"""

# === CUMULATIVE COSTS (compute_cluster_costs) ===
DATA_COUNT = (
    "max(sum(count_over_time(kube_node_status_capacity_cpu_cores[{window}:1m]{offset}))"
    " by (node, cluster_id))"
)

TOTAL_GPU = """sum(
    sum_over_time(node_gpu_hourly_cost[{window}:1m]{offset}) / 60
) by (cluster_id)"""

TOTAL_CPU = """sum(
    sum(sum_over_time(kube_node_status_capacity_cpu_cores[{window}:1m]{offset})) by (node, cluster_id) *
    avg(avg_over_time(node_cpu_hourly_cost[{window}:1m]{offset})) by (node, cluster_id) / 60
) by (cluster_id)"""

TOTAL_RAM = """sum(
    sum(sum_over_time(kube_node_status_capacity_memory_bytes[{window}:1m]{offset}) / 1024 / 1024 / 1024) by (node, cluster_id) *
    avg(avg_over_time(node_ram_hourly_cost[{window}:1m]{offset})) by (node, cluster_id) / 60
) by (cluster_id)"""

TOTAL_STORAGE = """sum(
    sum(sum_over_time(kube_persistentvolume_capacity_bytes[{window}:1m]{offset})) by (persistentvolume, cluster_id) / 1024 / 1024 / 1024 *
    avg(avg_over_time(pv_hourly_cost[{window}:1m]{offset})) by (persistentvolume, cluster_id) / 60
) by (cluster_id){local_storage}"""

CPU_MODE_PCT = (
    "sum(rate(node_cpu_seconds_total[{window}])) by (mode)"
    " / scalar(sum(rate(node_cpu_seconds_total[{window}])))"
)

RAM_SYSTEM_PCT = """sum(avg_over_time(container_memory_usage_bytes{{container_name!="",namespace="kube-system"}}[{window}]))
/ sum(avg(kube_node_status_capacity_memory_bytes) by (node))"""

RAM_OTHER_PCT = """avg_over_time(kubecost_cluster_memory_working_set_bytes[{window}])
/ sum(kube_node_status_capacity_memory_bytes)"""

# === MONTHLY RATES (totals entry points) ===
CLUSTER_CORES = """sum(
    avg(avg_over_time(kube_node_status_capacity_cpu_cores[{window}] {offset})) by (node, cluster_id) * avg(avg_over_time(node_cpu_hourly_cost[{window}] {offset})) by (node, cluster_id) * 730 +
    avg(avg_over_time(node_gpu_hourly_cost[{window}] {offset})) by (node, cluster_id) * 730
) by (cluster_id)"""

CLUSTER_RAM = """sum(
    avg(avg_over_time(kube_node_status_capacity_memory_bytes[{window}] {offset})) by (node, cluster_id) / 1024 / 1024 / 1024 * avg(avg_over_time(node_ram_hourly_cost[{window}] {offset})) by (node, cluster_id) * 730
) by (cluster_id)"""

CLUSTER_STORAGE = """sum(
    avg(avg_over_time(pv_hourly_cost[{window}] {offset})) by (persistentvolume, cluster_id) * 730
    * avg(avg_over_time(kube_persistentvolume_capacity_bytes[{window}] {offset})) by (persistentvolume, cluster_id) / 1024 / 1024 / 1024
) by (cluster_id){local_storage}"""

CLUSTER_TOTAL = """sum(avg(node_total_hourly_cost) by (node, cluster_id)) * 730 +
sum(
    avg(avg_over_time(pv_hourly_cost[1h])) by (persistentvolume, cluster_id) * 730
    * avg(avg_over_time(kube_persistentvolume_capacity_bytes[1h])) by (persistentvolume, cluster_id) / 1024 / 1024 / 1024
) by (cluster_id){local_storage}"""


def format_offset(offset: "str") -> "str":
    """
    turns "3h" into " offset 3h" for use after a range selector.
    """
    offset = offset.strip()
    return f" offset {offset}" if offset else ""


def format_local_storage(query: "str") -> "str":
    query = query.strip()
    return f" + {query}" if query else ""


def cluster_cost_queries(
    window: "str",
    offset: "str" = "",
    local_storage_query: "str" = "",
) -> "dict[str, str]":
    """
    builds the eight cumulative-cost queries in submission order.
    """
    args = {
        "window": window,
        "offset": format_offset(offset),
        "local_storage": format_local_storage(local_storage_query),
    }
    return {
        "data_count": DATA_COUNT.format(**args),
        "total_gpu": TOTAL_GPU.format(**args),
        "total_cpu": TOTAL_CPU.format(**args),
        "total_ram": TOTAL_RAM.format(**args),
        "total_storage": TOTAL_STORAGE.format(**args),
        "cpu_mode_pct": CPU_MODE_PCT.format(**args),
        "ram_system_pct": RAM_SYSTEM_PCT.format(**args),
        "ram_other_pct": RAM_OTHER_PCT.format(**args),
    }


def cluster_totals_queries(
    window: "str",
    offset: "str" = "",
    local_storage_query: "str" = "",
    include_total: "bool" = False,
) -> "dict[str, str]":
    """
    builds the monthly-rate queries, optionally with the overall total.
    """
    args = {
        "window": window,
        "offset": format_offset(offset).strip(),
        "local_storage": format_local_storage(local_storage_query),
    }
    queries = {
        "cluster_cores": CLUSTER_CORES.format(**args),
        "cluster_ram": CLUSTER_RAM.format(**args),
        "cluster_storage": CLUSTER_STORAGE.format(**args),
    }
    if include_total:
        queries["cluster_total"] = CLUSTER_TOTAL.format(**args)
    return queries
