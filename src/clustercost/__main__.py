import argparse
import asyncio
import json

import structlog
from prometheus_client import CollectorRegistry, write_to_textfile

from clustercost.cli import parse_args
from clustercost.config import Config
from clustercost.costs import (
    average_cluster_totals,
    cluster_costs_for_all_clusters,
    cluster_costs_over_time,
    compute_cluster_costs,
)
from clustercost.errors import ClusterCostError
from clustercost.executor import QueryExecutor
from clustercost.logging import setup_logging
from clustercost.metrics import QueryMetrics
from clustercost.transport.prometheus import PrometheusTransport

logger = structlog.get_logger()


async def run(
    config: "Config",
    args: "argparse.Namespace",
    executor: "QueryExecutor",
    metrics: "QueryMetrics | None" = None,
) -> "object":
    """
    runs the selected command and returns its JSON-ready report.
    """
    if args.command == "costs":
        costs = await compute_cluster_costs(
            executor,
            config,
            args.window,
            args.offset,
            default_cluster_id=config.cluster_id,
            local_storage_query=config.local_storage_query,
            metrics=metrics,
        )
        return {cid: c.to_dict() for cid, c in costs.items()}

    if args.command == "totals":
        totals = await cluster_costs_for_all_clusters(
            executor,
            args.window,
            args.offset,
            default_cluster_id=config.cluster_id,
            local_storage_query=config.local_storage_query,
            metrics=metrics,
        )
        return {cid: t.to_dict() for cid, t in totals.items()}

    if args.command == "average":
        average = await average_cluster_totals(
            executor,
            args.window,
            args.offset,
            default_cluster_id=config.cluster_id,
            local_storage_query=config.local_storage_query,
            metrics=metrics,
        )
        return average.to_dict()

    if args.command == "over-time":
        over_time = await cluster_costs_over_time(
            executor,
            args.start,
            args.end,
            args.window,
            args.offset,
            local_storage_query=config.local_storage_query,
            metrics=metrics,
        )
        return over_time.to_dict()

    raise ValueError(f"unknown command {args.command!r}")


def main(argv: "list[str] | None" = None) -> "None":
    config, args = parse_args(argv)
    setup_logging(config.log_level, config.log_format)

    metrics = QueryMetrics(registry=CollectorRegistry())

    async def _run() -> "object":
        transport = PrometheusTransport(
            config.prometheus_url,
            timeout=config.prometheus_timeout,
            headers=config.prometheus_headers(),
        )
        logger.info("prometheus_transport_ready", url=transport.url)
        try:
            return await run(config, args, QueryExecutor(transport), metrics)
        finally:
            await transport.close()

    try:
        report = asyncio.run(_run())
    except ClusterCostError as e:
        raise SystemExit(f"clustercost: {e}") from e
    finally:
        if args.metrics_textfile:
            write_to_textfile(args.metrics_textfile, metrics.registry)

    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
