import argparse

from clustercost.config import Config
from clustercost.logging import LOG_FORMATS


def _add_window_args(parser: "argparse.ArgumentParser") -> "None":
    parser.add_argument(
        "--window",
        required=True,
        help="Duration of the cost window, e.g. 24h or 7d",
    )
    parser.add_argument(
        "--offset",
        default="",
        help="How far into the past the window ends (default: now)",
    )


def parse_args(
    argv: "list[str] | None" = None,
) -> "tuple[Config, argparse.Namespace]":
    parser = argparse.ArgumentParser(
        prog="clustercost",
        description="Cluster cost breakdowns from Prometheus metrics",
    )
    parser.add_argument(
        "--prometheus.url",
        dest="prometheus_url",
        default=None,
        help="Prometheus base URL (default: $PROMETHEUS_URL or http://localhost:9090)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--log.format",
        dest="log_format",
        default="console",
        choices=list(LOG_FORMATS),
        help="Log format on stderr (default: console)",
    )
    parser.add_argument(
        "--metrics.textfile",
        dest="metrics_textfile",
        default="",
        help="Write query metrics to this node-exporter textfile",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    costs = commands.add_parser(
        "costs", help="Cumulative and monthly costs per cluster"
    )
    _add_window_args(costs)

    totals = commands.add_parser(
        "totals", help="Monthly cost rates per cluster"
    )
    _add_window_args(totals)

    average = commands.add_parser(
        "average", help="Monthly cost rates of the default cluster"
    )
    _add_window_args(average)

    over_time = commands.add_parser(
        "over-time", help="Monthly cost rates over a time range"
    )
    over_time.add_argument(
        "--start",
        required=True,
        help="Range start, e.g. 2024-01-01T00:00:00.000Z",
    )
    over_time.add_argument(
        "--end",
        required=True,
        help="Range end, e.g. 2024-01-02T00:00:00.000Z",
    )
    _add_window_args(over_time)

    args = parser.parse_args(argv)
    config = Config.from_env()
    if args.prometheus_url:
        config.prometheus_url = args.prometheus_url
    config.log_level = args.log_level
    config.log_format = args.log_format
    return config, args
