from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class QueryMetrics:
    """
    records per-query latency and failures of the query batches.
     - query_duration_seconds: latency of each batch slot, labeled
     by query name.
     - query_errors_total: failed queries, labeled by query name
     and error kind (transport, parse, ...).
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self._registry: "CollectorRegistry" = registry
        self._query_duration: "Histogram" = Histogram(
            "clustercost_query_duration_seconds",
            "Duration of metrics backend queries",
            ["query"],
            registry=registry,
        )
        self._query_errors: "Counter" = Counter(
            "clustercost_query_errors_total",
            "Total number of failed metrics backend queries",
            ["query", "kind"],
            registry=registry,
        )

    @property
    def registry(self) -> "CollectorRegistry":
        return self._registry

    def observe_query_duration(self, query: "str", duration_seconds: "float") -> "None":
        self._query_duration.labels(query=query).observe(duration_seconds)

    def inc_query_error(self, query: "str", kind: "str") -> "None":
        self._query_errors.labels(query=query, kind=kind).inc()
