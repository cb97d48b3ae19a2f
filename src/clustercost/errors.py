from typing import Sequence


class ClusterCostError(Exception):
    """
    base class for every error raised by clustercost.
    """


class QueryError(ClusterCostError):
    """
    QueryError is raised when a single metrics query cannot
    produce results. The raw backend message is kept in `detail`.
    """

    def __init__(
        self,
        detail: "str",
        query: "str" = "",
        name: "str" = "",
    ) -> "None":
        self.detail = detail
        self.query = query
        self.name = name
        super().__init__(detail)

    def __str__(self) -> "str":
        if self.name:
            return f"query {self.name}: {self.detail}"
        return self.detail


class TransportError(QueryError):
    """
    the backend was unreachable or rejected the call.
    """


class ParseError(QueryError):
    """
    the response did not match the expected shape.
    """


class InvalidRangeError(ClusterCostError, ValueError):
    """
    a window, offset or timestamp could not be parsed, or the
    resolved duration is zero.
    """


class InsufficientDataError(ClusterCostError):
    """
    a query that must return at least one series returned none.
    """


class BatchError(ClusterCostError):
    """
    BatchError aggregates the errors collected from a batch of
    queries into a single message, one line per error.
    """

    def __init__(self, errors: "Sequence[Exception]") -> "None":
        self.errors: "list[Exception]" = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))
