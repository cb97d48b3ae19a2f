import threading

from clustercost.errors import BatchError


class ErrorCollector:
    """
    ErrorCollector: Is a thread-safe, append-only store for errors
    reported by concurrently running query tasks.

    Reporting None is a no-op, so tasks can report the outcome of
    every step unconditionally. The contents are only stable once
    every producer has finished, so read it after the batch joins.
    """

    def __init__(self) -> "None":
        self._lock: "threading.Lock" = threading.Lock()
        self._errors: "list[Exception]" = []

    def report(self, err: "Exception | None") -> "None":
        """
        appends the error if one is given.
        """
        if err is None:
            return

        with self._lock:
            self._errors.append(err)

    def is_error(self) -> "bool":
        with self._lock:
            return bool(self._errors)

    def errors(self) -> "list[Exception]":
        """
        returns a snapshot of the reported errors in report order.
        """
        with self._lock:
            return list(self._errors)

    def error(self) -> "BatchError | None":
        """
        returns a single aggregated error, or None if nothing
        was reported.
        """
        errs = self.errors()
        if not errs:
            return None
        return BatchError(errs)
