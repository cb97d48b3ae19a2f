from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping

# fixed month length used to normalize cumulative costs
HOURS_PER_MONTH = 730.0
MINUTES_PER_HOUR = 60.0


@dataclass(frozen=True, slots=True)
class Sample:
    # unix timestamp in seconds
    timestamp: "float"
    value: "float"


@dataclass(frozen=True, slots=True)
class QueryResult:
    """
    QueryResult represents a single labeled time
    series returned by a metrics query.
    """

    # read-only view; the mapping passed in is copied
    labels: "Mapping[str, str]" = field(default_factory=dict)
    # time-ascending; may be empty when the series has no data
    values: "tuple[Sample, ...]" = ()

    def __post_init__(self) -> "None":
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))
        object.__setattr__(self, "values", tuple(self.values))

    def __hash__(self) -> "int":
        return hash((frozenset(self.labels.items()), self.values))

    def label(self, name: "str", default: "str" = "") -> "str":
        return self.labels.get(name, default)

    @property
    def first(self) -> "Sample | None":
        """
        returns the leading sample, or None for a series without data.
        """
        return self.values[0] if self.values else None


@dataclass(frozen=True, slots=True)
class CostBreakdown:
    """
    CostBreakdown provides a fractional breakdown of a resource by
    usage category: user for non-system usage, system, idle and other.
    Fractions are summed independently and are not normalized.
    """

    idle: "float" = 0.0
    other: "float" = 0.0
    system: "float" = 0.0
    user: "float" = 0.0

    def to_dict(self) -> "dict[str, float]":
        return {
            "idle": self.idle,
            "other": self.other,
            "system": self.system,
            "user": self.user,
        }


@dataclass(frozen=True, slots=True)
class ClusterCosts:
    """
    ClusterCosts holds cumulative and monthly-rate costs of one
    cluster over a resolved time window.
    """

    start: "datetime"
    end: "datetime"
    cpu_cumulative: "float"
    cpu_monthly: "float"
    gpu_cumulative: "float"
    gpu_monthly: "float"
    ram_cumulative: "float"
    ram_monthly: "float"
    storage_cumulative: "float"
    storage_monthly: "float"
    total_cumulative: "float"
    total_monthly: "float"
    cpu_breakdown: "CostBreakdown | None" = None
    ram_breakdown: "CostBreakdown | None" = None

    def to_dict(self) -> "dict[str, object]":
        return {
            "startTime": self.start.isoformat(),
            "endTime": self.end.isoformat(),
            "cpuCumulativeCost": self.cpu_cumulative,
            "cpuMonthlyCost": self.cpu_monthly,
            "cpuBreakdown": _breakdown_dict(self.cpu_breakdown),
            "gpuCumulativeCost": self.gpu_cumulative,
            "gpuMonthlyCost": self.gpu_monthly,
            "ramCumulativeCost": self.ram_cumulative,
            "ramMonthlyCost": self.ram_monthly,
            "ramBreakdown": _breakdown_dict(self.ram_breakdown),
            "storageCumulativeCost": self.storage_cumulative,
            "storageMonthlyCost": self.storage_monthly,
            "totalCumulativeCost": self.total_cumulative,
            "totalMonthlyCost": self.total_monthly,
        }


@dataclass(slots=True)
class Totals:
    """
    Totals holds (timestamp, value) pairs of the monthly cost
    rate per resource, either a single leading sample per series or
    a full range of samples.
    """

    total_cost: "list[tuple[float, float]]" = field(default_factory=list)
    cpu_cost: "list[tuple[float, float]]" = field(default_factory=list)
    mem_cost: "list[tuple[float, float]]" = field(default_factory=list)
    storage_cost: "list[tuple[float, float]]" = field(default_factory=list)

    def to_dict(self) -> "dict[str, list[list[str]]]":
        return {
            "totalcost": _format_pairs(self.total_cost),
            "cpucost": _format_pairs(self.cpu_cost),
            "memcost": _format_pairs(self.mem_cost),
            "storageCost": _format_pairs(self.storage_cost),
        }


def _breakdown_dict(bd: "CostBreakdown | None") -> "dict[str, float] | None":
    return bd.to_dict() if bd is not None else None


def _format_pairs(pairs: "list[tuple[float, float]]") -> "list[list[str]]":
    return [[f"{ts:f}", f"{value:f}"] for ts, value in pairs]
