from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class DiscountConfig:
    # percent strings of the form "NN%" or "NN"
    discount: "str" = ""
    negotiated_discount: "str" = ""


class DiscountProvider(Protocol):
    """
    DiscountProvider is the protocol for sources of the global and
    negotiated discount percentages. Lookups may raise.
    """

    def get_discount_config(self) -> "DiscountConfig": ...


class DiscountPolicy(Enum):
    """
    which discounts apply to a cost category.
    """

    BOTH = "both"
    CUSTOM_ONLY = "custom_only"
    NONE = "none"


# GPU is exempt from the standard discount, storage from both
CATEGORY_DISCOUNT_POLICY: "dict[str, DiscountPolicy]" = {
    "cpu": DiscountPolicy.BOTH,
    "ram": DiscountPolicy.BOTH,
    "gpu": DiscountPolicy.CUSTOM_ONLY,
    "storage": DiscountPolicy.NONE,
}


def parse_percent_string(text: "str") -> "float":
    """
    parses "NN%" or "NN" into a fraction, e.g. "10%" -> 0.1.
    """
    value = float(text.strip().rstrip("%").strip())
    return value / 100.0


def resolve_discounts(provider: "DiscountProvider | None") -> "tuple[float, float]":
    """
    returns the (standard, custom) discount fractions. A failed lookup
    or a malformed percent string counts as no discount.
    """
    if provider is None:
        return 0.0, 0.0

    try:
        config = provider.get_discount_config()
    except Exception:
        logger.warning("discount_lookup_failed", exc_info=True)
        return 0.0, 0.0

    return (
        _parse_or_zero(config.discount, "discount"),
        _parse_or_zero(config.negotiated_discount, "negotiated_discount"),
    )


def discount_multiplier(
    category: "str",
    discount: "float",
    custom_discount: "float",
) -> "float":
    """
    returns the factor applied to a category's raw cost.
    """
    policy = CATEGORY_DISCOUNT_POLICY.get(category, DiscountPolicy.BOTH)
    if policy is DiscountPolicy.NONE:
        return 1.0
    if policy is DiscountPolicy.CUSTOM_ONLY:
        return 1.0 - custom_discount
    return (1.0 - discount) * (1.0 - custom_discount)


def _parse_or_zero(text: "str", field: "str") -> "float":
    try:
        return parse_percent_string(text)
    except ValueError:
        if text:
            logger.warning("discount_malformed", field=field, value=text)
        return 0.0
