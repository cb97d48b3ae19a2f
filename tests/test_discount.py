import pytest

from clustercost.discount import (
    CATEGORY_DISCOUNT_POLICY,
    DiscountConfig,
    DiscountPolicy,
    discount_multiplier,
    parse_percent_string,
    resolve_discounts,
)


class StaticDiscounts:
    def __init__(self, discount: "str", negotiated: "str") -> "None":
        self._config = DiscountConfig(discount=discount, negotiated_discount=negotiated)

    def get_discount_config(self) -> "DiscountConfig":
        return self._config


class BrokenDiscounts:
    def get_discount_config(self) -> "DiscountConfig":
        raise RuntimeError("pricing config unavailable")


class TestParsePercentString:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("10%", 0.1), ("10", 0.1), ("0%", 0.0), ("12.5%", 0.125), (" 30 % ", 0.3)],
    )
    def test_parses(self, text: "str", expected: "float") -> "None":
        assert parse_percent_string(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "%", "ten%", "10%%x"])
    def test_malformed_raises_value_error(self, text: "str") -> "None":
        with pytest.raises(ValueError):
            parse_percent_string(text)


class TestResolveDiscounts:
    def test_reads_both_discounts(self) -> "None":
        discount, custom = resolve_discounts(StaticDiscounts("10%", "5%"))
        assert discount == pytest.approx(0.1)
        assert custom == pytest.approx(0.05)

    def test_malformed_percent_counts_as_zero(self) -> "None":
        discount, custom = resolve_discounts(StaticDiscounts("lots", "5%"))
        assert discount == 0.0
        assert custom == pytest.approx(0.05)

    def test_failed_lookup_counts_as_zero(self) -> "None":
        assert resolve_discounts(BrokenDiscounts()) == (0.0, 0.0)

    def test_no_provider_means_no_discount(self) -> "None":
        assert resolve_discounts(None) == (0.0, 0.0)


class TestDiscountMultiplier:
    def test_policy_table(self) -> "None":
        assert CATEGORY_DISCOUNT_POLICY == {
            "cpu": DiscountPolicy.BOTH,
            "ram": DiscountPolicy.BOTH,
            "gpu": DiscountPolicy.CUSTOM_ONLY,
            "storage": DiscountPolicy.NONE,
        }

    def test_cpu_and_ram_apply_both(self) -> "None":
        assert discount_multiplier("cpu", 0.1, 0.2) == pytest.approx(0.9 * 0.8)
        assert discount_multiplier("ram", 0.1, 0.2) == pytest.approx(0.9 * 0.8)

    def test_gpu_applies_custom_only(self) -> "None":
        assert discount_multiplier("gpu", 0.1, 0.2) == pytest.approx(0.8)

    def test_storage_is_undiscounted(self) -> "None":
        assert discount_multiplier("storage", 0.1, 0.2) == 1.0
