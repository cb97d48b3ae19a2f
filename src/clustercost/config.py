import os
from dataclasses import dataclass

from clustercost.discount import DiscountConfig


@dataclass
class Config:
    prometheus_url: "str" = "http://localhost:9090"
    # request timeout in seconds
    prometheus_timeout: "float" = 30.0
    log_level: "str" = "info"
    # "console" or "json"
    log_format: "str" = "console"
    # sent as "Authorization: Bearer <token>" when set
    prometheus_bearer_token: "str" = ""

    # used for series without a cluster_id label
    cluster_id: "str" = ""
    # percent strings, e.g. "10%"
    discount: "str" = ""
    negotiated_discount: "str" = ""
    # provider-specific PromQL added to the storage queries
    local_storage_query: "str" = ""

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            prometheus_url=os.environ.get("PROMETHEUS_URL", cls.prometheus_url),
            prometheus_timeout=float(
                os.environ.get("PROMETHEUS_TIMEOUT", cls.prometheus_timeout)
            ),
            prometheus_bearer_token=os.environ.get("PROMETHEUS_BEARER_TOKEN", ""),
            cluster_id=os.environ.get("CLUSTER_ID", ""),
            discount=os.environ.get("DISCOUNT", ""),
            negotiated_discount=os.environ.get("NEGOTIATED_DISCOUNT", ""),
            local_storage_query=os.environ.get("LOCAL_STORAGE_QUERY", ""),
        )

    def prometheus_headers(self) -> "dict[str, str]":
        if not self.prometheus_bearer_token:
            return {}
        return {"Authorization": f"Bearer {self.prometheus_bearer_token}"}

    def get_discount_config(self) -> "DiscountConfig":
        return DiscountConfig(
            discount=self.discount,
            negotiated_discount=self.negotiated_discount,
        )
