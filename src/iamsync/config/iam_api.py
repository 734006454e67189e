"""Remote IAM API configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from iamsync.domain.model.resource_names import ResourceKind

from .env import optional_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_SPANNER_API_BASE_URL = "https://spanner.googleapis.com/v1"
DEFAULT_BIGTABLE_API_BASE_URL = "https://bigtableadmin.googleapis.com/v2"

# getIamPolicy and setIamPolicy are both POSTs; only reads may be resent blindly
_WRITE_RETRY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _default_base_urls() -> dict[ResourceKind, str]:
    return {
        ResourceKind.SPANNER_DATABASE: DEFAULT_SPANNER_API_BASE_URL,
        ResourceKind.BIGTABLE_TABLE: DEFAULT_BIGTABLE_API_BASE_URL,
    }


@dataclass(frozen=True, slots=True)
class IamApiConfig:
    """Client settings shared by every IAM endpoint plus one base URL per resource kind.

    ``write_retry`` replaces ``resilience.retry`` for ``setIamPolicy`` calls. A write that
    timed out may already have been applied, and resending it with the old etag would be
    reported as a conflict against our own change.
    """

    resilience: ResilienceConfig
    base_urls: Mapping[ResourceKind, str] = field(default_factory=_default_base_urls)
    write_retry: RetryPolicy | None = None

    def endpoint(self, kind: ResourceKind, *, write: bool = False) -> ResilienceConfig | None:
        base_url = self.base_urls.get(kind)
        if base_url is None:
            return None
        resilience = replace(
            self.resilience,
            name=f"{self.resilience.name}-{kind}",
            base_url=base_url.rstrip("/"),
        )
        if write and self.write_retry is not None:
            resilience = replace(resilience, retry=self.write_retry)
        return resilience


def get_iam_api_config() -> IamApiConfig:
    headers = {"Content-Type": "application/json"}
    # token acquisition is left to the caller (e.g. `gcloud auth print-access-token`)
    token = optional_env_var("IAMSYNC_ACCESS_TOKEN")
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"

    base_urls = {
        ResourceKind.SPANNER_DATABASE: optional_env_var("IAMSYNC_SPANNER_API_BASE_URL")
        or DEFAULT_SPANNER_API_BASE_URL,
        ResourceKind.BIGTABLE_TABLE: optional_env_var("IAMSYNC_BIGTABLE_API_BASE_URL")
        or DEFAULT_BIGTABLE_API_BASE_URL,
    }
    resilience = ResilienceConfig(
        name="iam",
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        retry=RetryPolicy(total=4),
        default_headers=headers,
    )
    return IamApiConfig(
        resilience=resilience,
        base_urls=base_urls,
        write_retry=RetryPolicy(total=4, allowed_methods=_WRITE_RETRY_METHODS),
    )
