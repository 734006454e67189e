"""HTTP policy store for Google Cloud style ``getIamPolicy`` / ``setIamPolicy`` APIs."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from iamsync.adapters.http_resilience import ResilientClient
from iamsync.config.iam_api import get_iam_api_config
from iamsync.domain.model import (
    DEFAULT_POLICY_VERSION,
    ConcurrentModificationError,
    IamSyncError,
    InvalidResourceNameError,
    PolicyNotFoundError,
    RemoteUnavailableError,
    parse_resource_name,
)

from .schema import (
    ErrorResponse,
    GetIamPolicyRequest,
    GetPolicyOptions,
    PolicyPayload,
    SetIamPolicyRequest,
)
from .translator import policy_from_payload, policy_to_payload

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from iamsync.config.http_resilience import ResilienceConfig
    from iamsync.config.iam_api import IamApiConfig
    from iamsync.domain.model import Policy

log = getLogger(__name__)

_CONFLICT_STATUS_CODES = frozenset({409, 412})
_CONFLICT_STATUSES = frozenset({"ABORTED", "FAILED_PRECONDITION"})


class IamAPIError(IamSyncError):
    """Raised when the IAM API rejects a request."""

    def __init__(
        self,
        message: str,
        *,
        resource_id: str | None = None,
        status_code: int | None = None,
        status: str | None = None,
    ) -> None:
        super().__init__(message, resource_id=resource_id)
        self.status_code = status_code
        self.status = status


class HttpPolicyStore:
    """``PolicyStore`` talking to a remote IAM endpoint.

    Spanner databases and Bigtable tables are served by different APIs; the endpoint is
    picked from the resource name. Transient failures are retried by the transport; once
    retries are exhausted they surface as ``RemoteUnavailableError``. Writes are not resent
    by the transport. The policy etag is sent with every write, so the server rejects
    writes based on a stale read.
    """

    def __init__(
        self,
        *,
        config: IamApiConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        requested_policy_version: int = DEFAULT_POLICY_VERSION,
    ) -> None:
        self._config = config or get_iam_api_config()
        self._client_factory = client_factory or ResilientClient
        self.requested_policy_version = requested_policy_version

    def get(self, resource_id: str) -> Policy:
        return asyncio.run(self._get_async(resource_id))

    def set(self, resource_id: str, policy: Policy, field_mask: Sequence[str]) -> Policy:
        return asyncio.run(self._set_async(resource_id, policy, field_mask))

    async def _get_async(self, resource_id: str) -> Policy:
        request = GetIamPolicyRequest(
            options=GetPolicyOptions(requested_policy_version=self.requested_policy_version)
        )
        payload = await self._call(
            resource_id,
            "getIamPolicy",
            request.model_dump(by_alias=True, exclude_none=True),
            write=False,
        )
        return policy_from_payload(payload, resource_id=resource_id)

    async def _set_async(
        self,
        resource_id: str,
        policy: Policy,
        field_mask: Sequence[str],
    ) -> Policy:
        request = SetIamPolicyRequest(
            policy=policy_to_payload(policy),
            update_mask=",".join(field_mask),
        )
        payload = await self._call(
            resource_id,
            "setIamPolicy",
            request.model_dump(by_alias=True, exclude_none=True),
            write=True,
        )
        return policy_from_payload(payload, resource_id=resource_id)

    def _endpoint(self, resource_id: str, *, write: bool) -> ResilienceConfig:
        try:
            kind = parse_resource_name(resource_id.strip("/")).kind
        except InvalidResourceNameError as exc:
            raise IamAPIError(
                f"No IAM API serves resource ({resource_id})",
                resource_id=resource_id,
            ) from exc
        resilience = self._config.endpoint(kind, write=write)
        if resilience is None:
            raise IamAPIError(
                f"Missing IAM API base URL for {kind} resources",
                resource_id=resource_id,
            )
        return resilience

    async def _call(
        self,
        resource_id: str,
        method: str,
        body: dict[str, object],
        *,
        write: bool,
    ) -> PolicyPayload:
        resilience = self._endpoint(resource_id, write=write)
        path = f"/{resource_id.strip('/')}:{method}"
        try:
            async with self._client_factory(resilience) as client:
                response = await client.post(path, json=body)
        except httpx.TransportError as exc:
            raise RemoteUnavailableError(
                f"IAM API unreachable during {method} for resource ({resource_id}): {exc}",
                resource_id=resource_id,
            ) from exc

        if response.is_error:
            raise _error_from_response(response, resource_id=resource_id, method=method)

        try:
            return PolicyPayload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise IamAPIError(
                f"Unexpected {method} response payload for resource ({resource_id})",
                resource_id=resource_id,
                status_code=response.status_code,
            ) from exc


def _error_from_response(
    response: httpx.Response,
    *,
    resource_id: str,
    method: str,
) -> IamSyncError:
    status: str | None = None
    message = response.reason_phrase
    try:
        detail = ErrorResponse.model_validate(response.json()).error
    except (ValueError, ValidationError):
        detail = None
    if detail is not None:
        status = detail.status
        message = detail.message or message

    log.debug(
        "IAM %s failed for %s: status_code=%s status=%s",
        method,
        resource_id,
        response.status_code,
        status,
    )
    text = f"IAM {method} failed for resource ({resource_id}): {message}"
    if response.status_code == 404 or status == "NOT_FOUND":
        return PolicyNotFoundError(text, resource_id=resource_id)
    if response.status_code in _CONFLICT_STATUS_CODES or status in _CONFLICT_STATUSES:
        return ConcurrentModificationError(text, resource_id=resource_id)
    if response.status_code >= 500:
        return RemoteUnavailableError(text, resource_id=resource_id)
    return IamAPIError(
        text,
        resource_id=resource_id,
        status_code=response.status_code,
        status=status,
    )
