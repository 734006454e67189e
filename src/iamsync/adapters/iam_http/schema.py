"""Payload schemas for the ``getIamPolicy`` / ``setIamPolicy`` REST methods."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class IamBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "IAM %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class ConditionPayload(IamBaseModel):
    expression: str
    title: str | None = None
    description: str | None = None


class BindingPayload(IamBaseModel):
    role: str
    members: list[str] = Field(default_factory=list)
    condition: ConditionPayload | None = None


class PolicyPayload(IamBaseModel):
    version: int = 0
    etag: str | None = None
    bindings: list[BindingPayload] = Field(default_factory=list)


class GetPolicyOptions(IamBaseModel):
    requested_policy_version: int = Field(alias="requestedPolicyVersion")


class GetIamPolicyRequest(IamBaseModel):
    options: GetPolicyOptions


class SetIamPolicyRequest(IamBaseModel):
    policy: PolicyPayload
    update_mask: str = Field(alias="updateMask")


class ErrorDetail(IamBaseModel):
    code: int
    message: str = ""
    status: str | None = None


class ErrorResponse(IamBaseModel):
    error: ErrorDetail
