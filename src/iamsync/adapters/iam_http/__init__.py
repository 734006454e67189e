"""Remote IAM API adapter."""

from __future__ import annotations

from .client import HttpPolicyStore, IamAPIError
from .schema import BindingPayload, PolicyPayload
from .translator import policy_from_payload, policy_to_payload

__all__ = [
    "BindingPayload",
    "HttpPolicyStore",
    "IamAPIError",
    "PolicyPayload",
    "policy_from_payload",
    "policy_to_payload",
]
