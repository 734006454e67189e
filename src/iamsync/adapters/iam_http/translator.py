"""Translate IAM REST payloads to and from the policy model."""

from __future__ import annotations

from iamsync.domain.model import Binding, Policy, UnsupportedPolicyError

from .schema import BindingPayload, PolicyPayload


def policy_from_payload(payload: PolicyPayload, *, resource_id: str) -> Policy:
    bindings: list[Binding] = []
    for binding in payload.bindings:
        if binding.condition is not None:
            # merging a conditional grant into an unconditional one would widen access
            raise UnsupportedPolicyError(
                f"Conditional binding for role ({binding.role}) on resource "
                f"({resource_id}) cannot be reconciled",
                resource_id=resource_id,
                role=binding.role,
            )
        bindings.append(Binding.of(binding.role, binding.members))
    return Policy(bindings=tuple(bindings), version=payload.version, etag=payload.etag)


def policy_to_payload(policy: Policy) -> PolicyPayload:
    return PolicyPayload(
        version=policy.version,
        etag=policy.etag,
        bindings=[
            BindingPayload(role=binding.role, members=binding.sorted_principals())
            for binding in policy.bindings
        ],
    )
