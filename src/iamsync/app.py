"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from iamsync.adapters.iam_http import HttpPolicyStore
from iamsync.adapters.memory import InMemoryPolicyStore
from iamsync.adapters.sqlalchemy import SqlAlchemyPolicyStore, configured_engine, startup
from iamsync.config import StoreBackend, get_reconciler_config, get_store_backend
from iamsync.domain.model import parse_resource_name
from iamsync.domain.reconciliation import (
    BindingReconciler,
    MemberReconciler,
    PolicyReconciler,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from iamsync.domain.model import Binding, MemberRef, Policy
    from iamsync.domain.ports import PolicyStore
    from iamsync.domain.reconciliation import ReconcileResult


log = getLogger(__name__)


def build_policy_store(backend: StoreBackend | None = None) -> PolicyStore:
    """Create the policy store selected by ``backend`` (or ``IAMSYNC_STORE``)."""

    effective = backend or get_store_backend()
    log.debug("Using %s policy store", effective)
    if effective is StoreBackend.MEMORY:
        return InMemoryPolicyStore()
    if effective is StoreBackend.HTTP:
        return HttpPolicyStore()
    engine = configured_engine() or startup()
    return SqlAlchemyPolicyStore(engine)


def _retries() -> int:
    return get_reconciler_config().max_conflict_retries


def _policy_reconciler(store: PolicyStore | None) -> PolicyReconciler:
    return PolicyReconciler(store or build_policy_store(), max_conflict_retries=_retries())


def _binding_reconciler(store: PolicyStore | None) -> BindingReconciler:
    return BindingReconciler(store or build_policy_store(), max_conflict_retries=_retries())


def _member_reconciler(store: PolicyStore | None) -> MemberReconciler:
    return MemberReconciler(store or build_policy_store(), max_conflict_retries=_retries())


def _resource_id(value: str) -> str:
    return str(parse_resource_name(value))


def apply_policy(
    resource_id: str,
    bindings: Iterable[Binding],
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _policy_reconciler(store).apply(_resource_id(resource_id), bindings)


def read_policy(resource_id: str, *, store: PolicyStore | None = None) -> Policy:
    return _policy_reconciler(store).read(_resource_id(resource_id))


def delete_policy(resource_id: str, *, store: PolicyStore | None = None) -> ReconcileResult:
    return _policy_reconciler(store).delete(_resource_id(resource_id))


def create_binding(
    resource_id: str,
    role: str,
    principals: Iterable[str],
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _binding_reconciler(store).create(_resource_id(resource_id), role, principals)


def read_binding(resource_id: str, role: str, *, store: PolicyStore | None = None) -> Binding:
    return _binding_reconciler(store).read(_resource_id(resource_id), role)


def update_binding(
    resource_id: str,
    role: str,
    principals: Iterable[str],
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _binding_reconciler(store).update(_resource_id(resource_id), role, principals)


def delete_binding(
    resource_id: str,
    role: str,
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _binding_reconciler(store).delete(_resource_id(resource_id), role)


def create_member(
    resource_id: str,
    role: str,
    principal: str,
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _member_reconciler(store).create(_resource_id(resource_id), role, principal)


def read_member(
    resource_id: str,
    role: str,
    principal: str,
    *,
    store: PolicyStore | None = None,
) -> str:
    return _member_reconciler(store).read(_resource_id(resource_id), role, principal)


def update_member(
    resource_id: str,
    role: str,
    principal: str,
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _member_reconciler(store).update(_resource_id(resource_id), role, principal)


def delete_member(
    resource_id: str,
    role: str,
    principal: str,
    *,
    store: PolicyStore | None = None,
) -> ReconcileResult:
    return _member_reconciler(store).delete(_resource_id(resource_id), role, principal)


def import_binding(import_id: str, *, store: PolicyStore | None = None) -> Binding:
    """Adopt an existing role binding into declarative management.

    The reference is built from the import id alone; the following read confirms the
    binding exists before the caller starts managing it.
    """

    ref = BindingReconciler.from_import_id(import_id)
    log.info("Importing binding %s", ref.import_id)
    return _binding_reconciler(store).read(ref.resource_id, ref.role)


def import_member(import_id: str, *, store: PolicyStore | None = None) -> MemberRef:
    ref = MemberReconciler.from_import_id(import_id)
    log.info("Importing member %s", ref.import_id)
    _member_reconciler(store).read(ref.resource_id, ref.role, ref.principal)
    return ref
