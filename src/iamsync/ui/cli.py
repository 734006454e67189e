# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from iamsync.app import (
    apply_policy,
    build_policy_store,
    create_binding,
    create_member,
    delete_binding,
    delete_member,
    delete_policy,
    import_binding,
    import_member,
    read_binding,
    read_member,
    read_policy,
    update_binding,
    update_member,
)
from iamsync.config import ConfigurationError, configure_logging, parse_store_backend
from iamsync.domain.model import Binding, IamSyncError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from iamsync.domain.model import Policy
    from iamsync.domain.ports import PolicyStore
    from iamsync.domain.reconciliation import ReconcileResult

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile IAM policies declaratively")
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Policy store backend: memory, sqlite or http (defaults to IAMSYNC_STORE)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every read-modify-write cycle",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    policy = subparsers.add_parser("policy", help="Authoritative whole-policy operations")
    policy_sub = policy.add_subparsers(dest="operation", required=True)
    for operation in ("create", "update"):
        policy_write = policy_sub.add_parser(operation, help="Replace all bindings")
        policy_write.add_argument("resource", help="Resource name")
        policy_write.add_argument(
            "--binding",
            dest="bindings",
            action="append",
            default=[],
            metavar="ROLE=MEMBER[,MEMBER...]",
            help="Binding to declare; repeat for several roles",
        )
    for operation in ("read", "delete"):
        policy_op = policy_sub.add_parser(operation, help=f"{operation.capitalize()} the policy")
        policy_op.add_argument("resource", help="Resource name")

    binding = subparsers.add_parser("binding", help="Authoritative per-role operations")
    binding_sub = binding.add_subparsers(dest="operation", required=True)
    for operation in ("create", "update"):
        binding_write = binding_sub.add_parser(operation, help="Declare all members of a role")
        binding_write.add_argument("resource", help="Resource name")
        binding_write.add_argument("role", help="Role name, e.g. roles/spanner.databaseReader")
        binding_write.add_argument(
            "--member",
            dest="members",
            action="append",
            default=[],
            help="Member of the role; repeat for several members",
        )
    for operation in ("read", "delete"):
        binding_op = binding_sub.add_parser(operation, help=f"{operation.capitalize()} a binding")
        binding_op.add_argument("resource", help="Resource name")
        binding_op.add_argument("role", help="Role name")

    member = subparsers.add_parser("member", help="Additive single-member operations")
    member_sub = member.add_subparsers(dest="operation", required=True)
    for operation in ("create", "read", "update", "delete"):
        member_op = member_sub.add_parser(operation, help=f"{operation.capitalize()} a member")
        member_op.add_argument("resource", help="Resource name")
        member_op.add_argument("role", help="Role name")
        member_op.add_argument("member", help="Member, e.g. user:alice@example.com")

    import_parser = subparsers.add_parser("import", help="Adopt existing policy state")
    import_sub = import_parser.add_subparsers(dest="operation", required=True)
    import_binding_parser = import_sub.add_parser("binding", help="Import a role binding")
    import_binding_parser.add_argument("import_id", help="{resource}/roles/{role}")
    import_member_parser = import_sub.add_parser("member", help="Import a role member")
    import_member_parser.add_argument(
        "import_id",
        help="{resource}/roles/{role}/members/{member}",
    )

    return parser.parse_args(list(argv))


def _parse_binding(value: str) -> Binding:
    role, separator, members = value.partition("=")
    if not separator or not role.strip():
        raise ValueError(f"Invalid binding {value!r}, expected ROLE=MEMBER[,MEMBER...]")
    principals = [member.strip() for member in members.split(",") if member.strip()]
    return Binding.of(role.strip(), principals)


def _policy_view(policy: Policy) -> dict[str, object]:
    return {
        "version": policy.version,
        "etag": policy.etag,
        "bindings": [
            {"role": role, "members": members} for role, members in policy.as_dict().items()
        ],
    }


def _result_view(result: ReconcileResult) -> dict[str, object]:
    return {
        "resource": result.resource_id,
        "changed": result.changed,
        "attempts": result.attempts,
        "policy": _policy_view(result.policy),
    }


def _run(args: argparse.Namespace, store: PolicyStore) -> dict[str, object]:  # noqa: C901, PLR0911
    command, operation = args.command, args.operation

    if command == "policy":
        if operation in {"create", "update"}:
            bindings = [_parse_binding(value) for value in args.bindings]
            return _result_view(apply_policy(args.resource, bindings, store=store))
        if operation == "read":
            return _policy_view(read_policy(args.resource, store=store))
        return _result_view(delete_policy(args.resource, store=store))

    if command == "binding":
        if operation == "create":
            return _result_view(create_binding(args.resource, args.role, args.members, store=store))
        if operation == "update":
            return _result_view(update_binding(args.resource, args.role, args.members, store=store))
        if operation == "read":
            found = read_binding(args.resource, args.role, store=store)
            return {"role": found.role, "members": found.sorted_principals()}
        return _result_view(delete_binding(args.resource, args.role, store=store))

    if command == "member":
        handlers = {
            "create": create_member,
            "update": update_member,
            "delete": delete_member,
        }
        if operation == "read":
            principal = read_member(args.resource, args.role, args.member, store=store)
            return {"role": args.role, "member": principal}
        return _result_view(handlers[operation](args.resource, args.role, args.member, store=store))

    if command == "import":
        if operation == "binding":
            found = import_binding(args.import_id, store=store)
            return {"role": found.role, "members": found.sorted_principals()}
        ref = import_member(args.import_id, store=store)
        return {"resource": ref.resource_id, "role": ref.role, "member": ref.principal}

    raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        backend = parse_store_backend(parsed_args.store) if parsed_args.store else None
        store = build_policy_store(backend)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        output = _run(parsed_args, store)
    except (ValueError, ConfigurationError):
        log.exception("Invalid arguments")
        sys.exit(EXIT_USAGE)
    except IamSyncError:
        log.exception("Reconciliation failed")
        sys.exit(EXIT_FAILURE)

    print(json.dumps(output, indent=2, sort_keys=True))
    sys.exit(EXIT_OK)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
