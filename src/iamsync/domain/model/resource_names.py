"""Resource names and import ids for IAM-managed resources.

Supported resources:
- Spanner databases: ``projects/{project}/instances/{instance}/databases/{database}``
- Bigtable tables: ``projects/{project}/instances/{instance}/tables/{table}``

Import ids extend a resource name with the declarative unit being adopted:
- binding: ``{resource}/roles/{role}``
- member: ``{resource}/roles/{role}/members/{member}``

Roles keep their full name, so a predefined role ``roles/spanner.databaseReader`` appears
verbatim in the import id, and custom roles use
``[projects|organizations]/{parent}/roles/{name}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .errors import InvalidResourceNameError


class ResourceKind(StrEnum):
    SPANNER_DATABASE = "spanner_database"
    BIGTABLE_TABLE = "bigtable_table"


_SEGMENT: Final[str] = r"[A-Za-z0-9][A-Za-z0-9_.\-]*"
_COLLECTION_BY_KIND: Final[dict[str, ResourceKind]] = {
    "databases": ResourceKind.SPANNER_DATABASE,
    "tables": ResourceKind.BIGTABLE_TABLE,
}
_RESOURCE_PATTERN: Final[str] = (
    rf"projects/(?P<project>{_SEGMENT})"
    rf"/instances/(?P<instance>{_SEGMENT})"
    rf"/(?P<collection>databases|tables)/(?P<name>{_SEGMENT})"
)
_ROLE_PATTERN: Final[str] = (
    rf"(?P<role>roles/{_SEGMENT}|(?:projects|organizations)/{_SEGMENT}/roles/{_SEGMENT})"
)

RESOURCE_NAME_RE: Final[re.Pattern[str]] = re.compile(rf"^{_RESOURCE_PATTERN}$")
BINDING_IMPORT_ID_RE: Final[re.Pattern[str]] = re.compile(
    rf"^(?P<resource>{_RESOURCE_PATTERN})/{_ROLE_PATTERN}$"
)
MEMBER_IMPORT_ID_RE: Final[re.Pattern[str]] = re.compile(
    rf"^(?P<resource>{_RESOURCE_PATTERN})/{_ROLE_PATTERN}/members/(?P<member>[^/\s]+)$"
)


@dataclass(frozen=True, slots=True)
class ResourceName:
    kind: ResourceKind
    project: str
    instance: str
    name: str

    @property
    def collection(self) -> str:
        return "databases" if self.kind is ResourceKind.SPANNER_DATABASE else "tables"

    def __str__(self) -> str:
        return (
            f"projects/{self.project}/instances/{self.instance}/{self.collection}/{self.name}"
        )


@dataclass(frozen=True, slots=True)
class BindingRef:
    """Identifies the binding of one role on one resource."""

    resource: ResourceName
    role: str

    @property
    def resource_id(self) -> str:
        return str(self.resource)

    @property
    def import_id(self) -> str:
        return f"{self.resource}/{self.role}"


@dataclass(frozen=True, slots=True)
class MemberRef:
    """Identifies one principal within one role on one resource."""

    resource: ResourceName
    role: str
    principal: str

    @property
    def resource_id(self) -> str:
        return str(self.resource)

    @property
    def import_id(self) -> str:
        return f"{self.resource}/{self.role}/members/{self.principal}"


def parse_resource_name(value: str) -> ResourceName:
    match = RESOURCE_NAME_RE.match(value.strip())
    if match is None:
        raise InvalidResourceNameError(
            f"Invalid resource name ({value}), expected "
            "projects/{project}/instances/{instance}/databases/{database} or "
            "projects/{project}/instances/{instance}/tables/{table}",
            name=value,
        )
    return _resource_from_match(match)


def parse_binding_import_id(value: str) -> BindingRef:
    match = BINDING_IMPORT_ID_RE.match(value.strip())
    if match is None:
        raise InvalidResourceNameError(
            f"Invalid binding import id ({value}), expected {{resource}}/roles/{{role}}",
            name=value,
        )
    return BindingRef(resource=_resource_from_match(match), role=match.group("role"))


def parse_member_import_id(value: str) -> MemberRef:
    match = MEMBER_IMPORT_ID_RE.match(value.strip())
    if match is None:
        raise InvalidResourceNameError(
            f"Invalid member import id ({value}), expected "
            "{resource}/roles/{role}/members/{member}",
            name=value,
        )
    return MemberRef(
        resource=_resource_from_match(match),
        role=match.group("role"),
        principal=match.group("member"),
    )


def _resource_from_match(match: re.Match[str]) -> ResourceName:
    return ResourceName(
        kind=_COLLECTION_BY_KIND[match.group("collection")],
        project=match.group("project"),
        instance=match.group("instance"),
        name=match.group("name"),
    )
