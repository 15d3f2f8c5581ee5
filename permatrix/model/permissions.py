"""PermissionModel: ordered resources with per-role grants, plus edit operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, Field

from permatrix.catalog import DEFAULT_CATALOG, AccessCatalog
from permatrix.errors import (
    DuplicateResourceError,
    UnknownResourceError,
    UnknownRoleOnResourceError,
)
from permatrix.model.index import recompute_roles
from permatrix.model.models import Grant, Resource

logger = logging.getLogger(__name__)

# Access granted to a role when it is first attached to a resource.
DEFAULT_ACCESS: tuple[str, ...] = ("READ",)


class PermissionModel(BaseModel):
    """In-memory permission policy.

    The interactive operations below enforce unique URIs and one grant
    per role per resource. Bulk decoders may construct instances that
    do not satisfy those invariants; every lookup therefore resolves to
    the first match.
    """

    resources: list[Resource] = Field(default_factory=list)

    # -- Queries ---------------------------------------------------------------

    def resource(self, uri: str) -> Resource | None:
        for resource in self.resources:
            if resource.uri == uri:
                return resource
        return None

    def uris(self) -> list[str]:
        return [resource.uri for resource in self.resources]

    def roles(self) -> list[str]:
        """The role index: every role in any grant, sorted."""
        return recompute_roles(self.resources)

    def grant_for(self, role: str, uri: str) -> Grant | None:
        resource = self.resource(uri)
        if resource is None:
            return None
        return resource.grant_for(role)

    def query_access(self, role: str, uri: str, kind: str) -> bool:
        grant = self.grant_for(role, uri)
        return grant is not None and kind in grant.access

    def active_access(self, role: str, uri: str) -> list[str]:
        grant = self.grant_for(role, uri)
        return list(grant.access) if grant is not None else []

    def available_access(
        self, role: str, uri: str, catalog: AccessCatalog = DEFAULT_CATALOG
    ) -> list[str]:
        """Catalog kinds the role does not hold on the resource, in catalog order."""
        active = set(self.active_access(role, uri))
        return [kind for kind in catalog.kinds() if kind not in active]

    def get_filter(self, role: str, uri: str) -> str | None:
        grant = self.grant_for(role, uri)
        return grant.filter if grant is not None else None

    # -- Mutations -------------------------------------------------------------

    def add_resource(self, uri: str, initial_roles: Iterable[str] = ()) -> Resource | None:
        """Append a new resource with a READ grant for each initial role.

        A blank *uri* is ignored and returns None; blank role names are
        skipped. Raises DuplicateResourceError if *uri* is already present.
        """
        if not uri.strip():
            return None
        if self.resource(uri) is not None:
            raise DuplicateResourceError(uri)
        roles = [role for role in dict.fromkeys(initial_roles) if role.strip()]
        resource = Resource(
            uri=uri,
            grants=[Grant(role=role, access=list(DEFAULT_ACCESS)) for role in roles],
        )
        self.resources.append(resource)
        logger.debug("added resource %s with %d role(s)", uri, len(roles))
        return resource

    def remove_resource(self, uri: str) -> bool:
        """Remove *uri* if present. Returns whether anything was removed."""
        before = len(self.resources)
        self.resources = [r for r in self.resources if r.uri != uri]
        removed = len(self.resources) != before
        if removed:
            logger.debug("removed resource %s", uri)
        return removed

    def add_role(self, role: str) -> int:
        """Grant READ to *role* on every resource that lacks a grant for it.

        Returns the number of resources that gained a grant; a blank
        *role* is ignored.
        """
        if not role.strip():
            return 0
        added = 0
        for resource in self.resources:
            if resource.has_role(role):
                continue
            resource.grants.append(Grant(role=role, access=list(DEFAULT_ACCESS)))
            added += 1
        logger.debug("added role %s to %d resource(s)", role, added)
        return added

    def remove_role(self, role: str) -> int:
        """Drop *role* from every resource. Resources left without grants stay."""
        removed = 0
        for resource in self.resources:
            kept = [g for g in resource.grants if g.role != role]
            removed += len(resource.grants) - len(kept)
            resource.grants = kept
        logger.debug("removed role %s from %d grant(s)", role, removed)
        return removed

    def toggle_access(self, role: str, uri: str, kind: str) -> bool:
        """Flip *kind* in the grant's access list. Returns the new membership.

        A kind that is re-added goes to the end of the list.
        """
        grant = self._require_grant(role, uri)
        if kind in grant.access:
            grant.access.remove(kind)
            granted = False
        else:
            grant.access.append(kind)
            granted = True
        logger.debug("%s %s on %s for %s", "granted" if granted else "revoked", kind, uri, role)
        return granted

    def set_filter(self, role: str, uri: str, text: str) -> None:
        """Set the grant's filter; blank text clears it."""
        grant = self._require_grant(role, uri)
        grant.filter = text if text.strip() else None
        logger.debug("filter for %s on %s set to %r", role, uri, grant.filter)

    def _require_grant(self, role: str, uri: str) -> Grant:
        resource = self.resource(uri)
        if resource is None:
            raise UnknownResourceError(uri)
        grant = resource.grant_for(role)
        if grant is None:
            raise UnknownRoleOnResourceError(role, uri)
        return grant
