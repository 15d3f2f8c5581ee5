"""Derived role index."""

from __future__ import annotations

from collections.abc import Iterable

from permatrix.model.models import Resource


def recompute_roles(resources: Iterable[Resource]) -> list[str]:
    """Return every role granted on any resource, de-duplicated and sorted."""
    return sorted({grant.role for resource in resources for grant in resource.grants})
