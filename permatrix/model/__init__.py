"""Permission data model: grants, resources, and the role index."""

from permatrix.model.index import recompute_roles
from permatrix.model.models import Grant, Resource, Snapshot
from permatrix.model.permissions import DEFAULT_ACCESS, PermissionModel
from permatrix.model.sample import sample_model

__all__ = [
    "DEFAULT_ACCESS",
    "Grant",
    "PermissionModel",
    "Resource",
    "Snapshot",
    "recompute_roles",
    "sample_model",
]
