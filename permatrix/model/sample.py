"""Example policy used to seed a new editing session."""

from __future__ import annotations

from permatrix.model.models import Grant, Resource
from permatrix.model.permissions import PermissionModel


def sample_model() -> PermissionModel:
    """Return a fresh copy of the example policy."""
    return PermissionModel(
        resources=[
            Resource(
                uri="configuration/entityTypes",
                grants=[
                    Grant(
                        role="ACME_BUSINESS_ADMIN",
                        access=["CREATE", "READ", "UPDATE", "DELETE", "MERGE", "UNMERGE"],
                    ),
                    Grant(
                        role="ACME_DATA_STEWARD",
                        access=["CREATE", "READ", "UPDATE", "MERGE", "UNMERGE"],
                    ),
                    Grant(role="ACME_READ_ONLY", access=["READ"]),
                ],
            ),
            Resource(
                uri="configuration/relationTypes",
                grants=[
                    Grant(role="ACME_BUSINESS_ADMIN", access=["CREATE", "READ", "UPDATE", "DELETE"]),
                    Grant(role="ACME_DATA_STEWARD", access=["CREATE", "READ", "UPDATE", "DELETE"]),
                    Grant(role="ACME_READ_ONLY", access=["READ"]),
                ],
            ),
            Resource(
                uri="configuration/entityTypes/Organization",
                grants=[
                    Grant(
                        role="ACME_BUSINESS_ADMIN",
                        access=["CREATE", "READ", "UPDATE", "DELETE"],
                        filter='equals(attributes.Addresses.Country, "US")',
                    ),
                    Grant(role="ACME_DATA_STEWARD", access=["READ", "UPDATE"]),
                ],
            ),
        ]
    )
