"""Pydantic models for the permission data model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Grant(BaseModel):
    """One role's access rights, and optional filter, on one resource."""

    role: str = Field(min_length=1)
    access: list[str] = Field(default_factory=list)
    filter: str | None = None

    @field_validator("filter")
    @classmethod
    def normalize_filter(cls, v: str | None) -> str | None:
        # "" and absent are the same state
        if v == "":
            return None
        return v


class Resource(BaseModel):
    """A protected resource and its ordered grants.

    Grants serialize under the external name ``permissions``.
    """

    model_config = ConfigDict(populate_by_name=True)

    uri: str = Field(min_length=1)
    grants: list[Grant] = Field(default_factory=list, alias="permissions")

    def grant_for(self, role: str) -> Grant | None:
        for grant in self.grants:
            if grant.role == role:
                return grant
        return None

    def has_role(self, role: str) -> bool:
        return self.grant_for(role) is not None


class Snapshot(BaseModel):
    """Read-only view of a model and its role index at one point in time."""

    model_config = ConfigDict(frozen=True)

    resources: tuple[Resource, ...] = ()
    roles: tuple[str, ...] = ()
