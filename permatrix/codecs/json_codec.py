"""Permission model <-> JSON document.

The document is an array of ``{"uri", "permissions": [{"role", "access",
"filter"?}]}`` objects. Field names are an external contract shared
with the access-control backend that ingests these files.

Decoding checks shape only. Duplicate URIs, or duplicate roles within a
resource, are accepted as given; uniqueness is enforced by the
interactive edit operations, not by bulk import.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from permatrix.errors import InvalidShapeError, ParseFailureError
from permatrix.model.models import Resource
from permatrix.model.permissions import PermissionModel

logger = logging.getLogger(__name__)

EXPECTED_ARRAY = "expected array"
MISSING_URI_OR_PERMISSIONS = "missing uri or permissions array"
MISSING_ROLE_OR_ACCESS = "missing role or access array"


def to_document(model: PermissionModel) -> list[dict[str, Any]]:
    """Plain-data form of *model*; ``filter`` appears only when set."""
    return [r.model_dump(by_alias=True, exclude_none=True) for r in model.resources]


def encode_json(model: PermissionModel, indent: int | None = 2) -> str:
    return json.dumps(to_document(model), indent=indent, ensure_ascii=False)


def _check_shape(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise InvalidShapeError(EXPECTED_ARRAY)

    for resource in data:
        if (
            not isinstance(resource, dict)
            or not resource.get("uri")
            or not isinstance(resource.get("permissions"), list)
        ):
            raise InvalidShapeError(MISSING_URI_OR_PERMISSIONS)

        for perm in resource["permissions"]:
            if (
                not isinstance(perm, dict)
                or not perm.get("role")
                or not isinstance(perm.get("access"), list)
            ):
                raise InvalidShapeError(MISSING_ROLE_OR_ACCESS)
    return data


def from_document(data: Any) -> PermissionModel:
    """Validate already-parsed data and build a model from it."""
    data = _check_shape(data)
    try:
        resources = [Resource.model_validate(item) for item in data]
    except ValidationError as exc:
        # Right shape, wrong value types (e.g. a numeric access entry)
        raise InvalidShapeError(str(exc)) from exc
    return PermissionModel(resources=resources)


def decode_json(text: str) -> PermissionModel:
    """Parse and validate a JSON document into a new PermissionModel.

    Raises ParseFailureError for malformed JSON and InvalidShapeError for
    a document of the wrong shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseFailureError(f"Error parsing JSON: {exc}") from exc

    model = from_document(data)
    logger.debug("decoded JSON: %d resource(s)", len(model.resources))
    return model
