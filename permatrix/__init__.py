"""permatrix - role x resource permission matrices with CSV and JSON codecs."""

from permatrix.catalog import DEFAULT_CATALOG, AccessCatalog, AccessLookup, AccessType
from permatrix.codecs import decode_csv, decode_json, encode_csv, encode_json
from permatrix.config import PermatrixConfig, load_config
from permatrix.editor import PermissionEditor
from permatrix.errors import (
    DuplicateResourceError,
    InvalidShapeError,
    MalformedHeaderError,
    ParseFailureError,
    PermatrixError,
    UnknownResourceError,
    UnknownRoleOnResourceError,
)
from permatrix.model import Grant, PermissionModel, Resource, Snapshot, recompute_roles, sample_model

__version__ = "0.1.0"

__all__ = [
    "AccessCatalog",
    "AccessLookup",
    "AccessType",
    "DEFAULT_CATALOG",
    "DuplicateResourceError",
    "Grant",
    "InvalidShapeError",
    "MalformedHeaderError",
    "ParseFailureError",
    "PermatrixConfig",
    "PermatrixError",
    "PermissionEditor",
    "PermissionModel",
    "Resource",
    "Snapshot",
    "UnknownResourceError",
    "UnknownRoleOnResourceError",
    "decode_csv",
    "decode_json",
    "encode_csv",
    "encode_json",
    "load_config",
    "recompute_roles",
    "sample_model",
]
