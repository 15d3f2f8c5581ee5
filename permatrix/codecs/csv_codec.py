"""Permission matrix <-> comma-delimited text.

Layout: a header row ``Role,<uri>,<uri>,...`` followed by one row per
role. Each cell holds the role's access labels joined with ``|``, with
an optional suffix ``[Filtered: "<filter>"]`` where quotes inside the
filter are doubled.

Header cells and role names are written verbatim, so a URI or role that
contains a comma cannot be read back. Existing consumers depend on this
layout, which is why header cells stay unquoted.
"""

from __future__ import annotations

import logging

from permatrix.catalog import DEFAULT_CATALOG, AccessCatalog
from permatrix.errors import MalformedHeaderError, ParseFailureError
from permatrix.model.models import Grant, Resource
from permatrix.model.permissions import PermissionModel

logger = logging.getLogger(__name__)

HEADER_ROLE = "Role"
FILTER_MARKER = "[Filtered:"
ACCESS_SEPARATOR = "|"
CSV_EXPORT_FILENAME = "permission_matrix.csv"


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def quote_filter(text: str) -> str:
    """Wrap a filter expression in quotes, doubling any quotes inside it."""
    return '"' + text.replace('"', '""') + '"'


def encode_cell(grant: Grant | None, catalog: AccessCatalog = DEFAULT_CATALOG) -> str:
    if grant is None:
        return ""
    cell = ACCESS_SEPARATOR.join(catalog.label(kind) for kind in grant.access)
    if grant.filter:
        cell = f"{cell} {FILTER_MARKER} {quote_filter(grant.filter)}]"
    return cell


def encode_csv(model: PermissionModel, catalog: AccessCatalog = DEFAULT_CATALOG) -> str:
    """Render *model* as a roles x resources matrix."""
    rows = [",".join([HEADER_ROLE, *model.uris()])]
    for role in model.roles():
        cells = [role]
        for resource in model.resources:
            cells.append(encode_cell(resource.grant_for(role), catalog))
        rows.append(",".join(cells))
    return "\n".join(rows)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def split_row(line: str, line_no: int = 0) -> list[str]:
    """Split one data row on commas that are not inside quotes.

    Quote characters are kept in the cell text; doubled quotes are only
    unescaped later, inside the filter suffix. Cells are trimmed.
    """
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if in_quotes:
        raise ParseFailureError(f"Unterminated quoted field on line {line_no}")
    cells.append("".join(current).strip())
    return cells


def unquote_filter(raw: str) -> str:
    """Undo quote_filter on the text that follows the filter marker."""
    text = raw.strip()
    if text.endswith("]"):
        text = text[:-1].rstrip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text.replace('""', '"')


def decode_cell(cell: str, catalog: AccessCatalog = DEFAULT_CATALOG) -> tuple[list[str], str | None]:
    """Parse a non-empty cell into (access kinds, filter)."""
    filter_text: str | None = None
    marker = cell.find(FILTER_MARKER)
    if marker == -1:
        access_part = cell
    else:
        access_part = cell[:marker]
        filter_text = unquote_filter(cell[marker + len(FILTER_MARKER):]) or None

    access: list[str] = []
    for piece in access_part.split(ACCESS_SEPARATOR):
        label = piece.strip()
        if label:
            access.append(catalog.resolve(label))
    return access, filter_text


def _non_blank_lines(text: str) -> list[tuple[int, str]]:
    lines = []
    for line_no, line in enumerate(text.split("\n"), start=1):
        line = line.rstrip("\r")
        if line.strip():
            lines.append((line_no, line))
    return lines


def decode_csv(text: str, catalog: AccessCatalog = DEFAULT_CATALOG) -> PermissionModel:
    """Build a new PermissionModel from matrix text.

    Raises MalformedHeaderError or ParseFailureError. Nothing outside the
    returned model is touched, so callers can swap it in only on success.
    """
    lines = _non_blank_lines(text)
    if not lines:
        raise MalformedHeaderError(None)

    _, header_line = lines[0]
    headers = [cell.strip() for cell in header_line.split(",")]
    if headers[0] != HEADER_ROLE:
        raise MalformedHeaderError(headers[0])

    model = PermissionModel()
    by_uri: dict[str, Resource] = {}
    for uri in headers[1:]:
        if uri and uri not in by_uri:
            by_uri[uri] = Resource(uri=uri)
            model.resources.append(by_uri[uri])

    for line_no, line in lines[1:]:
        cells = split_row(line, line_no)
        role = cells[0]
        if not role:
            continue

        for column, uri in enumerate(headers[1:], start=1):
            if not uri or column >= len(cells) or not cells[column]:
                continue
            access, filter_text = decode_cell(cells[column], catalog)

            resource = by_uri[uri]
            grant = Grant(role=role, access=access, filter=filter_text)
            for i, existing in enumerate(resource.grants):
                if existing.role == role:
                    resource.grants[i] = grant
                    break
            else:
                resource.grants.append(grant)

    logger.debug(
        "decoded CSV: %d resource(s), %d data row(s)", len(model.resources), len(lines) - 1
    )
    return model
