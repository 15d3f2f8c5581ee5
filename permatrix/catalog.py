"""Access catalog: the closed set of known access kinds and their labels."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

# Badge colors used for kinds the catalog does not know.
_FALLBACK_COLOR = "#f0f0f0"
_FALLBACK_TEXT_COLOR = "#333333"


class AccessType(BaseModel):
    """One access kind with its display label.

    Colors are presentation metadata and are never read by the model or
    the codecs.
    """

    model_config = ConfigDict(frozen=True)

    kind: str = Field(min_length=1)
    label: str = Field(min_length=1)
    color: str = _FALLBACK_COLOR
    text_color: str = _FALLBACK_TEXT_COLOR


class AccessLookup(BaseModel):
    """Result of looking up a kind in the catalog."""

    model_config = ConfigDict(frozen=True)

    kind: str
    label: str
    known: bool
    color: str = _FALLBACK_COLOR
    text_color: str = _FALLBACK_TEXT_COLOR


BUILTIN_ACCESS_TYPES: tuple[AccessType, ...] = (
    AccessType(kind="READ", label="Read", color="#e6f7ff", text_color="#0066cc"),
    AccessType(kind="READ_MASKED", label="Read Masked", color="#ffe6f7", text_color="#cc0066"),
    AccessType(kind="CREATE", label="Create", color="#d9f7be", text_color="#389e0d"),
    AccessType(kind="UPDATE", label="Update", color="#fff1b8", text_color="#d48806"),
    AccessType(kind="DELETE", label="Delete", color="#ffccc7", text_color="#cf1322"),
    AccessType(kind="MERGE", label="Merge", color="#d3adf7", text_color="#722ed1"),
    AccessType(kind="UNMERGE", label="Unmerge", color="#ffd8bf", text_color="#d46b08"),
    AccessType(
        kind="INITIATE_CHANGE_REQUEST", label="Initiate Change", color="#d9d9d9", text_color="#434343"
    ),
    AccessType(
        kind="ACCEPT_CHANGE_REQUEST", label="Accept Change", color="#b5f5ec", text_color="#006d75"
    ),
)


class AccessCatalog:
    """Immutable registry mapping access kinds to labels.

    Unknown kinds are tolerated everywhere: they look up as their own
    label so data written by a newer catalog passes through untouched.
    """

    def __init__(self, access_types: Iterable[AccessType] = BUILTIN_ACCESS_TYPES) -> None:
        entries: dict[str, AccessType] = {}
        for entry in access_types:
            if entry.kind in entries:
                raise ValueError(f"Duplicate access kind in catalog: {entry.kind!r}")
            entries[entry.kind] = entry
        self._entries = entries

    def extend(self, extra: Iterable[AccessType]) -> AccessCatalog:
        """Return a new catalog with *extra* kinds appended after the current ones."""
        return AccessCatalog([*self._entries.values(), *extra])

    def __contains__(self, kind: object) -> bool:
        return kind in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def kinds(self) -> list[str]:
        """Known kind identifiers in catalog order."""
        return list(self._entries)

    def lookup(self, kind: str) -> AccessLookup:
        entry = self._entries.get(kind)
        if entry is None:
            return AccessLookup(kind=kind, label=kind, known=False)
        return AccessLookup(
            kind=kind,
            label=entry.label,
            known=True,
            color=entry.color,
            text_color=entry.text_color,
        )

    def label(self, kind: str) -> str:
        return self.lookup(kind).label

    def resolve(self, label: str) -> str:
        """Map a display label back to a kind.

        Exact label match wins, then a case-insensitive match; anything
        else is taken to be a raw kind identifier.
        """
        for entry in self._entries.values():
            if entry.label == label:
                return entry.kind
        folded = label.casefold()
        for entry in self._entries.values():
            if entry.label.casefold() == folded:
                return entry.kind
        return label


DEFAULT_CATALOG = AccessCatalog()


def lookup(kind: str) -> AccessLookup:
    """Look up *kind* in the default catalog."""
    return DEFAULT_CATALOG.lookup(kind)
