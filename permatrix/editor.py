"""PermissionEditor: the live editing session a front end talks to.

The editor owns one PermissionModel and its role index. Edits apply in
place; imports decode into a detached model and replace the live one
only when decoding succeeds, so a failed import never leaves a partial
result behind. Confirmation prompts, clipboard access and file pickers
belong to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from permatrix.catalog import DEFAULT_CATALOG, AccessCatalog
from permatrix.codecs.csv_codec import decode_csv, encode_csv
from permatrix.codecs.json_codec import decode_json, encode_json
from permatrix.config.models import PermatrixConfig
from permatrix.errors import PermatrixError
from permatrix.model.index import recompute_roles
from permatrix.model.models import Grant, Resource, Snapshot
from permatrix.model.permissions import PermissionModel
from permatrix.model.sample import sample_model

logger = logging.getLogger(__name__)

Listener = Callable[[Snapshot], None]


class PermissionEditor:
    """Single-session owner of a permission model.

    Not thread-safe: hosts serving several users keep one editor per
    session and serialize calls into it.
    """

    def __init__(
        self,
        model: PermissionModel | None = None,
        catalog: AccessCatalog = DEFAULT_CATALOG,
        json_indent: int | None = 2,
    ) -> None:
        self.catalog = catalog
        self.json_indent = json_indent
        self._model = model if model is not None else PermissionModel()
        self._roles: list[str] = recompute_roles(self._model.resources)
        self._listeners: list[Listener] = []

    @classmethod
    def from_config(cls, config: PermatrixConfig) -> PermissionEditor:
        catalog = DEFAULT_CATALOG.extend(config.access_types)
        model = sample_model() if config.seed == "example" else PermissionModel()
        return cls(model=model, catalog=catalog, json_indent=config.json_.indent)

    # -- Read access -----------------------------------------------------------

    @property
    def roles(self) -> list[str]:
        return list(self._roles)

    @property
    def resources(self) -> list[Resource]:
        return [r.model_copy(deep=True) for r in self._model.resources]

    def snapshot(self) -> Snapshot:
        return Snapshot(
            resources=tuple(self.resources),
            roles=tuple(self._roles),
        )

    def uris(self) -> list[str]:
        return self._model.uris()

    def grant_for(self, role: str, uri: str) -> Grant | None:
        grant = self._model.grant_for(role, uri)
        return grant.model_copy(deep=True) if grant is not None else None

    def query_access(self, role: str, uri: str, kind: str) -> bool:
        return self._model.query_access(role, uri, kind)

    def active_access(self, role: str, uri: str) -> list[str]:
        return self._model.active_access(role, uri)

    def available_access(self, role: str, uri: str) -> list[str]:
        return self._model.available_access(role, uri, self.catalog)

    def get_filter(self, role: str, uri: str) -> str | None:
        return self._model.get_filter(role, uri)

    # -- Change notification ---------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a fresh snapshot after every change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self._roles = recompute_roles(self._model.resources)
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Change listener %r failed", listener)

    # -- Edits -----------------------------------------------------------------

    def add_resource(self, uri: str, initial_roles: Iterable[str] | None = None) -> Resource | None:
        """Add a resource. Without *initial_roles*, every known role gets READ.

        Blank URIs are ignored. Raises DuplicateResourceError.
        """
        roles = self._roles if initial_roles is None else initial_roles
        try:
            resource = self._model.add_resource(uri, roles)
        except PermatrixError as exc:
            logger.warning("add_resource rejected: %s", exc)
            raise
        if resource is None:
            return None
        self._changed()
        return resource.model_copy(deep=True)

    def remove_resource(self, uri: str) -> bool:
        removed = self._model.remove_resource(uri)
        self._changed()
        return removed

    def add_role(self, role: str) -> int:
        """Give *role* READ on every resource lacking it. Blank names are ignored."""
        added = self._model.add_role(role)
        if added:
            self._changed()
        return added

    def remove_role(self, role: str) -> int:
        removed = self._model.remove_role(role)
        self._changed()
        return removed

    def toggle_access(self, role: str, uri: str, kind: str) -> bool:
        try:
            granted = self._model.toggle_access(role, uri, kind)
        except PermatrixError as exc:
            logger.warning("toggle_access rejected: %s", exc)
            raise
        self._changed()
        return granted

    def set_filter(self, role: str, uri: str, text: str) -> None:
        try:
            self._model.set_filter(role, uri, text)
        except PermatrixError as exc:
            logger.warning("set_filter rejected: %s", exc)
            raise
        self._changed()

    # -- Import / export -------------------------------------------------------

    def replace(self, model: PermissionModel) -> None:
        """Install *model* wholesale as the live model."""
        self._model = model
        self._changed()

    def encode_csv(self) -> str:
        return encode_csv(self._model, self.catalog)

    def encode_json(self) -> str:
        return encode_json(self._model, indent=self.json_indent)

    def decode_csv(self, text: str) -> None:
        """Replace the live model with the matrix in *text*.

        Raises MalformedHeaderError or ParseFailureError, leaving the
        live model as it was.
        """
        try:
            candidate = decode_csv(text, self.catalog)
        except PermatrixError as exc:
            logger.warning("CSV import failed: %s", exc)
            raise
        self.replace(candidate)
        logger.info(
            "imported CSV: %d resource(s), %d role(s)", len(candidate.resources), len(self._roles)
        )

    def decode_json(self, text: str) -> None:
        """Replace the live model with the JSON document in *text*.

        Raises ParseFailureError or InvalidShapeError, leaving the live
        model as it was.
        """
        try:
            candidate = decode_json(text)
        except PermatrixError as exc:
            logger.warning("JSON import failed: %s", exc)
            raise
        self.replace(candidate)
        logger.info(
            "imported JSON: %d resource(s), %d role(s)", len(candidate.resources), len(self._roles)
        )
