"""Checkpoint ledger: immutable run manifests linked by parent id."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from pathlib import Path

from splice.core.canonical import canonical_dumps, fingerprint_value
from splice.core.errors import NotFoundError, SpliceError, atomic_write
from splice.core.models import (
    SCHEMA_VERSION,
    CheckpointManifest,
    SourceRef,
    TransformRecord,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"[A-Za-z0-9._-]+")


def checkpoint_id_for(manifest: CheckpointManifest, created_at: str) -> str:
    """Timestamp plus a short hash of the manifest's structural basis.

    Identical runs at different times get different ids that still share
    the same hash suffix.
    """
    stamp = re.sub(r"[:.+]", "-", created_at)
    short = fingerprint_value(manifest.structural_basis())[:8]
    return f"{stamp}-{short}"


class CheckpointLedger:
    """Filesystem-backed manifest storage under ``<workspace>/checkpoints``."""

    def __init__(self, workspace_dir: str | Path):
        self.root = Path(workspace_dir).expanduser().resolve()
        self.checkpoints_dir = self.root / "checkpoints"
        self.checkpoints_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, checkpoint_id: str) -> Path:
        return self.checkpoints_dir / f"{checkpoint_id}.json"

    def save_checkpoint(self, manifest: CheckpointManifest) -> str:
        """Persist a manifest, filling id, createdAt and schemaVersion when absent.

        Returns the checkpoint id. Existing manifests are never replaced.
        """
        created_at = manifest.created_at or utc_now_iso()
        checkpoint_id = manifest.id
        if not checkpoint_id:
            base = checkpoint_id_for(manifest, created_at)
            checkpoint_id = base
            n = 1
            while self._path(checkpoint_id).exists():
                checkpoint_id = f"{base}-{n}"
                n += 1
        elif not _ID_RE.fullmatch(checkpoint_id):
            msg = f"Invalid checkpoint id: {checkpoint_id!r}"
            raise SpliceError(msg)
        elif self._path(checkpoint_id).exists():
            msg = f"Checkpoint already exists: {checkpoint_id}"
            raise SpliceError(msg)

        full = replace(
            manifest,
            id=checkpoint_id,
            created_at=created_at,
            schema_version=manifest.schema_version or SCHEMA_VERSION,
        )
        atomic_write(self._path(checkpoint_id), canonical_dumps(full.to_dict()))
        logger.info("save_checkpoint: %s", checkpoint_id)
        return checkpoint_id

    def read_checkpoint(self, checkpoint_id: str) -> CheckpointManifest:
        path = self._path(checkpoint_id)
        if not _ID_RE.fullmatch(checkpoint_id or "") or not path.exists():
            msg = f"Checkpoint not found: {checkpoint_id}"
            raise NotFoundError(msg)
        return CheckpointManifest.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def list_checkpoints(self) -> list[CheckpointManifest]:
        """All readable manifests, oldest first by createdAt."""
        manifests: list[CheckpointManifest] = []
        for path in self.checkpoints_dir.glob("*.json"):
            try:
                manifests.append(CheckpointManifest.from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping unreadable checkpoint %s: %s", path.name, e)
        manifests.sort(key=lambda m: (m.created_at or "", m.id))
        return manifests

    def resolve_latest_checkpoint(self) -> CheckpointManifest | None:
        manifests = self.list_checkpoints()
        if not manifests:
            return None
        return manifests[-1]

    def checkpoint_chain(self, checkpoint_id: str) -> list[CheckpointManifest]:
        """Walk parent links from a checkpoint back to the first run (newest first).

        Stops at a missing parent or a repeated id.
        """
        chain: list[CheckpointManifest] = [self.read_checkpoint(checkpoint_id)]
        seen = {checkpoint_id}
        parent_id = chain[0].parent_id
        while parent_id and parent_id not in seen:
            seen.add(parent_id)
            try:
                parent = self.read_checkpoint(parent_id)
            except NotFoundError:
                logger.warning("Checkpoint %s references missing parent %s", chain[-1].id, parent_id)
                break
            chain.append(parent)
            parent_id = parent.parent_id
        return chain


def create_checkpoint_manifest(
    items_ref: str,
    parent_id: str | None = None,
    source_refs: list[SourceRef] | None = None,
    transforms: list[TransformRecord] | None = None,
    decisions_ref: str | None = None,
    materialized: dict[str, str] | None = None,
    notes: str | None = None,
) -> CheckpointManifest:
    """Build an unsaved manifest stamped with the current time."""
    return CheckpointManifest(
        id="",
        created_at=utc_now_iso(),
        schema_version=SCHEMA_VERSION,
        parent_id=parent_id,
        source_refs=list(source_refs or []),
        items_ref=items_ref,
        transforms=list(transforms or []),
        decisions_ref=decisions_ref,
        materialized=materialized,
        notes=notes,
    )
