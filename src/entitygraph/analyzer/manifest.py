"""Manifest persistence, staleness detection and suggestion lifecycle.

The manifest is a single pretty-printed JSON file recording the last analyzed
state of the domain plus every transitive suggestion and its review status.

Staleness uses a SHA-256 over the sorted entity files (relative path +
contents). A manifest that is missing, unreadable, malformed or written with
another schema version is treated as absent and never raises.

Suggestion decisions survive re-scans:
- a re-detected suggestion keeps its status, detectedAt and resolvedAt
- an accepted/skipped suggestion that is no longer detected is kept as-is
- a pending suggestion that is no longer detected is dropped
"""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from entitygraph.analyzer.graph import find_circular_dependencies, find_orphan_entities
from entitygraph.analyzer.models import (
    Manifest,
    ManifestEdge,
    ManifestEntity,
    ManifestField,
    ManifestForeignKey,
    ManifestGraph,
    ManifestRelationship,
    ManifestStatistics,
    ManifestSuggestion,
    ManifestSuggestions,
)
from entitygraph.config.constants import MANIFEST_VERSION, SUGGESTION_ID_SEPARATOR
from entitygraph.config.models import ManifestConfig
from entitygraph.core.errors import ManifestError
from entitygraph.parser.discovery import discover_entity_files

if TYPE_CHECKING:
    from collections.abc import Iterable

    from entitygraph.analyzer.models import (
        AnalysisResult,
        Entity,
        ResolvedStatus,
        TransitiveSuggestion,
    )

logger = structlog.get_logger()

UNREADABLE_MARKER = b"<unreadable>"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, ``Z`` suffixed."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def suggestion_id(source: str, target: str) -> str:
    return f"{source}{SUGGESTION_ID_SEPARATOR}{target}"


def compute_entity_files_hash(entities_dir: Path) -> str:
    """Hash every entity definition file under ``entities_dir``.

    Files are visited in sorted order and contribute their path relative to
    ``entities_dir`` plus their bytes, each length-prefixed, so renames and
    edits both change the hash. A file that cannot be read contributes a fixed
    marker instead; the loader reports it. A missing directory hashes like an
    empty one.
    """
    hasher = hashlib.sha256()
    for path in discover_entity_files(entities_dir):
        rel_path = path.relative_to(entities_dir).as_posix().encode()
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.warning("entity_file_unhashable", path=str(path), error=str(e))
            content = UNREADABLE_MARKER
        for chunk in (rel_path, content):
            hasher.update(len(chunk).to_bytes(8, "big"))
            hasher.update(chunk)
    return hasher.hexdigest()


def to_manifest_entity(entity: Entity) -> ManifestEntity:
    fields = {
        name: ManifestField(
            name=f.name,
            type=f.type,
            required=f.required,
            nullable=f.nullable,
            unique=f.unique,
            index=f.index,
            foreign_key=(
                ManifestForeignKey(table=f.foreign_key.table, column=f.foreign_key.column)
                if f.foreign_key
                else None
            ),
            choices=list(f.choices) if f.choices is not None else None,
        )
        for name, f in entity.fields.items()
    }
    relationships = {
        name: ManifestRelationship(
            type=rel.type,
            target=rel.target,
            foreign_key=rel.foreign_key,
            through=rel.through,
            inverse=rel.inverse,
        )
        for name, rel in entity.relationships.items()
    }
    return ManifestEntity(
        source_path=entity.source_path,
        table=entity.table,
        plural=entity.plural,
        fields=fields,
        relationships=relationships,
        behaviors=list(entity.behaviors),
    )


def merge_suggestions(
    detected: Iterable[TransitiveSuggestion],
    existing: Manifest | None = None,
    *,
    now: str | None = None,
) -> list[ManifestSuggestion]:
    """Merge freshly detected suggestions with previously recorded decisions.

    When several detected paths share an id, the first one wins.
    """
    now = now or utc_timestamp()
    previous = {s.id: s for s in existing.suggestions.transitive} if existing else {}

    merged: dict[str, ManifestSuggestion] = {}
    for suggestion in detected:
        path = suggestion.path
        sid = suggestion_id(path.source, path.target)
        if sid in merged:
            continue

        prior = previous.pop(sid, None)
        merged[sid] = ManifestSuggestion(
            id=sid,
            source=path.source,
            target=path.target,
            through_path=path.through_path,
            suggested_name=path.suggested_name,
            yaml_snippet=path.yaml_snippet,
            status=prior.status if prior else "pending",
            detected_at=prior.detected_at if prior else now,
            resolved_at=prior.resolved_at if prior else None,
        )

    kept = [s for s in previous.values() if s.status != "pending"]
    dropped = len(previous) - len(kept)
    if dropped:
        logger.debug("pending_suggestions_dropped", count=dropped)

    return [*merged.values(), *kept]


class ManifestStore:
    """Reads and writes one project's manifest.

    The manifest location comes from ``ManifestConfig``; relative directories
    resolve against ``project_root``. Assumes a single writer at a time.
    """

    def __init__(self, project_root: Path, config: ManifestConfig | None = None) -> None:
        self.project_root = project_root
        self.config = config or ManifestConfig()

    @property
    def directory(self) -> Path:
        return self.project_root / self.config.directory

    @property
    def path(self) -> Path:
        return self.directory / self.config.file_name

    # -------------------------------------------------------------------------
    # I/O
    # -------------------------------------------------------------------------

    def read(self) -> Manifest | None:
        """Load the manifest, or None if absent, unreadable or outdated."""
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("manifest_unreadable", path=str(self.path), error=str(e))
            return None

        version = data.get("version") if isinstance(data, dict) else None
        # bool and float compare equal to int
        if type(version) is not int or version != MANIFEST_VERSION:
            logger.warning(
                "manifest_version_mismatch",
                path=str(self.path),
                found=version,
                expected=MANIFEST_VERSION,
            )
            return None

        try:
            return Manifest.model_validate(data)
        except ValidationError as e:
            logger.warning("manifest_invalid", path=str(self.path), errors=e.error_count())
            return None

    def write(self, manifest: Manifest) -> None:
        """Write the manifest, creating its directory if needed.

        Raises:
            ManifestError: If the file cannot be written.
        """
        content = manifest.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content + "\n", encoding="utf-8")
        except OSError as e:
            raise ManifestError.write_failed(str(self.path), str(e)) from e

        logger.info(
            "manifest_written",
            path=str(self.path),
            suggestions=len(manifest.suggestions.transitive),
        )

    def is_stale(self, entities_dir: Path) -> bool:
        """True if there is no usable manifest or entity files changed since it was built."""
        manifest = self.read()
        if manifest is None:
            return True
        return manifest.entity_files_hash != compute_entity_files_hash(entities_dir)

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def build(
        self,
        analysis: AnalysisResult,
        suggestions: list[TransitiveSuggestion],
        entities_dir: Path,
        existing: Manifest | None = None,
    ) -> Manifest:
        """Build a manifest from an analysis pass, merging prior suggestion state."""
        graph = analysis.graph
        now = utc_timestamp()

        return Manifest(
            version=MANIFEST_VERSION,
            generated_at=now,
            entity_files_hash=compute_entity_files_hash(entities_dir),
            entities={e.name: to_manifest_entity(e) for e in analysis.entities},
            graph=ManifestGraph(
                edges=[
                    ManifestEdge(
                        source=edge.source,
                        target=edge.target,
                        relationship=edge.relationship.name,
                        cardinality=edge.cardinality,
                        bidirectional=edge.bidirectional,
                    )
                    for edge in graph.edges
                ],
                orphans=find_orphan_entities(graph),
                cycles=find_circular_dependencies(graph),
            ),
            suggestions=ManifestSuggestions(
                transitive=merge_suggestions(suggestions, existing, now=now)
            ),
            statistics=ManifestStatistics(
                total_entities=analysis.statistics.total_entities,
                total_fields=analysis.statistics.total_fields,
                total_relationships=analysis.statistics.total_relationships,
                transitive_paths_detected=len(suggestions),
            ),
        )

    # -------------------------------------------------------------------------
    # Suggestion lifecycle
    # -------------------------------------------------------------------------

    def get_suggestion(self, sid: str) -> ManifestSuggestion | None:
        manifest = self.read()
        if manifest is None:
            return None
        return next((s for s in manifest.suggestions.transitive if s.id == sid), None)

    def get_pending_suggestions(self) -> list[ManifestSuggestion]:
        manifest = self.read()
        if manifest is None:
            return []
        return [s for s in manifest.suggestions.transitive if s.status == "pending"]

    def update_suggestion_status(self, sid: str, status: ResolvedStatus) -> bool:
        """Set one suggestion's status. Returns False if it does not exist."""
        manifest = self.read()
        if manifest is None:
            return False

        suggestion = next((s for s in manifest.suggestions.transitive if s.id == sid), None)
        if suggestion is None:
            logger.debug("suggestion_not_found", id=sid)
            return False

        suggestion.status = status
        suggestion.resolved_at = utc_timestamp()
        self.write(manifest)
        return True

    def update_all_suggestion_status(self, status: ResolvedStatus) -> int:
        """Set the status of every pending suggestion. Returns how many changed."""
        manifest = self.read()
        if manifest is None:
            return 0

        now = utc_timestamp()
        pending = [s for s in manifest.suggestions.transitive if s.status == "pending"]
        for suggestion in pending:
            suggestion.status = status
            suggestion.resolved_at = now

        if pending:
            self.write(manifest)
        return len(pending)
