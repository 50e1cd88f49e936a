"""Tests for analyzer/manifest.py.

Covers:
- compute_entity_files_hash() staleness hashing
- merge_suggestions(): decision preservation and pending drop
- ManifestStore read/write, staleness and suggestion lifecycle
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from entitygraph.analyzer.manifest import (
    ManifestStore,
    compute_entity_files_hash,
    merge_suggestions,
    suggestion_id,
    utc_timestamp,
)
from entitygraph.analyzer.models import (
    AnalysisIssue,
    AnalysisResult,
    DomainGraph,
    Manifest,
    ManifestSuggestion,
    ManifestSuggestions,
    PathHop,
    Severity,
    TransitivePath,
    TransitiveSuggestion,
)
from entitygraph.analyzer.statistics import compute_statistics
from entitygraph.analyzer.transitive import suggest_transitive_relationships
from entitygraph.config.constants import MANIFEST_VERSION
from entitygraph.config.models import ManifestConfig
from entitygraph.core.errors import ErrorCode, ManifestError

OLD_TIME = "2024-01-01T00:00:00.000Z"


def _suggestion(source: str, target: str, through: str = "a.b") -> TransitiveSuggestion:
    hops = tuple(
        PathHop(via=source, relationship=name, foreign_key="id") for name in through.split(".")
    )
    path = TransitivePath(
        source=source,
        target=target,
        hops=hops,
        suggested_name=f"x_{target}",
        through_path=through,
        yaml_snippet="snippet",
    )
    issue = AnalysisIssue(severity=Severity.INFO, type="transitive_suggestion", message="m")
    return TransitiveSuggestion(issue=issue, path=path)


def _recorded(source: str, target: str, status: str = "pending") -> ManifestSuggestion:
    return ManifestSuggestion(
        id=suggestion_id(source, target),
        source=source,
        target=target,
        through_path="old.path",
        suggested_name="old_name",
        yaml_snippet="old",
        status=status,  # type: ignore[arg-type]
        detected_at=OLD_TIME,
        resolved_at=OLD_TIME if status != "pending" else None,
    )


def _manifest(*suggestions: ManifestSuggestion) -> Manifest:
    return Manifest(
        generated_at=OLD_TIME,
        entity_files_hash="abc",
        suggestions=ManifestSuggestions(transitive=list(suggestions)),
    )


def _analysis(graph: DomainGraph) -> AnalysisResult:
    return AnalysisResult(
        entities=list(graph.entities.values()),
        graph=graph,
        issues=[],
        statistics=compute_statistics(graph),
    )


class TestUtilities:
    def test_suggestion_id_joins_source_and_target(self) -> None:
        assert suggestion_id("person", "action_item") == "person->action_item"

    def test_timestamp_is_utc_with_milliseconds(self) -> None:
        stamp = utc_timestamp()
        assert stamp.endswith("Z")
        assert len(stamp) == len("2024-01-01T00:00:00.000Z")


class TestComputeEntityFilesHash:
    """Content hashing over entity definition files."""

    def test_given_unchanged_files_when_hashed_twice_then_equal(self, tmp_path: Path) -> None:
        (tmp_path / "a.yaml").write_text("entity: a\n")
        (tmp_path / "b.yml").write_text("entity: b\n")

        assert compute_entity_files_hash(tmp_path) == compute_entity_files_hash(tmp_path)

    def test_given_one_byte_changed_when_hashed_then_differs(self, tmp_path: Path) -> None:
        # Given
        target = tmp_path / "a.yaml"
        target.write_text("entity: a\n")
        before = compute_entity_files_hash(tmp_path)

        # When
        target.write_text("entity: b\n")

        # Then
        assert compute_entity_files_hash(tmp_path) != before

    def test_given_renamed_file_when_hashed_then_differs(self, tmp_path: Path) -> None:
        (tmp_path / "a.yaml").write_text("entity: a\n")
        before = compute_entity_files_hash(tmp_path)

        (tmp_path / "a.yaml").rename(tmp_path / "b.yaml")

        assert compute_entity_files_hash(tmp_path) != before

    def test_given_non_entity_files_when_hashed_then_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "a.yaml").write_text("entity: a\n")
        before = compute_entity_files_hash(tmp_path)

        (tmp_path / "README.md").write_text("notes")

        assert compute_entity_files_hash(tmp_path) == before

    def test_given_missing_dir_when_hashed_then_same_as_empty(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        assert compute_entity_files_hash(tmp_path / "missing") == compute_entity_files_hash(empty)

    def test_given_content_moved_into_path_boundary_when_hashed_then_differs(
        self, tmp_path: Path
    ) -> None:
        """Path and content boundaries are part of the hash."""
        # Given
        split = tmp_path / "split"
        split.mkdir()
        (split / "a.yaml").write_text("")
        (split / "b.yaml").write_text("X")
        joined = tmp_path / "joined"
        joined.mkdir()
        (joined / "a.yaml").write_text("b.yamlX")

        # Then
        assert compute_entity_files_hash(split) != compute_entity_files_hash(joined)

    def test_given_unreadable_file_when_hashed_then_stable_marker(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given
        (tmp_path / "a.yaml").write_text("entity: a\n")
        (tmp_path / "zz.yaml").write_text("entity: z\n")
        readable = compute_entity_files_hash(tmp_path)
        real_read_bytes = Path.read_bytes

        def read_bytes(self: Path) -> bytes:
            if self.name == "zz.yaml":
                raise OSError(5, "Input/output error")
            return real_read_bytes(self)

        monkeypatch.setattr(Path, "read_bytes", read_bytes)

        # When
        first = compute_entity_files_hash(tmp_path)
        second = compute_entity_files_hash(tmp_path)

        # Then
        assert first == second
        assert first != readable


class TestMergeSuggestions:
    """Cross-run reconciliation of suggestion decisions."""

    def test_given_no_previous_manifest_when_merged_then_all_pending_now(self) -> None:
        merged = merge_suggestions([_suggestion("person", "action_item")], now="NOW")

        assert len(merged) == 1
        assert merged[0].id == "person->action_item"
        assert merged[0].status == "pending"
        assert merged[0].detected_at == "NOW"
        assert merged[0].resolved_at is None

    def test_given_accepted_and_redetected_when_merged_then_decision_kept(self) -> None:
        """Status and timestamps carry over; descriptive fields refresh."""
        # Given
        existing = _manifest(_recorded("person", "action_item", "accepted"))

        # When
        (merged,) = merge_suggestions(
            [_suggestion("person", "action_item", "meetings.action_items")], existing, now="NOW"
        )

        # Then
        assert merged.status == "accepted"
        assert merged.detected_at == OLD_TIME
        assert merged.resolved_at == OLD_TIME
        assert merged.through_path == "meetings.action_items"
        assert merged.suggested_name == "x_action_item"

    def test_given_accepted_and_gone_when_merged_then_retained_unchanged(self) -> None:
        recorded = _recorded("person", "action_item", "accepted")
        existing = _manifest(recorded)

        merged = merge_suggestions([], existing, now="NOW")

        assert merged == [recorded]

    def test_given_skipped_and_gone_when_merged_then_retained(self) -> None:
        existing = _manifest(_recorded("a", "c", "skipped"))
        merged = merge_suggestions([], existing, now="NOW")
        assert [s.id for s in merged] == ["a->c"]

    def test_given_pending_and_gone_when_merged_then_dropped(self) -> None:
        existing = _manifest(_recorded("person", "action_item"))
        assert merge_suggestions([], existing, now="NOW") == []

    def test_given_pending_and_redetected_when_merged_then_original_detection_time(self) -> None:
        existing = _manifest(_recorded("person", "action_item"))
        (merged,) = merge_suggestions([_suggestion("person", "action_item")], existing, now="NOW")
        assert merged.status == "pending"
        assert merged.detected_at == OLD_TIME

    def test_given_duplicate_ids_when_merged_then_first_path_wins(self) -> None:
        detected = [_suggestion("a", "d", "bs.ds"), _suggestion("a", "d", "bs.cs.ds")]
        merged = merge_suggestions(detected, now="NOW")
        assert [(s.id, s.through_path) for s in merged] == [("a->d", "bs.ds")]


class TestManifestStoreIO:
    """Read/write behavior and tolerance of broken manifests."""

    def test_given_custom_config_when_constructed_then_path_follows_config(
        self, tmp_path: Path
    ) -> None:
        store = ManifestStore(tmp_path, ManifestConfig(directory="out/meta", file_name="m.json"))
        assert store.path == tmp_path / "out" / "meta" / "m.json"

    def test_given_default_config_when_constructed_then_hidden_codegen_dir(
        self, tmp_path: Path
    ) -> None:
        assert ManifestStore(tmp_path).path == tmp_path / ".codegen" / "manifest.json"

    def test_given_manifest_when_written_then_pretty_camel_case_json(self, tmp_path: Path) -> None:
        # Given
        store = ManifestStore(tmp_path)
        manifest = _manifest(_recorded("person", "action_item", "accepted"))

        # When
        store.write(manifest)

        # Then
        text = store.path.read_text()
        data = json.loads(text)
        assert text.startswith("{\n  ")
        assert data["version"] == MANIFEST_VERSION
        assert data["entityFilesHash"] == "abc"
        assert data["suggestions"]["transitive"][0]["detectedAt"] == OLD_TIME
        assert data["suggestions"]["transitive"][0]["throughPath"] == "old.path"

    def test_given_written_manifest_when_read_then_round_trips(self, tmp_path: Path) -> None:
        store = ManifestStore(tmp_path)
        manifest = _manifest(_recorded("a", "c"))
        store.write(manifest)

        assert store.read() == manifest

    def test_given_no_manifest_when_read_then_none(self, tmp_path: Path) -> None:
        assert ManifestStore(tmp_path).read() is None

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[1, 2, 3]",
            '{"version": 999, "generatedAt": "x", "entityFilesHash": "y"}',
            '{"version": 1, "entities": "wrong"}',
        ],
    )
    def test_given_broken_manifest_when_read_then_treated_as_absent(
        self, tmp_path: Path, content: str
    ) -> None:
        store = ManifestStore(tmp_path)
        store.directory.mkdir()
        store.path.write_text(content)

        assert store.read() is None

    def test_given_unwritable_location_when_written_then_manifest_error(
        self, tmp_path: Path
    ) -> None:
        # Given - a file where the manifest directory should be
        (tmp_path / ".codegen").write_text("not a directory")
        store = ManifestStore(tmp_path)

        # When / Then
        with pytest.raises(ManifestError) as exc_info:
            store.write(_manifest())
        assert exc_info.value.code == ErrorCode.MANIFEST_WRITE_ERROR
        assert exc_info.value.retryable is True


class TestManifestStoreStaleness:
    def test_given_no_manifest_when_checked_then_stale(self, tmp_path: Path) -> None:
        assert ManifestStore(tmp_path).is_stale(tmp_path / "entities") is True

    def test_given_matching_hash_when_checked_then_fresh(self, tmp_path: Path) -> None:
        # Given
        entities_dir = tmp_path / "entities"
        entities_dir.mkdir()
        (entities_dir / "a.yaml").write_text("entity: a\n")
        store = ManifestStore(tmp_path)
        store.write(
            Manifest(
                generated_at=OLD_TIME,
                entity_files_hash=compute_entity_files_hash(entities_dir),
            )
        )

        # Then
        assert store.is_stale(entities_dir) is False

        # When - one byte changes
        (entities_dir / "a.yaml").write_text("entity: b\n")

        # Then
        assert store.is_stale(entities_dir) is True

    def test_given_version_mismatch_when_checked_then_stale(self, tmp_path: Path) -> None:
        entities_dir = tmp_path / "entities"
        store = ManifestStore(tmp_path)
        store.directory.mkdir()
        store.path.write_text(
            json.dumps(
                {
                    "version": MANIFEST_VERSION + 1,
                    "generatedAt": OLD_TIME,
                    "entityFilesHash": compute_entity_files_hash(entities_dir),
                }
            )
        )
        assert store.is_stale(entities_dir) is True

    @pytest.mark.parametrize("version", [True, 1.0, "1"])
    def test_given_non_integer_version_when_read_then_treated_as_absent(
        self, tmp_path: Path, version: object
    ) -> None:
        store = ManifestStore(tmp_path)
        store.directory.mkdir()
        store.path.write_text(
            json.dumps(
                {
                    "version": version,
                    "generatedAt": OLD_TIME,
                    "entityFilesHash": compute_entity_files_hash(tmp_path / "entities"),
                }
            )
        )
        assert store.read() is None
        assert store.is_stale(tmp_path / "entities") is True


class TestManifestStoreBuild:
    def test_given_analysis_when_built_then_graph_summary_and_statistics(
        self, tmp_path: Path, person_meeting_action_item: DomainGraph
    ) -> None:
        # Given
        graph = person_meeting_action_item
        suggestions = suggest_transitive_relationships(graph)
        store = ManifestStore(tmp_path)

        # When
        manifest = store.build(_analysis(graph), suggestions, tmp_path / "entities")

        # Then
        assert set(manifest.entities) == {"person", "meeting", "action_item"}
        assert manifest.entities["meeting"].fields["person_id"].foreign_key is not None
        assert len(manifest.graph.edges) == 4
        assert all(edge.bidirectional for edge in manifest.graph.edges)
        assert manifest.graph.orphans == []
        assert manifest.graph.cycles == [
            ["person", "meeting", "person"],
            ["meeting", "action_item", "meeting"],
        ]
        assert [s.id for s in manifest.suggestions.transitive] == ["person->action_item"]
        assert manifest.statistics.total_entities == 3
        assert manifest.statistics.transitive_paths_detected == 1

    def test_given_built_manifest_when_serialized_then_edges_use_from_to(
        self, tmp_path: Path, person_meeting_action_item: DomainGraph
    ) -> None:
        store = ManifestStore(tmp_path)
        manifest = store.build(_analysis(person_meeting_action_item), [], tmp_path)
        store.write(manifest)

        edge = json.loads(store.path.read_text())["graph"]["edges"][0]

        assert edge == {
            "from": "person",
            "to": "meeting",
            "relationship": "meetings",
            "cardinality": "1:N",
            "bidirectional": True,
        }


class TestSuggestionLifecycle:
    """Status queries and mutations keyed by suggestion id."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> ManifestStore:
        store = ManifestStore(tmp_path)
        store.write(
            _manifest(_recorded("a", "c"), _recorded("b", "d"), _recorded("x", "y", "skipped"))
        )
        return store

    def test_given_known_id_when_updated_then_persisted_with_resolution_time(
        self, store: ManifestStore
    ) -> None:
        # When
        ok = store.update_suggestion_status("a->c", "accepted")

        # Then
        assert ok is True
        updated = store.get_suggestion("a->c")
        assert updated is not None
        assert updated.status == "accepted"
        assert updated.resolved_at is not None
        assert updated.resolved_at != OLD_TIME

    def test_given_unknown_id_when_updated_then_false_without_raising(
        self, store: ManifestStore
    ) -> None:
        assert store.update_suggestion_status("nope->none", "accepted") is False

    def test_given_no_manifest_when_updated_then_false(self, tmp_path: Path) -> None:
        assert ManifestStore(tmp_path).update_suggestion_status("a->c", "skipped") is False

    def test_given_pending_suggestions_when_bulk_updated_then_only_pending_change(
        self, store: ManifestStore
    ) -> None:
        # When
        changed = store.update_all_suggestion_status("skipped")

        # Then
        assert changed == 2
        assert store.get_pending_suggestions() == []
        untouched = store.get_suggestion("x->y")
        assert untouched is not None
        assert untouched.resolved_at == OLD_TIME

    def test_given_nothing_pending_when_bulk_updated_then_zero(self, store: ManifestStore) -> None:
        store.update_all_suggestion_status("accepted")
        assert store.update_all_suggestion_status("skipped") == 0

    def test_given_manifest_when_pending_queried_then_only_pending(
        self, store: ManifestStore
    ) -> None:
        assert [s.id for s in store.get_pending_suggestions()] == ["a->c", "b->d"]

    def test_given_unknown_id_when_fetched_then_none(self, store: ManifestStore) -> None:
        assert store.get_suggestion("missing") is None
