"""Domain analysis operations.

One complete pass: load -> resolve -> build graph -> check -> stats ->
suggest -> merge/persist. Every pass gets its own run id for log correlation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from entitygraph.analyzer.consistency import check_consistency
from entitygraph.analyzer.graph import build_domain_graph
from entitygraph.analyzer.manifest import ManifestStore, compute_entity_files_hash
from entitygraph.analyzer.models import AnalysisResult, Severity
from entitygraph.analyzer.statistics import compute_statistics
from entitygraph.analyzer.transitive import suggest_transitive_relationships
from entitygraph.config.models import EntityGraphConfig
from entitygraph.core.logging import set_run_id
from entitygraph.parser.loader import load_entities
from entitygraph.parser.resolver import resolve_references

if TYPE_CHECKING:
    from entitygraph.analyzer.models import AnalysisIssue, Manifest

logger = structlog.get_logger()


@dataclass
class ValidationSummary:
    """Load-only validation: schema and syntax problems, no graph checks."""

    valid: bool
    errors: list[AnalysisIssue] = field(default_factory=list)


@dataclass
class ScanResult:
    """Result of a manifest scan.

    ``analysis`` is None when the manifest was fresh and no pass ran.
    """

    manifest: Manifest
    analysis: AnalysisResult | None = None
    refreshed: bool = False


def analyze_domain(entities_dir: Path) -> AnalysisResult:
    """Run a full analysis pass over the entity definitions in ``entities_dir``.

    Issues are ordered load, then resolve, then consistency. The result is
    valid iff no issue has ``error`` severity.
    """
    set_run_id()

    loaded = load_entities(entities_dir)
    resolve_issues = resolve_references(loaded.entities)
    graph = build_domain_graph(loaded.entities)
    consistency_issues = check_consistency(graph)

    result = AnalysisResult(
        entities=loaded.entities,
        graph=graph,
        issues=[*loaded.issues, *resolve_issues, *consistency_issues],
        statistics=compute_statistics(graph),
    )

    summary = result.summary()
    logger.info(
        "domain_analyzed",
        entities=summary["entities"],
        errors=summary["errors"],
        warnings=summary["warnings"],
        info=summary["info"],
    )
    return result


def validate_entities(entities_dir: Path) -> ValidationSummary:
    """Check only that every definition file loads and passes the schema."""
    loaded = load_entities(entities_dir)
    errors = [i for i in loaded.issues if i.severity is Severity.ERROR]
    return ValidationSummary(valid=not errors, errors=errors)


def scan_manifest(
    project_root: Path,
    entities_dir: Path,
    config: EntityGraphConfig | None = None,
    *,
    force: bool = False,
) -> ScanResult:
    """Refresh the project's manifest if entity files changed.

    A fresh manifest is returned as-is unless ``force`` is set. Otherwise a
    full pass runs and its suggestions are merged with the recorded ones.

    Raises:
        ManifestError: If the refreshed manifest cannot be written.
    """
    config = config or EntityGraphConfig()
    store = ManifestStore(project_root, config.manifest)
    existing = store.read()

    fresh = existing is not None and (
        existing.entity_files_hash == compute_entity_files_hash(entities_dir)
    )
    if fresh and not force:
        logger.debug("manifest_fresh", path=str(store.path))
        return ScanResult(manifest=existing)

    analysis = analyze_domain(entities_dir)
    suggestions = suggest_transitive_relationships(analysis.graph, config.suggester)
    manifest = store.build(analysis, suggestions, entities_dir, existing)
    store.write(manifest)

    return ScanResult(manifest=manifest, analysis=analysis, refreshed=True)
