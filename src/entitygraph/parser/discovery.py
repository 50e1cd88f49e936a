"""Entity definition file discovery.

Kept free of analyzer imports: both loading and manifest hashing use it.
"""

from pathlib import Path

from entitygraph.config.constants import ENTITY_FILE_SUFFIXES


def discover_entity_files(entities_dir: Path) -> list[Path]:
    """All entity definition files under ``entities_dir``, recursively, sorted."""
    if not entities_dir.is_dir():
        return []
    return sorted(
        p for p in entities_dir.rglob("*") if p.is_file() and p.suffix in ENTITY_FILE_SUFFIXES
    )
