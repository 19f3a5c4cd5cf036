"""YAML step catalog: the step patterns a project defines.

Format::

    steps:
      - I have {int} cucumber(s)
      - pattern: I click/tap the {string} button
        description: Presses a button by label
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from cuke_engine.models import ExpressionError
from cuke_engine.registry import StepDefinitionError, StepRegistry


class CatalogError(Exception):
    """Raised when a step catalog cannot be loaded."""


@dataclass(frozen=True)
class CatalogEntry:
    pattern: str
    description: str = ""


@dataclass
class StepCatalog:
    path: Path
    entries: list[CatalogEntry] = field(default_factory=list)
    registry: StepRegistry = field(default_factory=StepRegistry)


def load_catalog(catalog_path: Path) -> StepCatalog:
    """Load a step catalog and compile every pattern into a registry."""
    try:
        raw = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise CatalogError(f"Invalid YAML in {catalog_path}: {exc}") from exc

    if raw is None:
        raw = {"steps": []}
    if not isinstance(raw, dict):
        raise CatalogError(f"Invalid step catalog format in {catalog_path}: expected mapping")

    steps = raw.get("steps", [])
    if not isinstance(steps, list):
        raise CatalogError(f"'steps' in {catalog_path} must be a list")

    catalog = StepCatalog(path=catalog_path)
    for index, item in enumerate(steps):
        entry = _build_entry(item, index, catalog_path)
        try:
            catalog.registry.register(entry.pattern)
        except (ExpressionError, StepDefinitionError) as exc:
            raise CatalogError(f"Invalid step pattern in {catalog_path}: {exc}") from exc
        catalog.entries.append(entry)
    return catalog


def _build_entry(item: Any, index: int, catalog_path: Path) -> CatalogEntry:
    if isinstance(item, str):
        return CatalogEntry(pattern=item)
    if isinstance(item, dict) and isinstance(item.get("pattern"), str):
        return CatalogEntry(
            pattern=item["pattern"],
            description=str(item.get("description", "")),
        )
    raise CatalogError(
        f"Invalid step entry #{index + 1} in {catalog_path}: "
        "expected a pattern string or a mapping with 'pattern'"
    )


def save_catalog(entries: list[CatalogEntry], catalog_path: Path) -> Path:
    """Write catalog entries back out as YAML."""
    catalog_path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "steps": [
            {"pattern": e.pattern, "description": e.description} if e.description else e.pattern
            for e in entries
        ]
    }
    catalog_path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True))
    return catalog_path
