"""Configuration management for cuke-engine projects."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_DIR = ".cuke-engine"
CONFIG_FILE = "config.json"
FEATURES_DIR = "features"


@dataclass
class ProjectConfig:
    """Project configuration for cuke-engine."""

    version: str = "0.1.0"
    features_dir: str = FEATURES_DIR
    feature_glob: str = "*.feature"
    steps_file: str = f"{FEATURES_DIR}/steps.yaml"


def _config_path(project_root: Path) -> Path:
    return project_root / CONFIG_DIR / CONFIG_FILE


def save_config(config: ProjectConfig, project_root: Path) -> Path:
    """Save project config to .cuke-engine/config.json. Returns the config path."""
    config_dir = project_root / CONFIG_DIR
    config_dir.mkdir(parents=True, exist_ok=True)
    path = _config_path(project_root)
    data = {
        "version": config.version,
        "features_dir": config.features_dir,
        "feature_glob": config.feature_glob,
        "steps_file": config.steps_file,
    }
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


def load_config(project_root: Path) -> ProjectConfig:
    """Load project config from .cuke-engine/config.json."""
    path = _config_path(project_root)
    if not path.exists():
        raise FileNotFoundError(f"No config found at {path}")
    data = json.loads(path.read_text())
    defaults = ProjectConfig()
    return ProjectConfig(
        version=data.get("version", defaults.version),
        features_dir=data.get("features_dir", defaults.features_dir),
        feature_glob=data.get("feature_glob", defaults.feature_glob),
        steps_file=data.get("steps_file", defaults.steps_file),
    )


def is_initialized(project_root: Path) -> bool:
    """Check if the project is initialized for cuke-engine."""
    return _config_path(project_root).exists()


def ensure_initialized(project_root: Path) -> ProjectConfig:
    """Ensure the project is initialized. Raises if not."""
    if not is_initialized(project_root):
        raise RuntimeError(
            "Project is not initialized. Run `cuke-engine init` first."
        )
    return load_config(project_root)


def find_feature_files(project_root: Path, config: ProjectConfig) -> list[Path]:
    """List feature files under the configured directory, sorted, recursively."""
    features_dir = project_root / config.features_dir
    if not features_dir.is_dir():
        return []
    return sorted(p for p in features_dir.rglob(config.feature_glob) if p.is_file())
