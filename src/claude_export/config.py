"""Configuration loading and management."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class PathsConfig:
    output_dir: Path = field(default_factory=lambda: Path("./output"))
    database_dir: Path = field(default_factory=lambda: Path("./data"))
    log_dir: Path = field(default_factory=lambda: Path.home() / "claude-export" / "logs")


@dataclass
class ProcessingConfig:
    incremental: bool = False
    force: bool = False
    progress_every: int = 100


@dataclass
class Config:
    paths: PathsConfig = field(default_factory=PathsConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    verbose: bool = False


def expand_path(path_str: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expandvars(os.path.expanduser(path_str)))


def find_config_file() -> Path | None:
    """Return the first config file found in the standard locations."""
    search_paths = [
        Path.cwd() / "config.yaml",
        Path.home() / ".config" / "claude-export" / "config.yaml",
        Path("/etc/claude-export/config.yaml"),
    ]
    for path in search_paths:
        if path.exists():
            return path
    return None


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    paths_data = data.get("paths", {})
    defaults = PathsConfig()
    paths = PathsConfig(
        output_dir=expand_path(paths_data.get("output_dir", str(defaults.output_dir))),
        database_dir=expand_path(paths_data.get("database_dir", str(defaults.database_dir))),
        log_dir=expand_path(paths_data.get("log_dir", str(defaults.log_dir))),
    )

    processing_data = data.get("processing", {})
    processing = ProcessingConfig(
        incremental=bool(processing_data.get("incremental", False)),
        force=bool(processing_data.get("force", False)),
        progress_every=int(processing_data.get("progress_every", 100)),
    )

    return Config(
        paths=paths,
        processing=processing,
        verbose=bool(data.get("verbose", False)),
    )
