"""Service configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: AQUA_<SECTION>_<KEY> (uppercase),
except logging, which uses AQUA_LOG_LEVEL / AQUA_LOG_FORMAT. The zoom
threshold table is YAML-only.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 4000
    env: str = "dev"  # "dev" or "prod"


@dataclass
class StorageConfig:
    base_dir: str = "data/reports"


@dataclass
class LimitsConfig:
    default_page_size: int = 20
    max_page_size: int = 200
    max_export_size: int = 50_000
    max_notes_length: int = 2000
    max_photos: int = 5
    active_window_seconds: float = 3600.0


@dataclass
class AnalyticsConfig:
    default_cell_size: float = 0.05
    min_cell_size: float = 0.01
    max_cell_size: float = 1.0


@dataclass
class ClusteringConfig:
    # (min_zoom, cell_size_deg), checked from the highest zoom down.
    zoom_thresholds: list[tuple[int, float]] = field(
        default_factory=lambda: [(14, 0.005), (12, 0.01), (10, 0.02)],
    )
    fallback_cell_size: float = 0.05
    default_zoom: int = 13


@dataclass
class DuplicatesConfig:
    radius_m: float = 200.0
    timezone: str = "UTC"
    same_day_only: bool = True


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    duplicates: DuplicatesConfig = field(default_factory=DuplicatesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "AQUA_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "AQUA_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "AQUA_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "AQUA_STORAGE_BASE_DIR": lambda v: setattr(config.storage, "base_dir", v),
        "AQUA_LIMITS_DEFAULT_PAGE_SIZE": lambda v: setattr(config.limits, "default_page_size", int(v)),
        "AQUA_LIMITS_MAX_PAGE_SIZE": lambda v: setattr(config.limits, "max_page_size", int(v)),
        "AQUA_LIMITS_MAX_EXPORT_SIZE": lambda v: setattr(config.limits, "max_export_size", int(v)),
        "AQUA_LIMITS_MAX_NOTES_LENGTH": lambda v: setattr(config.limits, "max_notes_length", int(v)),
        "AQUA_LIMITS_MAX_PHOTOS": lambda v: setattr(config.limits, "max_photos", int(v)),
        "AQUA_LIMITS_ACTIVE_WINDOW_SECONDS": lambda v: setattr(config.limits, "active_window_seconds", float(v)),
        "AQUA_ANALYTICS_DEFAULT_CELL_SIZE": lambda v: setattr(config.analytics, "default_cell_size", float(v)),
        "AQUA_ANALYTICS_MIN_CELL_SIZE": lambda v: setattr(config.analytics, "min_cell_size", float(v)),
        "AQUA_ANALYTICS_MAX_CELL_SIZE": lambda v: setattr(config.analytics, "max_cell_size", float(v)),
        "AQUA_CLUSTERING_FALLBACK_CELL_SIZE": lambda v: setattr(config.clustering, "fallback_cell_size", float(v)),
        "AQUA_CLUSTERING_DEFAULT_ZOOM": lambda v: setattr(config.clustering, "default_zoom", int(v)),
        "AQUA_DUPLICATES_RADIUS_M": lambda v: setattr(config.duplicates, "radius_m", float(v)),
        "AQUA_DUPLICATES_TIMEZONE": lambda v: setattr(config.duplicates, "timezone", v),
        "AQUA_DUPLICATES_SAME_DAY_ONLY": lambda v: setattr(config.duplicates, "same_day_only", _parse_bool(v)),
        "AQUA_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "AQUA_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    if config_path is None:
        config_path = Path(os.environ.get("AQUA_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in ("server", "storage", "limits", "analytics",
                        "clustering", "duplicates", "logging"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)

        # YAML gives lists of lists; the zoom table is a list of pairs.
        config.clustering.zoom_thresholds = [
            (int(zoom), float(size)) for zoom, size in config.clustering.zoom_thresholds
        ]

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
