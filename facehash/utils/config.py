"""
Configuration management for the identity matching engine.

This module provides utilities for loading, validating, and accessing
configuration parameters from YAML files.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import yaml

from facehash.hashing.average_hash import (
    DEFAULT_GRID_SIZE,
    DEFAULT_RESAMPLE,
    RESAMPLE_FILTERS,
)


@dataclass
class FingerprintConfig:
    """Configuration for fingerprint extraction."""
    grid_size: int = DEFAULT_GRID_SIZE
    resample: str = DEFAULT_RESAMPLE


@dataclass
class MatchingConfig:
    """Configuration for best-match selection."""
    threshold: int = 100


@dataclass
class GalleryConfig:
    """Configuration for the reference gallery."""
    root_dir: str = "."
    entries: List[Dict[str, str]] = field(default_factory=list)
    max_workers: int = 4


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    log_dir: str = "logs"
    save_results: bool = True


@dataclass
class Config:
    """
    Main configuration container.

    Attributes:
        fingerprint: Fingerprint extraction settings
        matching: Acceptance threshold settings
        gallery: Reference gallery seed list and loading settings
        logging: Logging configuration
        extra: Any remaining top-level sections of the YAML file
    """
    fingerprint: FingerprintConfig = field(default_factory=FingerprintConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    gallery: GalleryConfig = field(default_factory=GalleryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: Dict[str, Any] = field(default_factory=dict)


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file does not exist
        yaml.YAMLError: If the YAML file is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    The override dictionary values take precedence over base values.

    Args:
        base: Base configuration dictionary
        override: Override configuration dictionary

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def validate_config(config: Config) -> None:
    """
    Check configuration values.

    Raises:
        ValueError: If a value is out of range
    """
    if config.fingerprint.grid_size < 1:
        raise ValueError(
            f"fingerprint.grid_size must be >= 1, got {config.fingerprint.grid_size}"
        )
    if config.fingerprint.resample not in RESAMPLE_FILTERS:
        raise ValueError(
            f"fingerprint.resample must be one of {sorted(RESAMPLE_FILTERS)}, "
            f"got {config.fingerprint.resample!r}"
        )
    if config.matching.threshold < 0:
        raise ValueError(
            f"matching.threshold must be >= 0, got {config.matching.threshold}"
        )
    if config.gallery.max_workers < 1:
        raise ValueError(
            f"gallery.max_workers must be >= 1, got {config.gallery.max_workers}"
        )


def config_from_dict(config_dict: Dict[str, Any]) -> Config:
    """
    Build a validated Config from a plain dictionary.

    Args:
        config_dict: Parsed YAML content

    Returns:
        Config object
    """
    config_dict = dict(config_dict)

    # Extract standard configuration sections
    fingerprint_dict = config_dict.pop('fingerprint', None) or {}
    matching_dict = config_dict.pop('matching', None) or {}
    gallery_dict = config_dict.pop('gallery', None) or {}
    logging_dict = config_dict.pop('logging', None) or {}

    fingerprint_config = FingerprintConfig(
        grid_size=int(fingerprint_dict.get('grid_size', DEFAULT_GRID_SIZE)),
        resample=str(fingerprint_dict.get('resample', DEFAULT_RESAMPLE)),
    )

    matching_config = MatchingConfig(
        threshold=int(matching_dict.get('threshold', 100)),
    )

    gallery_config = GalleryConfig(
        root_dir=str(gallery_dict.get('root_dir', '.')),
        entries=[dict(e) for e in gallery_dict.get('entries') or []],
        max_workers=int(gallery_dict.get('max_workers', 4)),
    )

    logging_config = LoggingConfig(
        level=logging_dict.get('level', 'INFO'),
        log_dir=logging_dict.get('log_dir', 'logs'),
        save_results=logging_dict.get('save_results', True)
    )

    config = Config(
        fingerprint=fingerprint_config,
        matching=matching_config,
        gallery=gallery_config,
        logging=logging_config,
        extra=config_dict
    )
    validate_config(config)
    return config


def load_config(
    config_path: Union[str, Path],
    base_config_path: Optional[Union[str, Path]] = None
) -> Config:
    """
    Load configuration from YAML files.

    Optionally merges with a base configuration file. A relative
    ``gallery.root_dir`` is resolved against the directory of
    ``config_path``.

    Args:
        config_path: Path to the main configuration file
        base_config_path: Optional path to base configuration to merge with

    Returns:
        Config object with loaded settings
    """
    config_dict = load_yaml(config_path)

    if base_config_path is not None:
        base_dict = load_yaml(base_config_path)
        config_dict = merge_configs(base_dict, config_dict)

    config = config_from_dict(config_dict)

    root_dir = Path(config.gallery.root_dir)
    if not root_dir.is_absolute():
        config.gallery.root_dir = str(Path(config_path).parent / root_dir)

    return config


def get_extra_config(config: Config, key: str, default: Any = None) -> Any:
    """
    Get a value from the non-standard configuration sections.

    Args:
        config: Configuration object
        key: Dot-separated key path (e.g., 'experiment.thresholds')
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    keys = key.split('.')
    value = config.extra

    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


# Default configuration instance
DEFAULT_CONFIG = Config()
