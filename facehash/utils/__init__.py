"""
Utility modules for the identity matching engine.
"""

from .config import (
    Config,
    FingerprintConfig,
    MatchingConfig,
    GalleryConfig,
    LoggingConfig,
    config_from_dict,
    load_config,
    load_yaml,
    merge_configs,
    get_extra_config,
    DEFAULT_CONFIG
)
from .logger import (
    RunLogger,
    ProgressTracker,
    setup_logger
)
from .io import (
    load_image,
    decode_image,
    save_image,
    discover_images,
    identity_from_path,
    group_images_by_identity,
    load_json,
    save_json,
    SUPPORTED_EXTENSIONS
)

__all__ = [
    # Config
    'Config',
    'FingerprintConfig',
    'MatchingConfig',
    'GalleryConfig',
    'LoggingConfig',
    'config_from_dict',
    'load_config',
    'load_yaml',
    'merge_configs',
    'get_extra_config',
    'DEFAULT_CONFIG',
    # Logger
    'RunLogger',
    'ProgressTracker',
    'setup_logger',
    # IO
    'load_image',
    'decode_image',
    'save_image',
    'discover_images',
    'identity_from_path',
    'group_images_by_identity',
    'load_json',
    'save_json',
    'SUPPORTED_EXTENSIONS',
]
