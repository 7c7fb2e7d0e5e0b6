"""
Gallery configuration package.

Re-exports the shared gallery_config.json load.
"""

from config.gallery_config import (
    CONFIG_PATH, FULL_CONFIG, PERFORMANCE, load_config_file, get_performance_settings,
)
