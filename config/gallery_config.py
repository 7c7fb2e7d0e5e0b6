"""
gallery_config.json loading.

The file is parsed once per process; the API settings (api/config.py) and the
SQLite PRAGMA sizes (db/connection.py) both read from FULL_CONFIG.
"""

import json
import os

CONFIG_PATH = os.environ.get(
    'GALLERY_CONFIG',
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'gallery_config.json'),
)

DEFAULT_MMAP_SIZE_MB = 64
DEFAULT_CACHE_SIZE_MB = 16


def load_config_file(path=None):
    """Load gallery_config.json. Missing or invalid file gives an empty dict."""
    try:
        with open(path or CONFIG_PATH) as f:
            config = json.load(f)
    except (OSError, ValueError):
        return {}
    return config if isinstance(config, dict) else {}


FULL_CONFIG = load_config_file()


def get_performance_settings(config=None):
    """mmap and page cache sizes for SQLite connections, from the performance section.

    Returns:
        Dict with 'mmap_size' (bytes) and 'cache_size_kb'
    """
    if config is None:
        config = FULL_CONFIG
    perf = config.get('performance')
    if not isinstance(perf, dict):
        perf = {}
    mmap_size_mb = perf.get('mmap_size_mb', DEFAULT_MMAP_SIZE_MB)
    cache_size_mb = perf.get('cache_size_mb', DEFAULT_CACHE_SIZE_MB)
    if not isinstance(mmap_size_mb, int) or mmap_size_mb < 0:
        mmap_size_mb = DEFAULT_MMAP_SIZE_MB
    if not isinstance(cache_size_mb, int) or cache_size_mb <= 0:
        cache_size_mb = DEFAULT_CACHE_SIZE_MB
    return {
        'mmap_size': mmap_size_mb * 1024 * 1024,
        'cache_size_kb': cache_size_mb * 1000,
    }


PERFORMANCE = get_performance_settings()
