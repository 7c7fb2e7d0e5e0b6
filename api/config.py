"""
Configuration loading for the FastAPI API server.

"""

from config import FULL_CONFIG


def load_gallery_config(config=None):
    """Load gallery settings, merging defaults with config."""
    defaults = {
        'site_name': 'Shraga',
        'pagination': {'page_size': 50},
        'storage': {'base_url': 'https://yeshiva-photos.s3.eu-west-2.amazonaws.com/'},
        'share': {
            'message': 'Check out this photo from {event} at {site}!\n\n{url}',
        },
        'download': {'max_people': 4},
        'search': {'min_query_length': 2, 'max_results': 5},
        'labels': {
            'portfolio_fallback': 'Your Son',
            'staff_fallback': 'Staff Member',
            'staff_prefix': 'R',
        },
        'match': {'max_people': 3},
        'cors_origins': ['http://localhost:3000', 'http://localhost:5000'],
        'cache_ttl_seconds': 300,
    }
    if config is None:
        config = FULL_CONFIG
    gallery = dict(config.get('gallery', {}))
    for key, value in defaults.items():
        if key not in gallery:
            gallery[key] = value
        elif isinstance(value, dict):
            merged = dict(gallery[key])
            for k, v in value.items():
                if k not in merged:
                    merged[k] = v
            gallery[key] = merged
    return gallery


GALLERY_CONFIG = load_gallery_config(FULL_CONFIG)


def get_page_size():
    try:
        size = int(GALLERY_CONFIG['pagination']['page_size'])
    except (KeyError, TypeError, ValueError):
        return 50
    return size if size > 0 else 50


# --- CACHES ---

# Simple TTL cache for the event filter options
_events_cache = {'data': None, 'expires': 0}


def invalidate_events_cache():
    """Invalidate event options cache so new data appears on next request."""
    _events_cache['data'] = None
