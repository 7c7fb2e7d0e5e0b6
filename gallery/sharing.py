"""
Share links and download names for single photos.

"""

import logging
import posixpath
import re
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

MOBILE_UA_RE = re.compile(r'iPhone|Android|iPad|iPod', re.IGNORECASE)
WHATSAPP_MOBILE = 'https://api.whatsapp.com/send?text='
WHATSAPP_DESKTOP = 'https://web.whatsapp.com/send?text='
WHATSAPP_FALLBACK = 'https://wa.me/?text='
DEFAULT_MESSAGE = 'Check out this photo from {event} at {site}!\n\n{url}'
DEFAULT_MAX_PEOPLE = 4

_UNSAFE_FILENAME_RE = re.compile(r'[^\w\- ]+', re.UNICODE)


def storage_url(base_url, storage_path):
    """Public URL for a storage path, each path segment percent-encoded."""
    base = base_url if base_url.endswith('/') else base_url + '/'
    encoded = '/'.join(quote(segment, safe='') for segment in storage_path.split('/'))
    return base + encoded


def normalize_url(url, base_url):
    """Re-encode a possibly already-encoded storage URL so encoding is applied once."""
    raw = unquote(url)
    base = base_url if base_url.endswith('/') else base_url + '/'
    if not raw.startswith(base):
        return url
    return storage_url(base, raw[len(base):])


def is_mobile(user_agent):
    return bool(user_agent and MOBILE_UA_RE.search(user_agent))


def share_link(url, event_name, site_name, base_url, user_agent='',
               message_template=DEFAULT_MESSAGE):
    """WhatsApp share link for a photo URL.

    Mobile user agents go through the app endpoint, desktop through WhatsApp
    Web. If the message cannot be built the raw URL is shared instead.
    """
    try:
        clean = normalize_url(url, base_url)
        message = message_template.format(event=event_name, site=site_name, url=clean)
        endpoint = WHATSAPP_MOBILE if is_mobile(user_agent) else WHATSAPP_DESKTOP
        return endpoint + quote(message, safe='')
    except (KeyError, IndexError, ValueError, AttributeError) as e:
        logger.warning("Share link failed for %s: %s", url, e)
        return WHATSAPP_FALLBACK + quote(url, safe='')


def first_name(full_name):
    parts = (full_name or '').split()
    return parts[0] if parts else ''


def _clean(text):
    return ' '.join(_UNSAFE_FILENAME_RE.sub(' ', text).split())


def download_filename(record, staff_prefix='R', max_people=DEFAULT_MAX_PEOPLE):
    """Human-readable file name: event then first names, staff prefixed.

    Only the first ``max_people`` people are named. Records without names
    fall back to the storage file name.
    """
    fallback = posixpath.basename(record.storage_path) or 'photo.jpg'
    _, ext = posixpath.splitext(fallback)
    ext = ext.lower() or '.jpg'

    people = []
    seen = set()
    for name in record.student_names or ():
        short = first_name(name)
        if short and short not in seen:
            seen.add(short)
            people.append(short)
    for name in record.staff_names or ():
        short = first_name(name)
        key = f"{staff_prefix} {short}"
        if short and key not in seen:
            seen.add(key)
            people.append(key)

    parts = []
    event = _clean(record.event_name or '')
    if event:
        parts.append(event)
    parts.extend(_clean(p) for p in people[:max_people])
    parts = [p for p in parts if p]
    if not parts:
        return fallback
    return ' - '.join(parts) + ext
