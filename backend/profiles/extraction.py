"""
Profile Data Extraction

Pulls a display name and an avatar URL out of the JSON data island a
profile page embeds (script#__UNIVERSAL_DATA_FOR_REHYDRATION__).

Extraction is best-effort and knows nothing about the island's schema:
1. Decode the raw text as JSON and breadth-first search for the first
   string value stored under one of the known keys
2. If decoding fails or finds no name, regex the raw text for the same keys

Every step returns an explicit Optional; nothing here raises on bad input
except `normalize_username`.
"""

import re
import json
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable, Optional
from urllib.parse import quote

from errors import ValidationError

logger = logging.getLogger(__name__)

# ============================================
# Known keys (first match in traversal order wins, not key order)
# ============================================

AVATAR_KEYS = ("avatarLarger", "avatarMedium", "avatarThumb", "avatarUri")
NAME_KEYS = ("nickname", "displayName", "nickName")

# Path of the same-origin image proxy endpoint
PROXY_IMAGE_PATH = "/proxy-image"

# Escape sequences seen in the raw island text
_TEXT_ESCAPES = (
    ("\\u002F", "/"),
    ("\\u0026", "&"),
    ("\\n", " "),
    ('\\"', '"'),
)
_URL_ESCAPES = (
    ("\\u002F", "/"),
    ("\\u0026", "&"),
    ("\\/", "/"),
)


@dataclass(frozen=True)
class ExtractedProfile:
    """Fields found in a data island; either may be missing."""
    avatar: Optional[str] = None
    name: Optional[str] = None


# ============================================
# Username
# ============================================

def normalize_username(raw: Optional[str]) -> str:
    """
    Strip surrounding whitespace and at most one leading "@", then lowercase.

    Returns "" for empty input; the caller decides how to report it.

    Raises:
        ValidationError: if a second "@" follows the first (handles never
            contain "@", and keeping it would make normalization non-idempotent)
    """
    username = (raw or "").strip()
    if username.startswith("@"):
        username = username[1:].strip()
    if username.startswith("@"):
        raise ValidationError(f"Invalid user: {raw}")
    return username.lower()


# ============================================
# Structured lookup
# ============================================

def decode_tree(raw: str) -> Optional[Any]:
    """Decode raw island text as JSON; None if it is not valid JSON."""
    try:
        return json.loads(raw)
    except (ValueError, TypeError) as e:
        logger.debug(f"[Extraction] Data island is not valid JSON: {e}")
        return None


def find_first_string(tree: Any, keys: Iterable[str]) -> Optional[str]:
    """
    Breadth-first search for the first string value (longer than one
    character) stored under any of `keys`.

    Within an object, entries are visited in the object's own key order;
    nested objects and arrays are queued behind the current level.
    """
    wanted = set(keys)
    queue = deque([tree])

    while queue:
        node = queue.popleft()
        if isinstance(node, dict):
            entries = node.items()
        elif isinstance(node, list):
            entries = enumerate(node)
        else:
            continue

        for key, value in entries:
            if key in wanted and isinstance(value, str) and len(value) > 1:
                return value
            if isinstance(value, (dict, list)):
                queue.append(value)

    return None


# ============================================
# Raw text fallback
# ============================================

def unescape_text(value: str) -> str:
    for escaped, plain in _TEXT_ESCAPES:
        value = value.replace(escaped, plain)
    return value.strip()


def find_string_in_raw_text(raw: Optional[str], keys: Iterable[str]) -> Optional[str]:
    """
    Regex `"<key>": "<value>"` for each key in order and return the first
    captured value, still escaped.
    """
    if not raw:
        return None

    for key in keys:
        pattern = r'"' + re.escape(key) + r'"\s*:\s*"((?:\\.|[^"\\])+)"'
        match = re.search(pattern, raw, re.IGNORECASE)
        if match and match.group(1):
            return match.group(1)
    return None


def extract_name_from_raw_text(raw: Optional[str]) -> Optional[str]:
    value = find_string_in_raw_text(raw, NAME_KEYS)
    if value is None:
        return None
    return unescape_text(value) or None


# ============================================
# Data island
# ============================================

def parse_data_island(raw: Optional[str]) -> ExtractedProfile:
    """
    Extract avatar and display name from raw data island text.

    The structured pass runs first; the regex pass fills in whatever it
    left empty. Avatar values are returned as found (see `clean_avatar_url`).
    """
    if not raw:
        return ExtractedProfile()

    avatar = None
    name = None

    tree = decode_tree(raw)
    if tree is not None:
        avatar = find_first_string(tree, AVATAR_KEYS)
        name = find_first_string(tree, NAME_KEYS)

    if not name:
        name = extract_name_from_raw_text(raw)
    if not avatar:
        avatar = find_string_in_raw_text(raw, AVATAR_KEYS)

    return ExtractedProfile(avatar=avatar, name=name)


# ============================================
# Avatar URL
# ============================================

def normalize_url(url: Optional[str]) -> Optional[str]:
    """Trim and turn protocol-relative URLs (//host/x) into https URLs."""
    if not url:
        return None
    url = str(url).strip()
    if not url:
        return None
    if url.startswith("//"):
        url = "https:" + url
    return url


def clean_avatar_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    for escaped, plain in _URL_ESCAPES:
        url = url.replace(escaped, plain)
    return normalize_url(url)


def proxied_image_path(url: str) -> str:
    """Same-origin path serving `url` through the image proxy."""
    return f"{PROXY_IMAGE_PATH}?url={quote(url, safe='')}"
