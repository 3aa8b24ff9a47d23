from __future__ import annotations

import re
from typing import Tuple

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9_]")

ENTITY_ID_PREFIX = "Entity-"


def sanitize(identifier: str) -> str:
    """
    Convert a source identifier into a valid OrderCloud ID.

    Every character outside [A-Za-z0-9_] becomes "_". Empty or None maps to "".
    """
    if not identifier:
        return ""
    return _INVALID_ID_CHARS.sub("_", identifier)


def remove_id_prefix(entity_id: str) -> str:
    """
    Strip the "Entity-{Kind}-" prefix from a source entity id.

    "Entity-SellableItem-6042567" -> "6042567". Ids without the prefix are
    returned unchanged.
    """
    if not entity_id or not entity_id.startswith(ENTITY_ID_PREFIX):
        return entity_id or ""
    parts = entity_id.split("-", 2)
    if len(parts) < 3:
        return entity_id
    return parts[2]


def entity_id(kind: str, friendly_id: str) -> str:
    return f"{ENTITY_ID_PREFIX}{kind}-{friendly_id}"


def split_category_friendly_id(friendly_id: str) -> Tuple[str, str]:
    """
    Split a category friendly id ("Catalog1-Shoes") into sanitized
    (catalog_id, category_id).
    """
    catalog_part, _, category_part = (friendly_id or "").partition("-")
    return sanitize(catalog_part), sanitize(category_part)
