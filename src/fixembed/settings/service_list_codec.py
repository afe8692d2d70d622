"""
Encoding of the ``guild_settings.enabled_services`` column.

New rows store a JSON array (``["Twitter", "Reddit"]``). Rows written by older
releases hold a bracketed list whose items may use single or double quotes and
arbitrary whitespace (``['Twitter', 'Reddit']``, ``[ "Twitter",'Reddit' ]``).
Both forms are read. Empty, unparseable, or entirely unknown values decode to
the default service set; this is never reported as an error.
"""

from __future__ import annotations

import json
from typing import Iterable, Optional, Tuple

from fixembed.datatypes.guild_settings import DEFAULT_SERVICES, normalize_services
from fixembed.util.logger import get_logger

logger = get_logger("service_list_codec")


def encode_services(services: Iterable[str]) -> str:
    return json.dumps(list(services))


def _decode_legacy(raw: str) -> list[str]:
    body = raw.strip()
    if body.startswith("["):
        body = body[1:]
    if body.endswith("]"):
        body = body[:-1]
    names = []
    for part in body.split(","):
        name = part.strip().strip("\"'").strip()
        if name:
            names.append(name)
    return names


def decode_services(raw: Optional[str]) -> Tuple[str, ...]:
    """Decode a stored service list, tolerating the legacy textual form."""
    if raw is None or not raw.strip():
        return DEFAULT_SERVICES

    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None

    if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
        names = [item.strip() for item in parsed]
    else:
        names = _decode_legacy(raw)
        logger.debug("[SERVICE LIST] Decoded legacy service list %r as %s", raw, names)

    unknown = [name for name in names if name not in DEFAULT_SERVICES]
    if unknown:
        logger.warning("[SERVICE LIST] Ignoring unknown services %s in %r", unknown, raw)
    return normalize_services(names)
