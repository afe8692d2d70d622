"""
Link pattern engine.

Finds supported social media links in raw message text and turns each one into
a :class:`LinkMatch` holding the rewritten link and its display label. The
engine keeps no state between calls, so matching the same text twice always
yields the same matches.

A message containing *any* supported link wrapped in ``<...>`` (Discord's "do
not embed this" syntax) is skipped as a whole, even when other links in the
same message are not wrapped.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from fixembed.datatypes.link_datatypes import LinkMatch
from fixembed.links.services import RULES_BY_GROUP, SERVICE_RULES, ServiceRule

_SCHEME = r"(?i:https?)://(?:(?i:www)\.)?"


def _build_alternation(rules: Iterable[ServiceRule]) -> str:
    return "|".join(f"(?P<{rule.group_name}>{rule.url_pattern})" for rule in rules)


_ALTERNATION = _build_alternation(SERVICE_RULES)

LINK_PATTERN = re.compile(_SCHEME + f"(?:{_ALTERNATION})")
SUPPRESSED_LINK_PATTERN = re.compile("<" + _SCHEME + f"(?:{_ALTERNATION})" + r"[^\s>]*>")


class PatternEngine:
    """Recognizes supported links and rewrites them to their fix service hosts."""

    def is_suppressed(self, text: str) -> bool:
        """Return True if any supported link in ``text`` is wrapped in angle brackets."""
        return SUPPRESSED_LINK_PATTERN.search(text) is not None

    def match(self, text: str) -> Iterator[LinkMatch]:
        """
        Lazily yield a :class:`LinkMatch` for every supported link in ``text``.

        Nothing is yielded when the message uses the suppression syntax anywhere.
        """
        if not text or self.is_suppressed(text):
            return
        for found in LINK_PATTERN.finditer(text):
            rule = RULES_BY_GROUP[found.lastgroup]
            yield self._transform(rule, found.group(found.lastgroup))

    @staticmethod
    def _transform(rule: ServiceRule, original_url: str) -> LinkMatch:
        host, _, path = original_url.partition("/")
        identity = rule.extract_identity(original_url)
        return LinkMatch(
            service=rule.name,
            original_url=original_url,
            rewritten_url=f"{rule.rewrite_host(host)}/{path}",
            display_label=rule.label_for(identity),
        )
