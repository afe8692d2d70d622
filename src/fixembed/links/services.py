"""
Supported services and how their links are rewritten.

Each :class:`ServiceRule` carries three things:

- ``url_pattern``: the structural host/path pattern a link must match. Hosts are
  wrapped in ``(?i:...)`` so they match case-insensitively while path segments
  stay case-sensitive. Patterns must not contain capturing groups; the engine
  wraps each one in a named group and relies on ``Match.lastgroup``.
- ``identity_pattern``: secondary pattern whose first group is the identity
  shown in the label (user, subreddit, post id or handle).
- ``host_rewrites``: lower-cased source host -> fix service host.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True, slots=True)
class ServiceRule:
    """How one service is recognized, labelled and rewritten."""

    name: str
    url_pattern: str
    identity_pattern: re.Pattern[str]
    host_rewrites: Dict[str, str]
    label_template: str = "{service} • {identity}"

    @property
    def group_name(self) -> str:
        return self.name.lower()

    def rewrite_host(self, host: str) -> str:
        """Map a source host to its fix host; unknown hosts are returned unchanged."""
        return self.host_rewrites.get(host.lower(), host)

    def extract_identity(self, original_url: str) -> str:
        match = self.identity_pattern.search(original_url)
        if match is None or not match.group(1):
            return "Unknown"
        return match.group(1)

    def label_for(self, identity: str) -> str:
        return self.label_template.format(service=self.name, identity=identity)


SERVICE_RULES: Tuple[ServiceRule, ...] = (
    ServiceRule(
        name="Twitter",
        url_pattern=r"(?i:twitter\.com|x\.com)/[A-Za-z0-9_]+/status/[0-9]+",
        identity_pattern=re.compile(r"(?i:twitter\.com|x\.com)/([A-Za-z0-9_]+)/status/[0-9]+"),
        host_rewrites={"twitter.com": "fxtwitter.com", "x.com": "fixupx.com"},
    ),
    ServiceRule(
        name="Instagram",
        url_pattern=r"(?i:instagram\.com)/(?:p|reel)/[A-Za-z0-9_-]+",
        identity_pattern=re.compile(r"(?i:instagram\.com)/(?:p|reel)/([A-Za-z0-9_-]+)"),
        host_rewrites={"instagram.com": "instafix.ldez.top"},
    ),
    ServiceRule(
        name="Reddit",
        url_pattern=(
            r"(?i:reddit\.com)/r/[A-Za-z0-9_]+/s/[A-Za-z0-9_]+"
            r"|(?i:reddit\.com)/r/[A-Za-z0-9_]+/comments/[A-Za-z0-9_]+/[A-Za-z0-9_]+"
            r"|(?i:old\.reddit\.com)/r/[A-Za-z0-9_]+/comments/[A-Za-z0-9_]+/[A-Za-z0-9_]+"
        ),
        identity_pattern=re.compile(r"(?i:reddit\.com)/r/([A-Za-z0-9_]+)"),
        host_rewrites={"old.reddit.com": "old.rxddit.com", "reddit.com": "vxreddit.ldez.workers.dev"},
    ),
    ServiceRule(
        name="Pixiv",
        url_pattern=r"(?i:pixiv\.net)/(?:en/)?artworks/[0-9]+",
        identity_pattern=re.compile(r"(?i:pixiv\.net)/(?:en/)?artworks/([0-9]+)"),
        host_rewrites={"pixiv.net": "phixiv.net"},
    ),
    ServiceRule(
        name="Threads",
        url_pattern=r"(?i:threads\.(?:net|com))/@[^/\s<>]+/post/[A-Za-z0-9_-]+",
        identity_pattern=re.compile(r"(?i:threads\.(?:net|com))/@([^/\s<>]+)/post/[A-Za-z0-9_-]+"),
        host_rewrites={"threads.net": "fixthreads.net", "threads.com": "fixthreads.net"},
        label_template="{service} • @{identity}",
    ),
    ServiceRule(
        name="Bluesky",
        url_pattern=r"(?i:bsky\.app)/profile/[^/\s<>]+/post/[A-Za-z0-9_-]+",
        identity_pattern=re.compile(r"(?i:bsky\.app)/profile/([^/\s<>]+)/post/[A-Za-z0-9_-]+"),
        host_rewrites={"bsky.app": "fxbsky.app"},
    ),
)

RULES_BY_GROUP: Dict[str, ServiceRule] = {rule.group_name: rule for rule in SERVICE_RULES}
