"""Value types produced by the link pattern engine."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LinkMatch:
    """
    One recognized link in a message.

    Attributes:
        service: Display name of the service, e.g. ``"Twitter"``.
        original_url: Host and path as written in the message, without scheme or ``www.``.
        rewritten_url: Same path on the fix service host, without scheme.
        display_label: Markdown link text such as ``"Twitter • alice"``.
    """

    service: str
    original_url: str
    rewritten_url: str
    display_label: str

    @property
    def markdown_link(self) -> str:
        return f"[{self.display_label}](https://{self.rewritten_url})"
