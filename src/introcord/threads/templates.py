"""
Thread title and reply templates.

Templates use ``${name}`` placeholders drawn from the closed
:class:`Placeholder` set. Rendering resolves each placeholder through
:func:`resolve_placeholder`; anything outside the set raises
:class:`UnknownPlaceholderError` instead of leaking into a thread title.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]*)\}")

FALLBACK_TITLE = "New thread"


class Placeholder(str, Enum):
    AUTHOR = "author"
    AUTHOR_USERNAME = "author.username"
    AUTHOR_DISPLAY_NAME = "author.displayName"
    AUTHOR_TAG = "author.tag"
    FIRST_50 = "first50"
    FIRST_100 = "first100"
    CHANNEL_NAME = "channel.name"

    @property
    def token(self) -> str:
        return "${" + self.value + "}"


class UnknownPlaceholderError(ValueError):
    """Raised when a template references a placeholder outside :class:`Placeholder`."""

    def __init__(self, names: list[str]):
        self.names = names
        super().__init__("Unknown template placeholder(s): " + ", ".join("${" + n + "}" for n in names))


def content_prefix(content: str | None, length: int) -> str:
    """First ``length`` characters of ``content``, trimmed, or the fallback title if blank."""
    return (content or "")[:length].strip() or FALLBACK_TITLE


def find_unknown_placeholders(template: str) -> list[str]:
    """Return the placeholder names in ``template`` that are not recognised, in order."""
    known = {p.value for p in Placeholder}
    unknown: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name not in known and name not in unknown:
            unknown.append(name)
    return unknown


def resolve_placeholder(placeholder: Placeholder, message: Any) -> str:
    """Look up the text for one placeholder from a message-like object."""
    author = message.author
    if placeholder is Placeholder.AUTHOR:
        return f"<@{author.id}>"
    if placeholder is Placeholder.AUTHOR_USERNAME:
        return author.name
    if placeholder is Placeholder.AUTHOR_DISPLAY_NAME:
        return getattr(author, "display_name", None) or author.name
    if placeholder is Placeholder.AUTHOR_TAG:
        return str(author)
    if placeholder is Placeholder.FIRST_50:
        return content_prefix(message.content, 50)
    if placeholder is Placeholder.FIRST_100:
        return content_prefix(message.content, 100)
    if placeholder is Placeholder.CHANNEL_NAME:
        return getattr(message.channel, "name", None) or "channel"
    raise UnknownPlaceholderError([str(placeholder)])  # pragma: no cover - enum is closed


def render_template(template: str, message: Any) -> str:
    """Substitute every placeholder in ``template`` using ``message``.

    Raises:
        UnknownPlaceholderError: If the template uses an unrecognised placeholder.
    """
    unknown = find_unknown_placeholders(template)
    if unknown:
        raise UnknownPlaceholderError(unknown)

    return PLACEHOLDER_PATTERN.sub(
        lambda match: resolve_placeholder(Placeholder(match.group(1)), message),
        template,
    )
