"""Helpers for turning html messages into plain text."""

from markupsafe import Markup


def strip_tags(content: str) -> str:
    """Remove tags and unescape entities line by line, so the line breaks of the text survive."""
    return "\n".join(Markup(line).striptags() for line in str(content).splitlines())
