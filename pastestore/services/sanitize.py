from __future__ import annotations

import nh3


ALLOWED_TAGS: frozenset[str] = frozenset(
    {
        "p",
        "br",
        "strong",
        "em",
        "u",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "ul",
        "ol",
        "li",
        "code",
        "pre",
        "blockquote",
    }
)


def sanitize_html(html: str) -> str:
    """
    Keep only the allow-listed formatting tags, with every attribute removed.

    Other tags are dropped; ``<script>`` and ``<style>`` lose their content
    as well. Stray ``<``/``>`` in text come back entity-escaped.
    """
    return nh3.clean(
        html,
        tags=set(ALLOWED_TAGS),
        attributes={},
        url_schemes=set(),
        link_rel=None,
    )


def escape_for_template(content: str) -> str:
    """Escape backslashes, backticks and ``${`` for a JavaScript template literal."""
    return (
        content.replace("\\", "\\\\")
        .replace("`", "\\`")
        .replace("${", "\\${")
    )
