"""Prefix sanitizer: turns page text into a filename stem.

Provides `sanitize_prefix`, used for every prefix before it names a file.
"""

from __future__ import annotations

import html
import re

# Separadores de caminho e o pipe nunca podem aparecer no nome do arquivo.
_FORBIDDEN = str.maketrans("", "", "/\\|")

# Espaço horizontal: espaço, tab e espaço não separável (&nbsp;).
_HORIZONTAL_WS = re.compile("[ \t\u00a0]+")


def _sanitize_once(text: str) -> str:
    text = html.unescape(text)
    text = text.translate(_FORBIDDEN)
    text = _HORIZONTAL_WS.sub(" ", text)
    return text.strip()


def sanitize_prefix(text: str) -> str:
    """Return a filesystem-safe version of `text`.

    Steps, in order: decode HTML entities, drop `/`, `\\` and `|`, collapse
    runs of horizontal whitespace into one space and trim the ends.

    The steps are repeated until the value stops changing, so
    `sanitize_prefix(sanitize_prefix(x)) == sanitize_prefix(x)` also holds for
    doubly encoded input such as ``&amp;amp;`` or ``&am|p;``. Every pass that
    changes the text either shortens it or replaces a non-breaking space,
    which bounds the number of passes by the input length.
    """
    previous = None
    while text != previous:
        previous = text
        text = _sanitize_once(text)
    return text
