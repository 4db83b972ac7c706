# src/filters/text_normalizer.py

"""Canonical comparable form for queries and entity fields."""

import re
import unicodedata

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: object) -> str:
    """Reduce *text* to lowercase ASCII words separated by single spaces.

    Diacritics are stripped by decomposing and dropping combining marks,
    anything outside ``[a-z0-9\\s]`` becomes a space, and whitespace runs
    collapse.  Never raises: ``None`` yields ``""`` and other objects are
    passed through ``str()``.
    """
    if text is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", str(text))
    stripped = "".join(
        ch for ch in decomposed if not unicodedata.combining(ch)
    )
    cleaned = _NON_ALNUM_RE.sub(" ", stripped.lower())
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def normalized_length(text: object) -> int:
    """Length of ``normalize(text)``."""
    return len(normalize(text))
