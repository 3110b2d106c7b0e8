"""Canonical form of document text for checksumming."""

import re
import unicodedata

_ZERO_WIDTH = re.compile(r"[\u200B-\u200D\uFEFF]")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.M)
_BLANK_RUN = re.compile(r"\n{3,}")


def normalize_text(value: str) -> str:
    """Fold away edits that do not change what a note says.

    Applies NFKC, converts CR/CRLF to LF, drops zero-width characters and
    trailing whitespace, and squeezes runs of blank lines down to one. Paragraph
    boundaries are preserved.
    """
    if not value:
        return value

    text = unicodedata.normalize("NFKC", value)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ZERO_WIDTH.sub("", text)
    text = _TRAILING_SPACE.sub("", text)
    return _BLANK_RUN.sub("\n\n", text).strip()
