import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def normalize_text(text: str) -> str:
    """Normalize extracted document text.

    Converts line breaks to ``\\n``, drops control characters left behind by
    PDF extraction, collapses runs of spaces/tabs and reduces blank lines.

    Args:
        text: Raw text to normalize.

    Returns:
        str: Normalized and trimmed text.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS.sub("", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
