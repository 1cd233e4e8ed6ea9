import re

BULLETS = ["•", "◦", "‣", "▪", "▸", "►", "●", "○", "■", "□", "·"]

_BULLET_LINE_RE = re.compile(r"(?m)^([ \t]*)(?:" + "|".join(re.escape(b) for b in BULLETS) + r")[ \t]*")


def normalize_text(s: str) -> str:
    """Clean raw file text before it becomes a Document's content."""
    if not s:
        return s
    # Normalize Windows line endings
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    # Leading bullet glyphs -> "- "
    s = _BULLET_LINE_RE.sub(r"\1- ", s)
    s = s.replace("\u00a0", " ")  # nbsp -> space
    # De-hyphenate line breaks like "configu-\nration" -> "configuration"
    s = re.sub(r"(\w)-\n(\w)", r"\1\2", s)
    # Collapse multiple spaces
    s = re.sub(r"[ \t]{2,}", " ", s)
    # Trim excessive blank lines
    s = re.sub(r"\n{3,}", "\n\n", s)
    return s.strip()


def collapse_whitespace(s: str) -> str:
    return re.sub(r"\s+", " ", s or "").strip()
