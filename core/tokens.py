import re

# comma, semicolon or pipe; stored values mix all three
DELIMITERS = re.compile(r"[,;|]")
PRIMARY_DELIMITER = ", "


def split_tokens(raw) -> list[str]:
    """Split a delimited string or a list of strings into trimmed tokens."""
    if raw is None:
        return []
    if isinstance(raw, str):
        parts = DELIMITERS.split(raw)
    else:
        parts = []
        for item in raw:
            if item is None:
                continue
            parts.extend(DELIMITERS.split(item if isinstance(item, str) else str(item)))
    return [p.strip() for p in parts if p and p.strip()]
