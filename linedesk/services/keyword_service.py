from typing import Iterable, List, Optional

FULLWIDTH_COMMA = "，"


def parse_csv_list(raw: Optional[str]) -> List[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Full-width commas are accepted as delimiters.
    """
    if not raw:
        return []
    normalized = raw.replace(FULLWIDTH_COMMA, ",")
    return [item.strip() for item in normalized.split(",") if item.strip()]


def parse_keywords(raw: Optional[str]) -> List[str]:
    return parse_csv_list(raw)


def match_keyword(message: str, keywords: Iterable[str]) -> Optional[str]:
    """Return the first keyword that triggers a handover, or None.

    Single-character keywords only match when they are the whole message;
    longer keywords match anywhere in the message.
    """
    if not message:
        return None
    for keyword in keywords:
        if not keyword:
            continue
        if len(keyword) == 1:
            if message == keyword:
                return keyword
        elif keyword in message:
            return keyword
    return None
