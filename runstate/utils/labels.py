from collections.abc import Iterable, Mapping


def parse_labels(labels: Iterable[str]) -> dict[str, str]:
    """Turn persisted ``key=value`` label strings into a mapping.

    Entries without ``=`` are ignored. When a key repeats, the first occurrence wins.
    """
    parsed: dict[str, str] = {}
    for label in labels:
        key, sep, value = label.partition("=")
        if not sep:
            continue
        parsed.setdefault(key, value)
    return parsed


def extract_label(labels: Mapping[str, str] | None, key: str) -> str:
    if not labels:
        return ""
    return labels.get(key, "")
