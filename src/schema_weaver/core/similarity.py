"""Column name normalization and edit-distance similarity."""

import re

from rapidfuzz.distance import Levenshtein

_SEPARATORS = re.compile(r"[_\s-]")


def normalize_name(name: str) -> str:
    """
    Lower-case, drop separators and a trailing "id"/"ids" suffix.

    "donor_id", "DonorID" and "donor" all normalize to "donor".
    """
    normalized = _SEPARATORS.sub("", name.lower())
    if normalized.endswith("ids"):
        normalized = normalized[:-3]
    elif normalized.endswith("id"):
        normalized = normalized[:-2]
    return normalized.strip()


def name_similarity(a: str, b: str) -> float:
    """
    Edit-distance similarity of two normalized column names, in [0, 1].

    Returns 0.0 when either name normalizes to the empty string.
    """
    na = normalize_name(a)
    nb = normalize_name(b)
    if not na or not nb:
        return 0.0
    distance = Levenshtein.distance(na, nb)
    return max(0.0, min(1.0, 1.0 - distance / max(len(na), len(nb))))
