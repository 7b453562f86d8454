"""Heuristics for suggesting the type a developer most likely meant.

Only the audit uses these; nothing here ever blocks a declaration.
"""

import re
from typing import Iterable

SIMILARITY_THRESHOLD = 0.6
MIN_WORD_LENGTH = 3

_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")
# Acronym runs (HTTPS in HTTPSClient), capitalised words, lower-case runs, digits.
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_TYPE_SUFFIXES = ("Request", "Response")


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in [0, 1] based on edit distance."""
    a, b = a.lower(), b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def split_words(name: str) -> list[str]:
    """Split an identifier into words, de-duplicated case-insensitively.

    ``HTTPSClient`` -> ``["HTTPS", "Client"]``,
    ``getKOLInviteCodeUsage`` -> ``["get", "KOL", "Invite", "Code", "Usage"]``.
    """
    seen = set()
    words = []
    for chunk in _SEPARATOR_RE.split(name):
        for word in _WORD_RE.findall(chunk):
            key = word.lower()
            if key not in seen:
                seen.add(key)
                words.append(word)
    return words


def significant_words(name: str) -> set[str]:
    return {w.lower() for w in split_words(name) if len(w) >= MIN_WORD_LENGTH}


def shares_significant_word(a: str, b: str) -> bool:
    return bool(significant_words(a) & significant_words(b))


def strip_type_suffix(name: str) -> str:
    for suffix in _TYPE_SUFFIXES:
        if name.endswith(suffix) and name != suffix:
            return name[: -len(suffix)]
    return name


def is_related(candidate: str, operation_name: str, resource: str | None = None) -> bool:
    """True when *candidate* plausibly names a type of *operation_name*."""
    if similarity(candidate, operation_name) > SIMILARITY_THRESHOLD:
        return True
    if shares_significant_word(candidate, operation_name):
        return True
    if resource:
        return resource.lower() in candidate.lower()
    return False


def _score(candidate: str, operation_name: str) -> tuple[float, int]:
    shared = significant_words(candidate) & significant_words(operation_name)
    return similarity(strip_type_suffix(candidate), operation_name), len(shared)


def find_related_type(
    expected: str,
    operation_name: str,
    candidates: Iterable[str],
    resource: str | None = None,
) -> str | None:
    """Best related name among *candidates* carrying the same suffix as *expected*."""
    suffix = next((s for s in _TYPE_SUFFIXES if expected.endswith(s)), "")
    related = [
        name for name in candidates
        if name != expected and name.endswith(suffix) and is_related(name, operation_name, resource)
    ]
    if not related:
        return None
    return max(related, key=lambda name: _score(name, operation_name))
