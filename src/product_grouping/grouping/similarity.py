"""Textual similarity between product names.

Scores are in [0, 1]. The first matching rule wins:

1. equal after lowercasing and trimming          -> 1.0
2. one name contains the other                   -> 0.8
3. shared whitespace tokens                      -> common / max(token counts)
4. otherwise normalized Levenshtein similarity   -> 1 - distance / max(length)

Tokens have surrounding punctuation stripped ("3%" and "3" are the same
token) so package-size notations still share a token. This is intentional
and scores differ from plain whitespace splitting: "Mjölk, 1L" and
"mjölk 1l" score 1.0 here, not 0.5. Keep it; the Filmjölk clustering tests
depend on it.
"""

from __future__ import annotations

import string

_TOKEN_STRIP = string.punctuation


def normalize_name(name: str | None) -> str:
    """Lowercase and trim a product name for comparison."""
    return (name or "").strip().lower()


def tokenize(text: str) -> list[str]:
    """Split on whitespace and strip punctuation from token edges."""
    tokens = []
    for raw in text.split():
        token = raw.strip(_TOKEN_STRIP)
        if token:
            tokens.append(token)
    return tokens


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current
    return previous[-1]


def similarity(a: str | None, b: str | None) -> float:
    """Similarity score in [0, 1] between two product names.

    Symmetric: the pair is put in a canonical order first, so the token rule
    gives the same answer both ways even when a name repeats a token.
    """
    s1 = normalize_name(a)
    s2 = normalize_name(b)
    if s1 > s2:
        s1, s2 = s2, s1

    if s1 == s2:
        return 1.0

    if s1 in s2 or s2 in s1:
        return 0.8

    tokens1 = tokenize(s1)
    tokens2 = tokenize(s2)
    common = sum(1 for token in tokens1 if token in tokens2)
    if common > 0:
        return common / max(len(tokens1), len(tokens2))

    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return 1 - levenshtein_distance(s1, s2) / max_len
