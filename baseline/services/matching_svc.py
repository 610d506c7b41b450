from __future__ import annotations

import re
from collections.abc import Iterable

from baseline.domain.models import MergedCandidate

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

DEFAULT_MATCH_THRESHOLD = 0.4
DEFAULT_MIN_TOKEN_LENGTH = 3


def normalize_title(title: str | None) -> str:
    """Canonicalise a title into a comparable key.

    Lower-cases, drops every character that is not ``a-z``, ``0-9`` or
    whitespace, then collapses and trims whitespace. ``"U.S. Senate: Vote!"``
    becomes ``"us senate vote"``. Garbage in gives the empty key.
    """
    if not title:
        return ""
    stripped = _NON_ALPHANUMERIC.sub("", str(title).lower())
    return _WHITESPACE.sub(" ", stripped).strip()


def title_tokens(key: str, min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH) -> set[str]:
    """Words of a normalised key longer than ``min_token_length`` characters."""
    return {word for word in key.split(" ") if len(word) > min_token_length}


def token_overlap(tokens_a: set[str], tokens_b: set[str]) -> float:
    """Shared tokens over the larger token set; 0.0 when both are empty."""
    shared = len(tokens_a & tokens_b)
    return shared / max(len(tokens_a), len(tokens_b), 1)


class FuzzyMatcher:
    """Find the existing cluster a new title belongs to by long-word overlap.

    A linear scan over the pool, so a full run costs O(n²) comparisons. That is
    fine for the tens of candidates a daily run produces.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH,
    ) -> None:
        self.threshold = threshold
        self.min_token_length = min_token_length

    def tokens(self, key: str) -> set[str]:
        return title_tokens(key, self.min_token_length)

    def find_match(
        self, new_key: str, pool: Iterable[tuple[str, MergedCandidate]]
    ) -> MergedCandidate | None:
        """Return the best cluster whose overlap strictly exceeds the threshold.

        Ties keep the earliest cluster in pool order. Titles with no long words
        never match anything, so degenerate titles each get their own cluster.
        """
        new_tokens = self.tokens(new_key)
        if not new_tokens:
            return None

        best_match: MergedCandidate | None = None
        best_overlap = 0.0
        for existing_key, candidate in pool:
            overlap = token_overlap(new_tokens, self.tokens(existing_key))
            if overlap > self.threshold and overlap > best_overlap:
                best_overlap = overlap
                best_match = candidate
        return best_match
