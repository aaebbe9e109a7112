from __future__ import annotations

from collections.abc import Sequence

WORD_SEPARATORS = frozenset(" _-./")


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Score a candidate using subsequence matching; higher scores are better."""
    query = query.casefold().strip()
    candidate = candidate.casefold()
    if not query:
        return 0

    cursor = -1
    gap_penalty = 0
    run_length = 0
    longest_run = 0
    boundary_hits = 0

    for char in query:
        index = candidate.find(char, cursor + 1)
        if index == -1:
            return None
        if cursor != -1:
            gap_penalty += index - cursor - 1
        if index == cursor + 1:
            run_length += 1
        else:
            run_length = 1
        if index == 0 or candidate[index - 1] in WORD_SEPARATORS:
            boundary_hits += 1
        longest_run = max(longest_run, run_length)
        cursor = index

    prefix_bonus = 120 if candidate.startswith(query) else 0
    length_penalty = len(candidate) - len(query)
    return (
        prefix_bonus
        + (longest_run * 20)
        + (boundary_hits * 10)
        - (gap_penalty * 2)
        - length_penalty
    )


def filter_indices(query: str, candidates: Sequence[str]) -> list[int]:
    """Return indices of matching candidates, best match first.

    A blank query means "no active filter" and yields an empty list; callers
    tell that apart from "no matches" by checking the query themselves.
    """
    if not query.strip():
        return []

    scored: list[tuple[int, int]] = []
    for index, candidate in enumerate(candidates):
        score = fuzzy_score(query, candidate)
        if score is not None:
            scored.append((score, index))

    scored.sort(key=lambda item: (-item[0], item[1]))
    return [index for _, index in scored]
