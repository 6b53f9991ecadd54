"""
Match Deduplicator

Collapses matches that refer to the same university, keeping the
highest-scoring program per university.
"""

from typing import Dict, List, Sequence

from .catalog import university_key
from .contracts import Match


def dedupe_matches(matches: Sequence[Match]) -> List[Match]:
    """
    Keep one match per university (case-insensitive, trimmed name).

    Within a group the highest overall score wins; on equal scores the
    first seen is kept. Kept matches stay in their input order, so
    dedupe_matches(dedupe_matches(x)) == dedupe_matches(x).

    Args:
        matches: Matches in any order

    Returns:
        Deduplicated list
    """
    best_index: Dict[str, int] = {}
    for index, match in enumerate(matches):
        key = university_key(match.university.name)
        current = best_index.get(key)
        if current is None or match.overall_score > matches[current].overall_score:
            best_index[key] = index

    keep = set(best_index.values())
    return [match for index, match in enumerate(matches) if index in keep]


def count_duplicates(matches: Sequence[Match]) -> int:
    """Number of matches dedupe_matches() would drop."""
    return len(matches) - len({university_key(m.university.name) for m in matches})
