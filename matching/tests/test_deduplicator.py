"""
Deduplication tests.
"""

from matching.logic.contracts import MatchFactors, ScoredProgram
from matching.logic.deduplicator import count_duplicates, dedupe_matches
from matching.logic.ranker import rank_matches

from conftest import make_candidate, make_program, make_university


def _matches(specs):
    """specs: (university name, program id, research alignment)"""
    candidate = make_candidate()
    scored = []
    for name, program_id, research in specs:
        university = make_university(name)
        scored.append(ScoredProgram(
            university=university,
            program=make_program(program_id, university),
            factors=MatchFactors(
                gpa_match=0.9,
                research_alignment=research,
                location_preference=1.0,
                financial_fit=1.0,
            ),
        ))
    return rank_matches(candidate, scored)


def test_case_insensitive_names_keep_higher_score():
    matches = _matches([("MIT", "mit-low", 0.2), ("mit", "mit-high", 0.9)])

    result = dedupe_matches(matches)

    assert len(result) == 1
    assert result[0].program.id == "mit-high"


def test_whitespace_is_ignored():
    matches = _matches([(" Stanford ", "s-1", 0.5), ("stanford", "s-2", 0.4)])
    assert [m.program.id for m in dedupe_matches(matches)] == ["s-1"]


def test_equal_scores_keep_first_seen():
    matches = _matches([("Oxford", "o-1", 0.5), ("OXFORD", "o-2", 0.5)])
    result = dedupe_matches(matches)

    assert len(result) == 1
    assert result[0].program.id == matches[0].program.id


def test_order_is_preserved_and_idempotent():
    matches = _matches([
        ("Alpha", "a-1", 0.9),
        ("Beta", "b-1", 0.8),
        ("alpha", "a-2", 0.3),
        ("Gamma", "g-1", 0.1),
    ])

    once = dedupe_matches(matches)
    twice = dedupe_matches(once)

    assert [m.program.id for m in once] == ["a-1", "b-1", "g-1"]
    assert once == twice


def test_count_duplicates():
    matches = _matches([("MIT", "m-1", 0.5), ("mit", "m-2", 0.4), ("Yale", "y-1", 0.3)])
    assert count_duplicates(matches) == 1
    assert count_duplicates(dedupe_matches(matches)) == 0


def test_empty_input():
    assert dedupe_matches([]) == []
