from typing import Any, Dict, List
import json

from ..logic.contracts import Candidate, MatchOutput, Program, University
from .safety_rules import (
    SAFETY_RULES,
    EXPLAINER_ROLE_DEFINITION,
    SCORER_ROLE_DEFINITION,
    EXPLANATION_FORMAT_INSTRUCTION,
    SCORE_FORMAT_INSTRUCTION,
)


def _system_prompt(role_definition: str, format_instruction: str) -> str:
    rules_str = "\n".join([f"- {rule}" for rule in SAFETY_RULES])

    return f"""{role_definition}

SAFETY RULES (NON-NEGOTIABLE):
{rules_str}

OUTPUT FORMAT:
{format_instruction}
"""


def build_explainer_system_prompt() -> str:
    """Constructs the static system prompt for match explanations."""
    return _system_prompt(EXPLAINER_ROLE_DEFINITION, EXPLANATION_FORMAT_INSTRUCTION)


def build_scorer_system_prompt() -> str:
    """Constructs the static system prompt for per-program fit scoring."""
    return _system_prompt(SCORER_ROLE_DEFINITION, SCORE_FORMAT_INSTRUCTION)


def summarize_candidate(candidate: Candidate) -> Dict[str, Any]:
    """Prompt-safe applicant summary. No identifiers are sent."""
    summary: Dict[str, Any] = {
        "gpa_4_scale": candidate.gpa or None,
        "target_degree": candidate.target_degree or None,
        "research_interests": sorted(candidate.research_interests),
        "gre": candidate.test_scores.gre or None,
        "toefl": candidate.test_scores.toefl or None,
        "ielts": candidate.test_scores.ielts or None,
    }
    if candidate.cv_signals:
        summary["skills"] = candidate.cv_signals.skills[:15]
        summary["experience"] = candidate.cv_signals.experience[:5]
        summary["publications"] = candidate.cv_signals.publication_count
    return summary


def build_scoring_prompt(candidate: Candidate, university: University, program: Program) -> str:
    """User prompt asking for a single 0-1 fit score."""
    program_summary = {
        "university": university.name,
        "country": university.country,
        "program": program.name,
        "degree_level": program.degree_level,
        "admission_rate": program.admission_rate,
        "research_areas": program.research_areas,
    }

    return f"""
APPLICANT:
{json.dumps(summarize_candidate(candidate), indent=2)}

PROGRAM:
{json.dumps(program_summary, indent=2)}

TASK:
Rate the applicant's fit for this program. Adhere strictly to the safety rules.
"""


def build_explanation_prompt(candidate: Candidate, output: MatchOutput, limit: int = 5) -> str:
    """
    Constructs the user prompt from the candidate and engine results.
    Truncates matches to save tokens.
    """
    minimized_matches = _minimize_match_data(output, limit)

    return f"""
APPLICANT PROFILE:
{json.dumps(summarize_candidate(candidate), indent=2)}

ENGINE OUTPUT SUMMARY:
- Universities in catalog: {output.total_universities}
- Programs evaluated: {output.total_programs_evaluated}
- Coverage sufficient: {output.coverage_sufficient}
- Engine Warnings: {json.dumps(output.warnings)}

TOP MATCHES (Ranked):
{json.dumps(minimized_matches, indent=2)}

TASK:
Explain these matches to the applicant. Adhere strictly to the safety rules.
"""


def _minimize_match_data(output: MatchOutput, limit: int) -> List[Dict[str, Any]]:
    """Helper to reduce match size for prompt."""
    minimized = []
    for match in output.matches[:limit]:
        minimized.append({
            "program_id": match.program.id,
            "university": match.university.name,
            "program": match.program.name,
            "country": match.university.country,
            "score": match.overall_score,
            "category": match.category,
            "reasoning": match.reasoning[:3],
        })
    return minimized
