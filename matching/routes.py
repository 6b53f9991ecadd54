"""
Match API Routes

Exposes the match engine via REST API.
Single endpoint: POST /matches
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from db import get_db
from .logic.constants import DEFAULT_MIN_COUNT, ENGINE_VERSION
from .logic.exceptions import InvalidCandidateData, MatchingError
from .logic.normalizer import normalize_profile
from .logic.runner import run_matching, serialize_output
from .ai.explainer import explainer
from .ai.scorer import ai_scorer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["matches"])


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class MatchRequest(BaseModel):
    """Request body for matches endpoint."""
    profile: Dict[str, Any] = Field(
        ...,
        description="Applicant profile",
        examples=[{
            "gpa": 3.6,
            "testScores": {"gre": 320, "toefl": 105},
            "researchInterests": ["machine learning", "computer vision"],
            "targetDegree": "MS Computer Science",
            "preferences": {"countries": ["US", "Canada"], "maxTuition": 50000}
        }]
    )
    cv_analysis: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Optional CV analysis (skills, experience, education, research areas)"
    )
    min_count: int = Field(
        default=DEFAULT_MIN_COUNT,
        ge=1,
        le=100,
        description="Minimum distinct universities for sufficient coverage"
    )
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        le=500,
        description="Max matches to return"
    )
    ai_scores: Optional[Dict[str, float]] = Field(
        default=None,
        description="Precomputed AI scores keyed by program id"
    )
    use_ai: bool = Field(
        default=False,
        description="Fetch AI scores for the top matches and re-rank"
    )
    explain: bool = Field(
        default=False,
        description="Include AI-generated explanation"
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("", summary="Match an applicant to university programs")
@router.post("/", summary="Match an applicant to university programs", include_in_schema=False)
def create_matches(
    request: MatchRequest,
    db_session=Depends(get_db)
):
    """
    Generate categorized university matches for an applicant.

    **Request Body:**
    - `profile`: Applicant's academic profile and preferences
    - `cv_analysis`: Optional CV analysis
    - `min_count`: Minimum distinct universities (default: 12)
    - `limit`: Maximum number of matches to return
    - `use_ai`: Blend AI scores for the top matches (default: False)
    - `explain`: Include AI-generated explanation (default: False)

    **Response:**
    - Ranked matches categorized as reach / target / safety
    - Factor scores, reasoning and confidence for each match
    - Coverage signals and warnings
    """
    try:
        db: Session
        with db_session as db:
            output = run_matching(
                db,
                request.profile,
                raw_cv_analysis=request.cv_analysis,
                min_count=request.min_count,
                limit=request.limit,
                ai_scores=request.ai_scores,
                ai_scorer=ai_scorer if request.use_ai else None,
            )

        response_data = serialize_output(output)

        # AI Explanation Layer
        if request.explain:
            explanation = explainer.get_explanation(
                request_id=output.request_id,
                candidate=normalize_profile(request.profile, request.cv_analysis),
                output=output
            )
            if explanation:
                response_data["ai_explanation"] = explanation

        return response_data

    except InvalidCandidateData as e:
        raise HTTPException(status_code=422, detail=str(e))
    except MatchingError as e:
        logger.error(f"❌ Matching failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception as e:
        logger.exception("❌ Unexpected error while matching")
        return JSONResponse(status_code=500, content={"error": str(e)})


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/health", summary="Match engine health check")
def health_check():
    """Check if match engine is operational."""
    return {
        "status": "ok",
        "engine": "matching",
        "version": ENGINE_VERSION,
        "ai_available": ai_scorer.available,
    }
