"""
Catalog Repository

Fetches the university catalog snapshot from the database.

This is a pure READ layer:
- NO scoring logic
- NO rate normalization (UniversityCatalog.load does that)
- NO DB writes
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import CatalogProgram, CatalogUniversity
from .normalizer import canonical_country

logger = logging.getLogger(__name__)


def fetch_university_catalog(
    db: Session,
    country_filter: Optional[List[str]] = None
) -> List[Dict[str, Any]]:
    """
    Fetch universities with their programs as raw catalog entries.

    Rows are returned as dicts in the shape UniversityCatalog.load() accepts;
    failures propagate to the caller.

    Args:
        db: Database session
        country_filter: Optional list of country names or codes

    Returns:
        List of {"university": {...}, "programs": [...]} dicts, ordered by university id
    """
    query = db.query(CatalogUniversity)

    if country_filter:
        names = sorted({canonical_country(c).lower() for c in country_filter if canonical_country(c)})
        if names:
            query = query.filter(func.lower(CatalogUniversity.country).in_(names))

    universities = query.order_by(CatalogUniversity.id).all()
    if not universities:
        return []

    programs_by_university: Dict[str, List[Dict[str, Any]]] = {}
    program_rows = (
        db.query(CatalogProgram)
        .filter(CatalogProgram.university_id.in_([u.id for u in universities]))
        .order_by(CatalogProgram.id)
        .all()
    )
    for program in program_rows:
        programs_by_university.setdefault(program.university_id, []).append(_program_to_dict(program))

    entries = [
        {
            "university": _university_to_dict(university),
            "programs": programs_by_university.get(university.id, []),
        }
        for university in universities
    ]

    logger.info(f"📦 Catalog fetched: {len(entries)} universities, {len(program_rows)} programs")
    return entries


def _university_to_dict(university: CatalogUniversity) -> Dict[str, Any]:
    return {
        "id": university.id,
        "name": university.name,
        "city": university.city,
        "country": university.country,
        "website_url": university.website_url,
        "acceptance_rate": university.acceptance_rate,
        "ranking_global": university.ranking_global,
    }


def _program_to_dict(program: CatalogProgram) -> Dict[str, Any]:
    return {
        "id": program.id,
        "university_id": program.university_id,
        "name": program.name,
        "degree_level": program.degree_level,
        "duration_months": program.duration_months,
        "admission_rate": program.admission_rate,
        "annual_tuition": program.tuition_annual,
        "currency": program.currency,
        "research_areas": program.research_areas or [],
    }
