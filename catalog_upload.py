import os
import sys
import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Tuple

from sqlalchemy.orm import Session
from dotenv import load_dotenv

from db import Base, engine, get_db
from matching.models import CatalogProgram, CatalogUniversity

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data/catalog.json")

UNIVERSITY_FIELDS = ("name", "city", "state_province", "country", "website_url", "acceptance_rate", "ranking_global")
PROGRAM_FIELDS = ("name", "department", "degree_level", "duration_months", "admission_rate", "currency", "research_areas")


def import_catalog(db: Session, entries: Iterable[Dict[str, Any]], data_source: str = "json") -> Tuple[int, int]:
    """
    Upsert universities and their programs by id.

    Each entry is {"university": {...}, "programs": [...]}; an entry without
    a "university" key is read as a flat university record with a
    "programs" list. Values are stored as given; the engine's catalog loader
    normalizes rates and skips malformed rows.

    Returns:
        (universities written, programs written)
    """
    universities_written = 0
    programs_written = 0

    for entry in entries:
        raw_university = entry.get("university", entry)
        university_id = raw_university.get("id")
        if not university_id or not raw_university.get("name"):
            logger.warning(f"⚠️ Skipping catalog entry without id/name: {raw_university.get('name')!r}")
            continue

        university = db.get(CatalogUniversity, str(university_id))
        if university is None:
            university = CatalogUniversity(id=str(university_id))
            db.add(university)
        for field in UNIVERSITY_FIELDS:
            if field in raw_university:
                setattr(university, field, raw_university[field])
        university.data_source = data_source
        university.last_reviewed_at = datetime.utcnow()
        universities_written += 1

        for raw_program in entry.get("programs") or []:
            program_id = raw_program.get("id")
            if not program_id or not raw_program.get("name"):
                logger.warning(f"⚠️ Skipping program without id/name at {raw_university['name']}")
                continue

            program = db.get(CatalogProgram, str(program_id))
            if program is None:
                program = CatalogProgram(id=str(program_id))
                db.add(program)
            program.university_id = str(university_id)
            for field in PROGRAM_FIELDS:
                if field in raw_program:
                    setattr(program, field, raw_program[field])
            tuition = raw_program.get("annual_tuition", raw_program.get("tuition_annual"))
            if tuition is not None:
                program.tuition_annual = tuition
            programs_written += 1

    db.flush()
    logger.info(f"✅ Catalog imported: {universities_written} universities, {programs_written} programs")
    return universities_written, programs_written


def import_catalog_file(path: str = DEFAULT_CATALOG_PATH) -> Tuple[int, int]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    Base.metadata.create_all(bind=engine)
    with get_db() as db:
        return import_catalog(db, data, data_source=os.path.basename(path))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    import_catalog_file(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CATALOG_PATH)
