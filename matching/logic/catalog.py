"""
University Catalog

Read-only in-memory snapshot of universities and their programs.

Responsibilities:
- Deduplicate universities by normalized name
- Normalize acceptance/admission rates to fractions
- Substitute a fixed, flagged default when a rate is missing (never random)
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from .contracts import CatalogEntry, CatalogPair, Program, University
from .constants import DEFAULT_ADMISSION_RATE, DEFAULT_CURRENCY
from .exceptions import CatalogError
from .normalizer import as_list, canonical_country, normalize_degree_level, normalize_interest

logger = logging.getLogger(__name__)

# Attributes counted when two entries collide on the same name
OPTIONAL_UNIVERSITY_FIELDS = ("city", "country", "website_url", "ranking_global")

RawEntry = Union[CatalogEntry, Dict[str, Any]]


def university_key(name: Optional[str]) -> str:
    """Deduplication key: lower-cased, trimmed university name."""
    return (name or "").lower().strip()


def normalize_rate(value: Any) -> Optional[float]:
    """
    Normalize an acceptance/admission rate to a fraction in [0, 1].

    Values above 1 are percentages and are divided by 100.
    Returns None when the value is absent or unusable.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    if rate != rate or rate < 0:
        return None
    if rate > 1:
        rate = rate / 100
    if rate > 1:
        return None
    return rate


class UniversityCatalog:
    """
    Immutable catalog view for one matching run.

    Build with UniversityCatalog.load(entries).
    """

    def __init__(self, entries: List[CatalogEntry], skipped: int = 0):
        self._entries: Tuple[CatalogEntry, ...] = tuple(entries)
        self.skipped = skipped

    @classmethod
    def load(
        cls,
        entries: Iterable[RawEntry],
        default_admission_rate: float = DEFAULT_ADMISSION_RATE,
    ) -> "UniversityCatalog":
        """
        Load catalog entries, normalizing rates and collapsing duplicates.

        Args:
            entries: CatalogEntry objects or raw dicts
            default_admission_rate: Fallback when no rate is known

        Returns:
            UniversityCatalog
        """
        by_key: Dict[str, University] = {}
        programs_by_key: Dict[str, List[Any]] = {}
        order: List[str] = []
        skipped = 0

        for raw in entries or []:
            try:
                university_raw, programs_raw = _split_entry(raw)
                university = _build_university(university_raw, default_admission_rate)
            except CatalogError as e:
                skipped += 1
                logger.warning(f"⚠️ Skipping catalog entry: {e}")
                continue

            key = university_key(university.name)
            existing = by_key.get(key)
            if existing is None:
                by_key[key] = university
                programs_by_key[key] = list(programs_raw)
                order.append(key)
                continue

            logger.debug(f"Duplicate university '{university.name}' collapsed into '{existing.name}'")
            if _populated_count(university) > _populated_count(existing):
                by_key[key] = university
            programs_by_key[key].extend(programs_raw)

        # Programs are built only once the surviving university record is known
        return cls(
            [_build_entry(by_key[key], programs_by_key[key], default_admission_rate) for key in order],
            skipped=skipped,
        )

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    @property
    def universities(self) -> List[University]:
        return [entry.university for entry in self._entries]

    def all_programs(self) -> List[CatalogPair]:
        """Every (University, Program) pair, in catalog order."""
        return [
            (entry.university, program)
            for entry in self._entries
            for program in entry.programs
        ]

    def get_university(self, name: str) -> Optional[University]:
        key = university_key(name)
        for entry in self._entries:
            if university_key(entry.university.name) == key:
                return entry.university
        return None

    @property
    def program_count(self) -> int:
        return sum(len(entry.programs) for entry in self._entries)

    def is_empty(self) -> bool:
        return self.program_count == 0

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _populated_count(university: University) -> int:
    count = sum(
        1 for field in OPTIONAL_UNIVERSITY_FIELDS
        if getattr(university, field) not in (None, "")
    )
    if not university.acceptance_rate_estimated:
        count += 1
    return count


def _split_entry(raw: RawEntry) -> Tuple[Dict[str, Any], List[Any]]:
    """Return (university dict, raw program rows) for one catalog entry."""
    if isinstance(raw, CatalogEntry):
        return raw.university.model_dump(), [p.model_dump() for p in raw.programs]
    if not isinstance(raw, dict):
        raise CatalogError(f"Unsupported catalog entry type: {type(raw).__name__}")
    if isinstance(raw.get("university"), dict):
        programs_raw = raw.get("programs")
        university_raw = raw["university"]
    else:
        programs_raw = raw.get("programs") or raw.get("university_programs")
        university_raw = raw
    if not isinstance(programs_raw, (list, tuple)):
        programs_raw = []
    return university_raw, list(programs_raw)


def _build_entry(university: University, programs_raw: List[Any], default_admission_rate: float) -> CatalogEntry:
    programs: List[Program] = []
    seen_ids = set()
    for program_raw in programs_raw:
        try:
            program = _build_program(program_raw, university, default_admission_rate)
        except CatalogError as e:
            logger.warning(f"⚠️ Skipping program of '{university.name}': {e}")
            continue
        if program.id in seen_ids:
            continue
        seen_ids.add(program.id)
        programs.append(program)
    return CatalogEntry(university=university, programs=programs)


def _build_university(raw: Dict[str, Any], default_admission_rate: float) -> University:
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise CatalogError("university has no name")

    rate = normalize_rate(raw.get("acceptance_rate"))
    if raw.get("acceptance_rate_estimated"):
        rate = None

    ranking = raw.get("ranking_global", raw.get("qs_ranking"))
    try:
        ranking = int(ranking) if ranking not in (None, "") else None
    except (TypeError, ValueError):
        ranking = None

    try:
        return University(
            id=str(raw.get("id") or university_key(name)),
            name=name.strip(),
            city=raw.get("city") or None,
            country=canonical_country(raw.get("country")) or None,
            website_url=raw.get("website_url") or raw.get("website") or None,
            acceptance_rate=rate if rate is not None else default_admission_rate,
            ranking_global=ranking,
            acceptance_rate_estimated=rate is None,
        )
    except ValidationError as e:
        raise CatalogError(f"invalid university '{name}': {e}") from e


def _build_program(raw: Any, university: University, default_admission_rate: float) -> Program:
    if isinstance(raw, Program):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        raise CatalogError(f"unsupported program type {type(raw).__name__}")

    name = raw.get("name") or raw.get("program_name")
    if not isinstance(name, str) or not name.strip():
        raise CatalogError("program has no name")

    # Program rate -> university rate -> fixed default
    rate = normalize_rate(raw.get("admission_rate"))
    if raw.get("admission_rate_estimated"):
        rate = None
    estimated = False
    if rate is None:
        if university.acceptance_rate_estimated:
            rate = default_admission_rate
            estimated = True
        else:
            rate = university.acceptance_rate

    tuition = raw.get("annual_tuition", raw.get("tuition_annual"))
    try:
        tuition = float(tuition) if tuition not in (None, "") else None
    except (TypeError, ValueError):
        tuition = None
    if tuition is not None and (tuition != tuition or tuition <= 0):
        tuition = None

    try:
        duration = int(raw.get("duration_months") or 0)
    except (TypeError, ValueError):
        duration = 0

    areas = []
    for area in as_list(raw.get("research_areas")):
        tag = normalize_interest(area)
        if tag and tag not in areas:
            areas.append(tag)

    degree_level = raw.get("degree_level")
    if degree_level not in ("phd", "masters", "bachelors", "diploma"):
        degree_level = normalize_degree_level(degree_level or raw.get("degree_type") or name)

    try:
        return Program(
            id=str(raw.get("id") or f"{university.id}:{university_key(name)}"),
            university_id=university.id,
            name=name.strip(),
            duration_months=max(0, duration),
            admission_rate=rate,
            annual_tuition=tuition,
            currency=(raw.get("currency") or DEFAULT_CURRENCY).upper(),
            research_areas=areas,
            degree_level=degree_level,
            admission_rate_estimated=estimated,
        )
    except ValidationError as e:
        raise CatalogError(f"invalid program '{name}': {e}") from e
