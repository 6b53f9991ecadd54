"""
Shared fixtures for the match engine tests.

Builders return normalized contracts so tests read as data, and the
database fixtures run against in-memory SQLite.
"""

from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base
import matching.models  # noqa: F401  registers catalog tables
from matching.logic.contracts import (
    Candidate,
    CvSignals,
    Preferences,
    Program,
    University,
)


def make_candidate(**overrides) -> Candidate:
    data = {
        "candidate_ref": "cand-1",
        "gpa": 3.8,
        "research_interests": {"machine learning"},
        "preferences": Preferences(),
    }
    data.update(overrides)
    return Candidate(**data)


def make_university(name: str = "Test University", **overrides) -> University:
    data = {
        "id": name.lower().replace(" ", "-"),
        "name": name,
        "country": "United States",
        "acceptance_rate": 0.5,
    }
    data.update(overrides)
    return University(**data)


def make_program(program_id: str = "prog-1", university: University = None, **overrides) -> Program:
    university = university or make_university()
    data = {
        "id": program_id,
        "university_id": university.id,
        "name": "MS Computer Science",
        "admission_rate": 0.5,
        "research_areas": [],
        "degree_level": "masters",
    }
    data.update(overrides)
    return Program(**data)


def catalog_entry(name: str, programs, country: str = "United States", acceptance_rate=0.5, **extra):
    """Raw catalog dict in the shape the repository returns."""
    university = {"id": name.lower().replace(" ", "-"), "name": name, "country": country,
                  "acceptance_rate": acceptance_rate}
    university.update(extra)
    return {"university": university, "programs": programs}


@pytest.fixture
def candidate():
    return make_candidate()


@pytest.fixture
def cv_candidate():
    return make_candidate(
        cv_signals=CvSignals(
            skills=["Python", "Machine Learning", "Statistics"],
            experience=["Research assistant working on machine learning for robotics"],
            projects=["Web shop frontend"],
        )
    )


@pytest.fixture
def example_catalog():
    """Program A is very selective and aligned; Program B is open with no tags."""
    return [
        catalog_entry("Selective Institute", [
            {"id": "prog-a", "name": "MS Machine Learning", "admission_rate": 0.05,
             "research_areas": ["machine learning"], "degree_level": "masters"},
        ], acceptance_rate=0.05),
        catalog_entry("Open State University", [
            {"id": "prog-b", "name": "MS Computer Science", "admission_rate": 0.6,
             "research_areas": [], "degree_level": "masters"},
        ], acceptance_rate=0.6),
    ]


@pytest.fixture
def wide_catalog():
    """Fifteen universities with two programs each."""
    entries = []
    for i in range(15):
        rate = round(0.08 + i * 0.05, 2)
        entries.append(catalog_entry(
            f"University {i:02d}",
            [
                {"id": f"u{i:02d}-ms", "name": "MS Computer Science", "admission_rate": rate,
                 "research_areas": ["machine learning", "robotics"] if i % 2 else ["databases"],
                 "annual_tuition": 20000 + i * 3000, "degree_level": "masters"},
                {"id": f"u{i:02d}-phd", "name": "PhD Computer Science", "admission_rate": rate / 2,
                 "research_areas": ["machine learning"], "degree_level": "phd"},
            ],
            country="Canada" if i % 3 == 0 else "United States",
            acceptance_rate=rate,
        ))
    return entries


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    Session = sessionmaker(bind=db_engine, autoflush=False, autocommit=False, future=True)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_scope(db_session):
    """Stands in for db.get_db in route tests."""
    @contextmanager
    def scope():
        yield db_session
        db_session.commit()

    return scope
