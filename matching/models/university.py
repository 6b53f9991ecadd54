from sqlalchemy import Column, String, Float, Integer, DateTime, Text

from .base import Base


class CatalogUniversity(Base):
    __tablename__ = "universities"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    city = Column(String)
    state_province = Column(String)
    country = Column(String, index=True)
    website_url = Column(String)
    acceptance_rate = Column(Float)
    ranking_global = Column(Integer)

    # Meta
    data_source = Column(String)
    last_reviewed_at = Column(DateTime)
    notes = Column(Text)
