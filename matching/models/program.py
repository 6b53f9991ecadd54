from sqlalchemy import Column, String, Float, Integer, JSON, ForeignKey

from .base import Base


class CatalogProgram(Base):
    __tablename__ = "university_programs"

    id = Column(String, primary_key=True)
    university_id = Column(String, ForeignKey("universities.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    department = Column(String)
    degree_level = Column(String)
    duration_months = Column(Integer)
    admission_rate = Column(Float)
    tuition_annual = Column(Float)
    currency = Column(String, default="USD")
    research_areas = Column(JSON)
