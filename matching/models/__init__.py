# Export all catalog models for easy imports
from .base import Base
from .university import CatalogUniversity
from .program import CatalogProgram

__all__ = [
    "Base",
    "CatalogUniversity",
    "CatalogProgram",
]
