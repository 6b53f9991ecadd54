"""
Match Engine Errors

Empty catalogs and insufficient coverage are reported as MatchCondition
values on the output, not raised.
"""


class MatchingError(Exception):
    """Base class for match engine errors."""


class InvalidCandidateData(MatchingError, ValueError):
    """A candidate field is outside its documented range."""

    def __init__(self, field: str, value, reason: str = "out of range"):
        self.field = field
        self.value = value
        super().__init__(f"Invalid candidate field '{field}' ({value!r}): {reason}")


class CatalogError(MatchingError):
    """A catalog entry cannot be turned into a university record."""


class AIScoringError(MatchingError):
    """The external AI service returned an unusable score."""
