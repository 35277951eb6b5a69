from app.db.base import Base
from app.models.candidate import Candidate, Education, WorkExperience

__all__ = [
    "Base",
    "Candidate",
    "Education",
    "WorkExperience",
]
