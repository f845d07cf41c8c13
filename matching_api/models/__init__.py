from matching_api.models.base import Base
from matching_api.models.embedding_job import EmbeddingJob
from matching_api.models.photographer_profile import PhotographerProfile
from matching_api.models.survey import SurveyChoice, SurveyImage
from matching_api.models.user import User

__all__ = [
    "Base",
    "User",
    "EmbeddingJob",
    "PhotographerProfile",
    "SurveyChoice",
    "SurveyImage",
]
