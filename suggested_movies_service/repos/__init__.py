"""Repository classes"""

from suggested_movies_service.repos.interaction_repository import InteractionRepository
from suggested_movies_service.repos.movie_repository import MovieRepository

__all__ = [
    "InteractionRepository",
    "MovieRepository",
]
