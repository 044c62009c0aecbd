"""SQLAlchemy models"""

from suggested_movies_service.models.base import Base
from suggested_movies_service.models.interaction import MovieFavorite, MovieLike
from suggested_movies_service.models.movie import Movie
from suggested_movies_service.models.movie_genre import MovieGenre

__all__ = [
    "Base",
    "Movie",
    "MovieGenre",
    "MovieLike",
    "MovieFavorite",
]
