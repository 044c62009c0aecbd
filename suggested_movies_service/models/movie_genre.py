"""Flat movie <-> genre join relation."""
from sqlalchemy import Column, Index, Integer, String

from suggested_movies_service.models.base import Base


class MovieGenre(Base):
    """One genre tag attached to one movie."""
    __tablename__ = 'genres'

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_slug = Column(String(255), nullable=False)
    genre = Column(String(100), nullable=False)

    __table_args__ = (
        Index("idx_genres_movie_slug", "movie_slug"),
    )

    def __repr__(self):
        return f"<MovieGenre(movie_slug='{self.movie_slug}', genre='{self.genre}')>"
