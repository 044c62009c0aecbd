"""User like/favorite events.

Likes and favorites live in two separate tables with identical shape.
The tables use a surrogate key, so the same (username, movie_slug) pair
may appear more than once; consumers de-duplicate.
"""
from sqlalchemy import Column, Index, Integer, String

from suggested_movies_service.models.base import Base


class MovieLike(Base):
    """A user liked a movie."""
    __tablename__ = 'likes'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False)
    movie_slug = Column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_likes_movie_slug", "movie_slug"),
        Index("idx_likes_username", "username"),
    )

    def __repr__(self):
        return f"<MovieLike(username='{self.username}', movie_slug='{self.movie_slug}')>"


class MovieFavorite(Base):
    """A user favorited a movie."""
    __tablename__ = 'favorites'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False)
    movie_slug = Column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_favorites_movie_slug", "movie_slug"),
        Index("idx_favorites_username", "username"),
    )

    def __repr__(self):
        return f"<MovieFavorite(username='{self.username}', movie_slug='{self.movie_slug}')>"
