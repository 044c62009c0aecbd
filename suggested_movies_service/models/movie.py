"""Movie records owned by the external catalog."""
from sqlalchemy import Column, Float, Integer, String

from suggested_movies_service.models.base import Base


class Movie(Base):
    """A film in the catalog, keyed by its slug.

    Read-only from the recommender's point of view; rows are written by
    the admin tooling or scripts/populate_database.py.
    """
    __tablename__ = 'movies'

    slug = Column(String(255), primary_key=True)
    title = Column(String(255), nullable=False)
    release_year = Column(Integer, nullable=True)
    runtime = Column(Integer, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=True)
    popularity_ranking = Column(Integer, nullable=True)
    poster_url = Column(String(512), nullable=True)
    link = Column(String(512), nullable=True)

    def __repr__(self):
        return f"<Movie(slug='{self.slug}', title='{self.title}')>"
