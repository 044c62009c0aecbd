"""Repository for movie records and their genre tags."""

import logging
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from suggested_movies_service.models import Movie, MovieGenre

logger = logging.getLogger(__name__)


def _unique(slugs: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(s for s in slugs if s))


class MovieRepository:
    """
    Repository for movie metadata and genre tags.
    """

    def __init__(self, db: Session):
        self.db = db

    # noinspection PyTypeChecker
    def get_movies(self, slugs: Iterable[str], batch_size: int = 100) -> Dict[str, Movie]:
        """
        Bulk fetch movies keyed by slug.

        Args:
            slugs: Movie slugs to look up
            batch_size: Number of slugs per IN query

        Returns:
            Dict mapping slug to Movie. Unknown slugs are absent.
        """
        slugs = _unique(slugs)
        movies: Dict[str, Movie] = {}

        for i in range(0, len(slugs), batch_size):
            batch = slugs[i:i + batch_size]
            rows = self.db.query(Movie).filter(Movie.slug.in_(batch)).all()
            for movie in rows:
                movies[movie.slug] = movie

        if len(movies) < len(slugs):
            logger.debug(f"{len(slugs) - len(movies)} of {len(slugs)} requested movies not found")

        return movies

    # noinspection PyTypeChecker
    def get_genres(self, slugs: Iterable[str], batch_size: int = 25) -> Dict[str, List[str]]:
        """
        Bulk fetch genre tags keyed by slug.

        Genres keep their stored order and are de-duplicated per movie.

        Args:
            slugs: Movie slugs to look up
            batch_size: Number of slugs per IN query

        Returns:
            Dict mapping slug to list of genres. Movies without genres are absent.
        """
        slugs = _unique(slugs)
        genres: Dict[str, List[str]] = {}

        for i in range(0, len(slugs), batch_size):
            batch = slugs[i:i + batch_size]
            rows = (
                self.db.query(MovieGenre.movie_slug, MovieGenre.genre)
                .filter(MovieGenre.movie_slug.in_(batch))
                .order_by(MovieGenre.id)
                .all()
            )
            for movie_slug, genre in rows:
                if not genre:
                    continue
                movie_genres = genres.setdefault(movie_slug, [])
                if genre not in movie_genres:
                    movie_genres.append(genre)

        return genres

    def count_movies(self) -> int:
        """Count movies in the catalog."""
        return self.db.query(Movie).count()

    def bulk_store_movies(self, movies_data: List[Dict], batch_size: int = 100) -> int:
        """
        Replace the catalog with the given movies.

        Args:
            movies_data: List of movie dicts (slug and title required)
            batch_size: Batch size for inserts

        Returns:
            Number of movies stored
        """
        logger.info("Clearing existing movies...")
        self.db.query(Movie).delete()
        self.db.commit()

        records = [
            Movie(
                slug=movie["slug"],
                title=movie["title"],
                release_year=movie.get("release_year"),
                runtime=movie.get("runtime"),
                review_count=movie.get("review_count") or 0,
                average_rating=movie.get("average_rating"),
                popularity_ranking=movie.get("popularity_ranking"),
                poster_url=movie.get("poster_url"),
                link=movie.get("link"),
            )
            for movie in movies_data
        ]

        count = self._bulk_save(records, batch_size)
        logger.info(f"✓ Stored {count} movies")
        return count

    def bulk_store_genres(self, genres_data: List[Dict], batch_size: int = 1000) -> int:
        """
        Replace all genre tags with the given {movie_slug, genre} rows.

        Returns:
            Number of genre rows stored
        """
        logger.info("Clearing existing genres...")
        self.db.query(MovieGenre).delete()
        self.db.commit()

        records = [
            MovieGenre(movie_slug=row["movie_slug"], genre=row["genre"])
            for row in genres_data
            if row.get("movie_slug") and row.get("genre")
        ]

        count = self._bulk_save(records, batch_size)
        logger.info(f"✓ Stored {count} genre tags")
        return count

    def _bulk_save(self, records: list, batch_size: int) -> int:
        count = 0
        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            self.db.bulk_save_objects(batch)
            self.db.commit()
            count += len(batch)
        return count
