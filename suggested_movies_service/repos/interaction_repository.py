"""Repository for user like/favorite events."""

import logging
from typing import Dict, Iterable, List, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from suggested_movies_service.models import MovieFavorite, MovieLike

logger = logging.getLogger(__name__)


class InteractionRepository:
    """
    Repository for like and favorite events.

    All lookups return sets, so duplicate raw rows collapse here.
    """

    def __init__(self, db: Session):
        self.db = db

    def _users_for_movie(self, model, movie_slug: str) -> Set[str]:
        rows = (
            self.db.query(model.username)
            .filter(model.movie_slug == movie_slug)
            .distinct()
            .all()
        )
        return {row[0] for row in rows if row[0]}

    def _other_movies_for_user(self, model, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        query = self.db.query(model.movie_slug).filter(model.username == username)

        exclude = list(dict.fromkeys(exclude_slugs))
        if exclude:
            query = query.filter(model.movie_slug.notin_(exclude))

        return {row[0] for row in query.distinct().all() if row[0]}

    def find_users_who_favorited(self, movie_slug: str) -> Set[str]:
        """Usernames that favorited the given movie."""
        return self._users_for_movie(MovieFavorite, movie_slug)

    def find_users_who_liked(self, movie_slug: str) -> Set[str]:
        """Usernames that liked the given movie."""
        return self._users_for_movie(MovieLike, movie_slug)

    def get_other_favorites(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        """
        Get a user's favorites, excluding the given slugs.

        Args:
            username: User to look up
            exclude_slugs: Slugs to leave out (normally the input movies)

        Returns:
            Set of movie slugs
        """
        return self._other_movies_for_user(MovieFavorite, username, exclude_slugs)

    def get_other_likes(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        """
        Get a user's likes, excluding the given slugs.

        Args:
            username: User to look up
            exclude_slugs: Slugs to leave out (normally the input movies)

        Returns:
            Set of movie slugs
        """
        return self._other_movies_for_user(MovieLike, username, exclude_slugs)

    # noinspection PyTypeChecker
    def get_total_like_counts(self) -> Dict[str, int]:
        """
        Count likes per movie across the whole corpus.

        Returns:
            Dict mapping movie slug to number of like rows
        """
        rows = (
            self.db.query(MovieLike.movie_slug, func.count(MovieLike.id))
            .group_by(MovieLike.movie_slug)
            .all()
        )
        counts = {slug: int(count) for slug, count in rows}
        logger.debug(f"Loaded like counts for {len(counts)} movies")
        return counts

    def count_likes(self) -> int:
        """Count like rows."""
        return self.db.query(MovieLike).count()

    def count_favorites(self) -> int:
        """Count favorite rows."""
        return self.db.query(MovieFavorite).count()

    def bulk_store_likes(self, rows: List[Dict], batch_size: int = 1000) -> int:
        """Replace all likes with the given {username, movie_slug} rows."""
        return self._bulk_store(MovieLike, rows, batch_size)

    def bulk_store_favorites(self, rows: List[Dict], batch_size: int = 1000) -> int:
        """Replace all favorites with the given {username, movie_slug} rows."""
        return self._bulk_store(MovieFavorite, rows, batch_size)

    def _bulk_store(self, model, rows: List[Dict], batch_size: int) -> int:
        logger.info(f"Clearing existing {model.__tablename__}...")
        self.db.query(model).delete()
        self.db.commit()

        records = [
            model(username=row["username"], movie_slug=row["movie_slug"])
            for row in rows
            if row.get("username") and row.get("movie_slug")
        ]

        count = 0
        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            self.db.bulk_save_objects(batch)
            self.db.commit()
            count += len(batch)

            if count % 50000 == 0:
                logger.info(f"  Inserted {count}/{len(records)} {model.__tablename__}...")

        logger.info(f"✓ Stored {count} {model.__tablename__}")
        return count
