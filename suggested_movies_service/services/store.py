"""Interaction store facade consumed by the recommendation core."""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set, TypeVar

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from suggested_movies_service.exceptions import StoreQueryError, StoreUnavailableError
from suggested_movies_service.models import Movie
from suggested_movies_service.repos import InteractionRepository, MovieRepository
from suggested_movies_service.services.query_cache import StoreQueryCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CONNECTION_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


class InteractionStore(Protocol):
    """Read-only lookups the recommendation pipeline needs from the store."""

    def find_users_who_favorited(self, movie_slug: str) -> Set[str]: ...

    def find_users_who_liked(self, movie_slug: str) -> Set[str]: ...

    def get_other_favorites(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]: ...

    def get_other_likes(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]: ...

    def get_total_like_counts(self) -> Dict[str, int]: ...

    def get_movies(self, slugs: Iterable[str]) -> Dict[str, Movie]: ...

    def get_genres(self, slugs: Iterable[str]) -> Dict[str, List[str]]: ...


class SqlInteractionStore:
    """
    InteractionStore backed by the SQLAlchemy repositories.

    Every call opens and closes its own session, so one instance can be
    used from several worker threads at once.
    """

    def __init__(
            self,
            session_factory: Optional[Callable[[], Session]] = None,
            cache: Optional[StoreQueryCache] = None
    ):
        """
        Args:
            session_factory: Callable returning a new Session (default: SessionLocal)
            cache: Optional query cache shared by this store's lookups
        """
        if session_factory is None:
            from suggested_movies_service.models.database import SessionLocal
            session_factory = SessionLocal

        self.session_factory = session_factory
        self.cache = cache

    def _run(self, description: str, operation: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            return operation(db)
        except _CONNECTION_ERRORS as e:
            logger.error(f"Store unavailable during {description}: {e}")
            raise StoreUnavailableError(f"Store unavailable during {description}") from e
        except SQLAlchemyError as e:
            logger.warning(f"Store query failed during {description}: {e}")
            raise StoreQueryError(f"Store query failed during {description}") from e
        finally:
            db.close()

    def _cached(self, key: tuple, loader: Callable[[], T]) -> T:
        if self.cache is None:
            return loader()
        return self.cache.get_or_load(key, loader)

    def find_users_who_favorited(self, movie_slug: str) -> Set[str]:
        return self._cached(
            ("favorited_by", movie_slug),
            lambda: self._run(
                f"favorited-user lookup for {movie_slug}",
                lambda db: InteractionRepository(db).find_users_who_favorited(movie_slug),
            ),
        )

    def find_users_who_liked(self, movie_slug: str) -> Set[str]:
        return self._cached(
            ("liked_by", movie_slug),
            lambda: self._run(
                f"liked-user lookup for {movie_slug}",
                lambda db: InteractionRepository(db).find_users_who_liked(movie_slug),
            ),
        )

    def get_other_favorites(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        exclude = tuple(sorted(set(exclude_slugs)))
        return self._cached(
            ("other_favorites", username, exclude),
            lambda: self._run(
                f"favorites lookup for user {username}",
                lambda db: InteractionRepository(db).get_other_favorites(username, exclude),
            ),
        )

    def get_other_likes(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        exclude = tuple(sorted(set(exclude_slugs)))
        return self._cached(
            ("other_likes", username, exclude),
            lambda: self._run(
                f"likes lookup for user {username}",
                lambda db: InteractionRepository(db).get_other_likes(username, exclude),
            ),
        )

    def get_total_like_counts(self) -> Dict[str, int]:
        return self._cached(
            ("total_like_counts",),
            lambda: self._run(
                "corpus like counts",
                lambda db: InteractionRepository(db).get_total_like_counts(),
            ),
        )

    def get_movies(self, slugs: Iterable[str]) -> Dict[str, Movie]:
        slugs = list(slugs)

        def load(db: Session) -> Dict[str, Movie]:
            movies = MovieRepository(db).get_movies(slugs)
            # Records must stay readable after the session closes
            for movie in movies.values():
                db.expunge(movie)
            return movies

        return self._run(f"movie lookup ({len(slugs)} slugs)", load)

    def get_genres(self, slugs: Iterable[str]) -> Dict[str, List[str]]:
        slugs = list(slugs)
        return self._run(
            f"genre lookup ({len(slugs)} slugs)",
            lambda db: MovieRepository(db).get_genres(slugs),
        )
