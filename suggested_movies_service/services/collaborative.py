"""Collaborative signal collection from like/favorite overlap."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Sequence, Set, Tuple

from suggested_movies_service.exceptions import StoreQueryError
from suggested_movies_service.services.store import InteractionStore

logger = logging.getLogger(__name__)


class InteractionKind(str, Enum):
    LIKE = "like"
    FAVORITE = "favorite"


class InteractionKey(NamedTuple):
    """One counted (user, movie, kind) event."""
    username: str
    movie_slug: str
    kind: InteractionKind


@dataclass
class CollaborativeSignals:
    """Output of one collection pass."""
    user_interaction_counts: Dict[str, int] = field(default_factory=dict)
    raw_scores: Dict[str, float] = field(default_factory=dict)
    skipped_users: List[str] = field(default_factory=list)

    @property
    def user_count(self) -> int:
        return len(self.user_interaction_counts)


class CollaborativeSignalCollector:
    """
    Builds the raw candidate pool from users who share the input movies.

    Every user who liked or favorited an input movie contributes their
    other likes and favorites, weighted by how many input movies they
    interacted with.
    """

    def __init__(
            self,
            store: InteractionStore,
            favorite_multiplier: float = 50.0,
            like_multiplier: float = 10.0,
            batch_size: int = 50,
            max_workers: int = 8
    ):
        self.store = store
        self.favorite_multiplier = favorite_multiplier
        self.like_multiplier = like_multiplier
        self.batch_size = batch_size
        self.max_workers = max_workers

    def collect(self, input_slugs: Sequence[str]) -> CollaborativeSignals:
        """
        Collect per-user interaction counts and raw candidate scores.

        Args:
            input_slugs: Seed movie slugs

        Returns:
            CollaborativeSignals for this request

        Raises:
            StoreUnavailableError: the store could not be reached
            StoreQueryError: an input lookup failed, or every user lookup failed
        """
        signals = CollaborativeSignals()
        if not input_slugs:
            return signals

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            signals.user_interaction_counts = self._count_user_interactions(executor, input_slugs)

            if not signals.user_interaction_counts:
                logger.warning(f"No users found who interacted with {list(input_slugs)}")
                return signals

            logger.info(f"Found {signals.user_count} users who interacted with the input movies")
            self._score_other_movies(executor, input_slugs, signals)

        logger.info(
            f"✓ Collected {len(signals.raw_scores)} candidates from {signals.user_count} users "
            f"({len(signals.skipped_users)} skipped)"
        )
        return signals

    def _count_user_interactions(self, executor: ThreadPoolExecutor, input_slugs: Sequence[str]) -> Dict[str, int]:
        favorited = [executor.submit(self.store.find_users_who_favorited, slug) for slug in input_slugs]
        liked = [executor.submit(self.store.find_users_who_liked, slug) for slug in input_slugs]

        seen: Set[Tuple[str, str]] = set()
        counts: Dict[str, int] = {}
        for slug, fav_future, like_future in zip(input_slugs, favorited, liked):
            fav_users = fav_future.result()
            like_users = like_future.result()
            logger.debug(f"{slug}: {len(fav_users)} favorited, {len(like_users)} liked")

            # Liking and favoriting the same input movie counts once
            for username in sorted(fav_users | like_users):
                if (username, slug) in seen:
                    continue
                seen.add((username, slug))
                counts[username] = counts.get(username, 0) + 1

        return counts

    def _fetch_user_movies(self, username: str, exclude: Tuple[str, ...]) -> Tuple[Set[str], Set[str]]:
        favorites = self.store.get_other_favorites(username, exclude)
        likes = self.store.get_other_likes(username, exclude)
        return favorites, likes

    def _score_other_movies(
            self,
            executor: ThreadPoolExecutor,
            input_slugs: Sequence[str],
            signals: CollaborativeSignals
    ):
        exclude = tuple(input_slugs)
        excluded = set(input_slugs)
        processed: Set[InteractionKey] = set()
        usernames = sorted(signals.user_interaction_counts)
        attempted = 0

        for i in range(0, len(usernames), self.batch_size):
            batch = usernames[i:i + self.batch_size]
            futures = [executor.submit(self._fetch_user_movies, username, exclude) for username in batch]

            for username, future in zip(batch, futures):
                attempted += 1
                try:
                    favorites, likes = future.result()
                except StoreQueryError as e:
                    logger.warning(f"Skipping user {username}: {e}")
                    signals.skipped_users.append(username)
                    continue

                multiplier = signals.user_interaction_counts[username]
                self._add_contributions(
                    signals.raw_scores, processed, excluded, username, favorites,
                    InteractionKind.FAVORITE, self.favorite_multiplier * multiplier
                )
                self._add_contributions(
                    signals.raw_scores, processed, excluded, username, likes,
                    InteractionKind.LIKE, self.like_multiplier * multiplier
                )

            if len(usernames) > self.batch_size:
                logger.info(f"  Processed {min(i + self.batch_size, len(usernames))}/{len(usernames)} users...")

        if attempted and len(signals.skipped_users) == attempted:
            raise StoreQueryError(f"All {attempted} user lookups failed")

    @staticmethod
    def _add_contributions(
            raw_scores: Dict[str, float],
            processed: Set[InteractionKey],
            excluded: Set[str],
            username: str,
            movie_slugs: Set[str],
            kind: InteractionKind,
            points: float
    ):
        for movie_slug in sorted(movie_slugs):
            if movie_slug in excluded:
                continue
            key = InteractionKey(username, movie_slug, kind)
            if key in processed:
                continue
            processed.add(key)
            raw_scores[movie_slug] = raw_scores.get(movie_slug, 0.0) + points
