"""Content features for input movies and candidates."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

import numpy as np

from suggested_movies_service.services.scoring import average_release_year, review_count_of
from suggested_movies_service.services.store import InteractionStore

logger = logging.getLogger(__name__)

MEDIAN_MIN_INPUTS = 6


def comparison_baseline(review_counts: Sequence[int]) -> float:
    """
    Baseline review count of the input movies.

    Median when there are at least six values, arithmetic mean for one
    to five, 0 when there are none.
    """
    if not review_counts:
        return 0.0
    if len(review_counts) >= MEDIAN_MIN_INPUTS:
        return float(np.median(review_counts))
    return float(np.mean(review_counts))


@dataclass
class InputProfile:
    """What the pipeline knows about the seed movies."""
    input_slugs: List[str]
    movies: Dict[str, object] = field(default_factory=dict)
    genres: Set[str] = field(default_factory=set)
    average_year: Optional[float] = None
    review_threshold: float = 0.0
    missing_slugs: List[str] = field(default_factory=list)


@dataclass
class CandidateFeatures:
    """Metadata and genres for candidates that passed the content filters."""
    movies: Dict[str, object] = field(default_factory=dict)
    genres: Dict[str, List[str]] = field(default_factory=dict)
    dropped_missing: int = 0
    dropped_no_genres: int = 0
    dropped_below_threshold: int = 0

    @property
    def slugs(self) -> List[str]:
        return list(self.movies)


class ContentFeatureAggregator:
    """
    Loads movie metadata and genres, and filters out candidates that are
    too obscure or untagged to recommend.
    """

    def __init__(self, store: InteractionStore, review_threshold_divider: float = 5.0):
        self.store = store
        self.review_threshold_divider = review_threshold_divider

    def load_inputs(self, input_slugs: Sequence[str]) -> InputProfile:
        """
        Build the input profile: genres, average year and review threshold.

        Input slugs without a movie record are logged and ignored.
        """
        profile = InputProfile(input_slugs=list(input_slugs))

        movies = self.store.get_movies(input_slugs)
        genres = self.store.get_genres(input_slugs)

        for slug in input_slugs:
            movie = movies.get(slug)
            if movie is None:
                logger.warning(f"Input movie not found: {slug}")
                profile.missing_slugs.append(slug)
                continue
            profile.movies[slug] = movie
            profile.genres.update(genres.get(slug, []))

        profile.average_year = average_release_year(profile.movies.values())

        baseline = comparison_baseline([review_count_of(m) for m in profile.movies.values()])
        profile.review_threshold = baseline / self.review_threshold_divider

        logger.info(
            f"Input profile: {len(profile.movies)} movies, {len(profile.genres)} genres, "
            f"avg year {profile.average_year}, review threshold {profile.review_threshold:.1f}"
        )
        return profile

    def aggregate(self, candidate_slugs: Iterable[str], profile: InputProfile) -> CandidateFeatures:
        """
        Fetch metadata and genres for candidates and apply the content filters.

        A candidate is kept when it has a movie record, at least one genre,
        and review_count >= the profile's review threshold.
        """
        candidate_slugs = list(candidate_slugs)
        features = CandidateFeatures()
        if not candidate_slugs:
            return features

        movies = self.store.get_movies(candidate_slugs)
        genres = self.store.get_genres(candidate_slugs)

        for slug in candidate_slugs:
            movie = movies.get(slug)
            if movie is None:
                features.dropped_missing += 1
                continue

            movie_genres = genres.get(slug) or []
            if not movie_genres:
                features.dropped_no_genres += 1
                continue

            if review_count_of(movie) < profile.review_threshold:
                features.dropped_below_threshold += 1
                continue

            features.movies[slug] = movie
            features.genres[slug] = list(movie_genres)

        if features.dropped_missing:
            logger.warning(f"{features.dropped_missing} candidates have no movie record")

        logger.info(
            f"✓ {len(features.movies)}/{len(candidate_slugs)} candidates kept "
            f"({features.dropped_no_genres} without genres, "
            f"{features.dropped_below_threshold} below review threshold)"
        )
        return features
