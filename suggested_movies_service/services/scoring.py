"""Score adjustment and ranking for collaborative candidates."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Set

import numpy as np

logger = logging.getLogger(__name__)


# ===== DEFAULT RESOLUTION =====

def review_count_of(movie) -> int:
    """Review/interaction count of a movie record, 0 when missing."""
    value = getattr(movie, "review_count", None) if movie is not None else None
    if value is None:
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def release_year_of(movie) -> Optional[int]:
    """Release year of a movie record, None when missing or unparseable."""
    value = getattr(movie, "release_year", None) if movie is not None else None
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def total_likes_of(like_counts: Mapping[str, int], slug: str) -> int:
    """Corpus-wide like count for a slug; 1 when absent so it can divide."""
    count = like_counts.get(slug) or 0
    return count if count > 0 else 1


def average_like_count(like_counts: Mapping[str, int]) -> float:
    """Mean like count over movies that have at least one like."""
    if not like_counts:
        return 0.0
    return float(np.mean(list(like_counts.values())))


def average_release_year(movies: Iterable) -> Optional[float]:
    """Mean release year of the movies that have one."""
    years = [year for year in (release_year_of(m) for m in movies) if year is not None]
    if not years:
        return None
    return float(np.mean(years))


def normalize_popularity(raw_scores: Mapping[str, float], like_counts: Mapping[str, int]) -> Dict[str, float]:
    """
    Scale each raw score by its own ratio to the movie's total likes.

    score = score * (score / totalLikes)

    Args:
        raw_scores: Candidate slug -> accumulated collaborative score
        like_counts: Corpus-wide like counts

    Returns:
        New dict of normalized scores, same key order
    """
    normalized = {}
    for slug, score in raw_scores.items():
        like_ratio = score / total_likes_of(like_counts, slug)
        normalized[slug] = score * like_ratio
    return normalized


# ===== SCORING =====

@dataclass
class ScoreBreakdown:
    """How a candidate's final score was reached."""
    raw_score: float = 0.0
    normalized_score: float = 0.0
    shared_genres: List[str] = field(default_factory=list)
    genre_multiplier: float = 1.0
    decade_multiplier: float = 1.0
    recency_multiplier: float = 1.0
    adjusted_score: float = 0.0
    total_likes: int = 1

    def to_dict(self) -> Dict:
        return {
            'raw_score': self.raw_score,
            'normalized_score': self.normalized_score,
            'shared_genres': list(self.shared_genres),
            'genre_multiplier': self.genre_multiplier,
            'decade_multiplier': self.decade_multiplier,
            'recency_multiplier': self.recency_multiplier,
            'adjusted_score': self.adjusted_score,
            'total_likes': self.total_likes,
        }


@dataclass
class ScoredCandidate:
    """A candidate movie with its final score."""
    slug: str
    score: float
    genres: List[str]
    breakdown: ScoreBreakdown


class ScoringEngine:
    """
    Applies content-based multipliers and Bayesian smoothing to
    popularity-normalized collaborative scores, then ranks them.
    """

    def __init__(
            self,
            shared_genre_multiplier: float = 5.0,
            decade_multiplier: float = 2.0,
            decade_window: int = 10,
            recency_decay_factor: float = 0.95,
            bayesian_weight: float = 50.0,
            current_year: Optional[int] = None
    ):
        self.shared_genre_multiplier = shared_genre_multiplier
        self.decade_multiplier = decade_multiplier
        self.decade_window = decade_window
        self.recency_decay_factor = recency_decay_factor
        self.bayesian_weight = bayesian_weight
        self.current_year = current_year

    def _current_year(self) -> int:
        return self.current_year or datetime.now(UTC).year

    def genre_multiplier(self, shared_genre_count: int) -> float:
        return 1 + shared_genre_count * self.shared_genre_multiplier

    def decade_boost(self, candidate_year: Optional[int], avg_input_year: Optional[float]) -> float:
        """Triangular bonus: full at zero difference, none at the window edge."""
        if candidate_year is None or avg_input_year is None:
            return 1.0
        year_diff = abs(candidate_year - avg_input_year)
        if year_diff > self.decade_window:
            return 1.0
        return 1 + self.decade_multiplier * (1 - year_diff / self.decade_window)

    def recency_boost(self, candidate_year: Optional[int]) -> float:
        """1 + decay^age; 2x for a film released this year, tending to 1x."""
        if candidate_year is None:
            return 1.0
        age = max(self._current_year() - candidate_year, 0)
        return 1 + self.recency_decay_factor ** age

    def bayesian_smooth(self, score: float, total_likes: int, average_likes: float) -> float:
        """Pull the score toward the corpus average, weighted by the movie's own like volume."""
        return (
            (score * total_likes + average_likes * self.bayesian_weight)
            / (total_likes + self.bayesian_weight)
        )

    def score_candidates(
            self,
            raw_scores: Mapping[str, float],
            normalized_scores: Mapping[str, float],
            candidate_movies: Mapping[str, object],
            candidate_genres: Mapping[str, List[str]],
            input_genres: Set[str],
            avg_input_year: Optional[float],
            like_counts: Mapping[str, int]
    ) -> List[ScoredCandidate]:
        """
        Score and rank candidates.

        Candidates missing from candidate_movies, or sharing no genre with
        the input set, are dropped.

        Args:
            raw_scores: Slug -> raw collaborative score
            normalized_scores: Slug -> popularity-normalized score
            candidate_movies: Slug -> movie record for surviving candidates
            candidate_genres: Slug -> genre list for surviving candidates
            input_genres: Union of the input movies' genres
            avg_input_year: Mean release year of the input movies, if known
            like_counts: Corpus-wide like counts

        Returns:
            Candidates sorted by final score, highest first
        """
        average_likes = average_like_count(like_counts)
        scored: List[ScoredCandidate] = []
        dropped_no_overlap = 0

        for slug, score in normalized_scores.items():
            movie = candidate_movies.get(slug)
            if movie is None:
                continue

            genres = candidate_genres.get(slug, [])
            shared = [genre for genre in genres if genre in input_genres]
            if not shared:
                dropped_no_overlap += 1
                continue

            year = release_year_of(movie)
            breakdown = ScoreBreakdown(
                raw_score=raw_scores.get(slug, 0.0),
                normalized_score=score,
                shared_genres=shared,
                genre_multiplier=self.genre_multiplier(len(shared)),
                decade_multiplier=self.decade_boost(year, avg_input_year),
                recency_multiplier=self.recency_boost(year),
                total_likes=total_likes_of(like_counts, slug),
            )

            adjusted = score * breakdown.genre_multiplier * breakdown.decade_multiplier * breakdown.recency_multiplier
            breakdown.adjusted_score = adjusted

            final_score = self.bayesian_smooth(adjusted, breakdown.total_likes, average_likes)
            scored.append(ScoredCandidate(slug=slug, score=final_score, genres=list(genres), breakdown=breakdown))

        if dropped_no_overlap:
            logger.info(f"Dropped {dropped_no_overlap} candidates sharing no genre with the input movies")

        # sorted() is stable, so equal scores keep candidate order
        return sorted(scored, key=lambda c: -c.score)
