"""Join ranked candidates back to full movie records."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from suggested_movies_service.services.scoring import ScoreBreakdown, ScoredCandidate, review_count_of

logger = logging.getLogger(__name__)


@dataclass
class ScoredMovie:
    """A recommended movie: its record, final score and genres."""
    slug: str
    title: str
    score: float
    genres: List[str]
    release_year: Optional[int] = None
    runtime: Optional[int] = None
    review_count: int = 0
    average_rating: Optional[float] = None
    popularity_ranking: Optional[int] = None
    poster_url: Optional[str] = None
    link: Optional[str] = None
    score_breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    def to_dict(self) -> Dict:
        return {
            'slug': self.slug,
            'title': self.title,
            'release_year': self.release_year,
            'runtime': self.runtime,
            'review_count': self.review_count,
            'average_rating': self.average_rating,
            'popularity_ranking': self.popularity_ranking,
            'poster_url': self.poster_url,
            'link': self.link,
            'score': self.score,
            'genres': list(self.genres),
            'score_breakdown': self.score_breakdown.to_dict(),
        }


def format_results(ranked: Sequence[ScoredCandidate], movies: Mapping[str, object]) -> List[ScoredMovie]:
    """
    Build ScoredMovie results in descending score order.

    Candidates whose movie record is missing are excluded.
    """
    results = []
    for candidate in ranked:
        movie = movies.get(candidate.slug)
        if movie is None:
            logger.warning(f"Movie not found while formatting results: {candidate.slug}")
            continue

        results.append(ScoredMovie(
            slug=candidate.slug,
            title=movie.title,
            score=candidate.score,
            genres=list(candidate.genres),
            release_year=movie.release_year,
            runtime=movie.runtime,
            review_count=review_count_of(movie),
            average_rating=movie.average_rating,
            popularity_ranking=getattr(movie, 'popularity_ranking', None),
            poster_url=getattr(movie, 'poster_url', None),
            link=getattr(movie, 'link', None),
            score_breakdown=candidate.breakdown,
        ))

    results.sort(key=lambda m: -m.score)
    return results
