"""Genre diversity cap for ranked recommendations."""

import logging
from typing import Dict, List, Sequence

from suggested_movies_service.services.scoring import ScoredCandidate

logger = logging.getLogger(__name__)


def apply_diversity(
        ranked: Sequence[ScoredCandidate],
        max_per_genre: int = 3,
        limit: int = 5
) -> List[ScoredCandidate]:
    """
    Limit how many results may share a genre.

    Walks the ranked list once. A candidate is admitted while every one
    of its genres is below max_per_genre; otherwise it goes to an
    overflow list. Overflow candidates, in rank order, only fill slots
    the capped list leaves empty.

    Args:
        ranked: Candidates sorted by score, highest first
        max_per_genre: Maximum admitted candidates per genre
        limit: Number of results to return

    Returns:
        At most `limit` candidates
    """
    admitted: List[ScoredCandidate] = []
    overflow: List[ScoredCandidate] = []
    genre_counts: Dict[str, int] = {}

    for candidate in ranked:
        if len(admitted) >= limit:
            break

        genres = set(candidate.genres)
        if all(genre_counts.get(genre, 0) < max_per_genre for genre in genres):
            admitted.append(candidate)
            for genre in genres:
                genre_counts[genre] = genre_counts.get(genre, 0) + 1
        else:
            overflow.append(candidate)

    if len(admitted) < limit and overflow:
        logger.info(f"Genre cap left {limit - len(admitted)} open slots; refilling from {len(overflow)} capped candidates")

    return (admitted + overflow)[:limit]
