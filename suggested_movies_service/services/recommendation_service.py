"""Service for collaborative movie recommendations from a seed set."""
import logging
from typing import Iterable, List, Optional

from suggested_movies_service.config import RecommendationSettings, get_recommendation_settings
from suggested_movies_service.exceptions import RecommendationGenerationError, StoreError
from suggested_movies_service.services.collaborative import CollaborativeSignalCollector
from suggested_movies_service.services.content import ContentFeatureAggregator
from suggested_movies_service.services.diversity import apply_diversity
from suggested_movies_service.services.formatter import ScoredMovie, format_results
from suggested_movies_service.services.query_cache import StoreQueryCache
from suggested_movies_service.services.scoring import ScoringEngine, normalize_popularity
from suggested_movies_service.services.store import InteractionStore, SqlInteractionStore

logger = logging.getLogger(__name__)


def clean_input_slugs(input_slugs: Optional[Iterable[str]]) -> List[str]:
    """
    Strip, drop blanks and de-duplicate input slugs, keeping their order.

    A single string is treated as one slug.
    """
    if not input_slugs:
        return []
    if isinstance(input_slugs, str):
        input_slugs = [input_slugs]
    cleaned = []
    for slug in input_slugs:
        if not isinstance(slug, str):
            continue
        slug = slug.strip()
        if slug and slug not in cleaned:
            cleaned.append(slug)
    return cleaned


class MovieRecommendationService:
    """
    Recommends movies from a small set of liked/favorited input movies.

    Pipeline: collaborative signal collection, popularity normalization,
    content filtering, scoring, genre diversity, formatting. All scores
    live in locals of a single call; nothing is shared between requests
    except the optional query cache passed in by the caller.
    """

    def __init__(
            self,
            store: Optional[InteractionStore] = None,
            settings: Optional[RecommendationSettings] = None,
            cache: Optional[StoreQueryCache] = None
    ):
        """
        Initialize the recommendation service.

        Args:
            store: Interaction store (default: SqlInteractionStore built per request)
            settings: Pipeline constants (default: from config/environment)
            cache: Query cache shared across requests (default: a fresh cache per request)
        """
        self.settings = settings or get_recommendation_settings()
        self._store = store
        self.cache = cache

        logger.info("Initialized MovieRecommendationService")
        logger.info(
            f"Multipliers - Favorite: {self.settings.favorite_multiplier}, "
            f"Like: {self.settings.like_multiplier}, "
            f"Shared genre: {self.settings.shared_genre_multiplier}, "
            f"Bayesian weight: {self.settings.bayesian_weight}"
        )

    def _store_for_request(self) -> InteractionStore:
        if self._store is not None:
            return self._store
        cache = self.cache
        if cache is None:
            cache = StoreQueryCache(ttl_seconds=self.settings.query_cache_ttl_seconds)
        return SqlInteractionStore(cache=cache)

    def generate_recommendations(
            self,
            input_slugs: Optional[Iterable[str]],
            num_recommendations: Optional[int] = None
    ) -> List[ScoredMovie]:
        """
        Generate ranked, genre-diversified recommendations.

        Args:
            input_slugs: Slugs of the movies the user liked
            num_recommendations: Override for the number of results

        Returns:
            List of ScoredMovie, highest score first. Empty input gives [].

        Raises:
            RecommendationGenerationError: a store lookup or pipeline step failed
        """
        slugs = clean_input_slugs(input_slugs)
        if not slugs:
            logger.warning("No input movie slugs provided")
            return []

        limit = self.settings.num_recommendations if num_recommendations is None else num_recommendations
        if limit < 1:
            return []

        logger.info(f"Generating {limit} recommendations for {slugs}")

        try:
            return self._run_pipeline(slugs, limit)
        except StoreError as e:
            logger.error(f"Error generating recommendations: {e}", exc_info=True)
            raise RecommendationGenerationError("Failed to generate recommendations") from e
        except Exception as e:
            logger.error(f"Unexpected error generating recommendations: {e}", exc_info=True)
            raise RecommendationGenerationError("Failed to generate recommendations") from e

    def _run_pipeline(self, slugs: List[str], limit: int) -> List[ScoredMovie]:
        s = self.settings
        store = self._store_for_request()

        # STEP 1: collaborative signals
        collector = CollaborativeSignalCollector(
            store,
            favorite_multiplier=s.favorite_multiplier,
            like_multiplier=s.like_multiplier,
            batch_size=s.user_batch_size,
            max_workers=s.store_max_workers,
        )
        signals = collector.collect(slugs)
        if not signals.raw_scores:
            logger.info("No candidate movies found")
            return []

        # STEP 2: popularity normalization
        like_counts = store.get_total_like_counts()
        normalized = normalize_popularity(signals.raw_scores, like_counts)

        # STEP 3: content features
        aggregator = ContentFeatureAggregator(store, review_threshold_divider=s.review_threshold_divider)
        profile = aggregator.load_inputs(slugs)
        features = aggregator.aggregate(normalized.keys(), profile)

        # STEP 4: scoring and ranking
        engine = ScoringEngine(
            shared_genre_multiplier=s.shared_genre_multiplier,
            decade_multiplier=s.decade_multiplier,
            decade_window=s.decade_window,
            recency_decay_factor=s.recency_decay_factor,
            bayesian_weight=s.bayesian_weight,
        )
        ranked = engine.score_candidates(
            raw_scores=signals.raw_scores,
            normalized_scores=normalized,
            candidate_movies=features.movies,
            candidate_genres=features.genres,
            input_genres=profile.genres,
            avg_input_year=profile.average_year,
            like_counts=like_counts,
        )

        # STEP 5: genre diversity
        diversified = apply_diversity(ranked, max_per_genre=s.max_per_genre, limit=limit)

        # STEP 6: formatting
        results = format_results(diversified, features.movies)

        logger.info(f"✓ Generated {len(results)} recommendations")
        for i, movie in enumerate(results, start=1):
            logger.info(f"  {i}. {movie.title} (score: {movie.score:.2f}, genres: {', '.join(movie.genres)})")

        return results
