"""Service classes"""

from .collaborative import CollaborativeSignalCollector, CollaborativeSignals
from .content import ContentFeatureAggregator
from .diversity import apply_diversity
from .formatter import ScoredMovie, format_results
from .query_cache import StoreQueryCache
from .recommendation_service import MovieRecommendationService
from .scoring import ScoringEngine, normalize_popularity
from .store import InteractionStore, SqlInteractionStore

__all__ = [
    "MovieRecommendationService",
    "CollaborativeSignalCollector",
    "CollaborativeSignals",
    "ContentFeatureAggregator",
    "ScoringEngine",
    "normalize_popularity",
    "apply_diversity",
    "format_results",
    "ScoredMovie",
    "StoreQueryCache",
    "InteractionStore",
    "SqlInteractionStore",
]
