"""Shared test fixtures and configuration for pytest."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import threading
from typing import Dict, Iterable, List, Set
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from suggested_movies_service.config import RecommendationSettings
from suggested_movies_service.exceptions import StoreQueryError, StoreUnavailableError
from suggested_movies_service.models import Base, Movie, MovieFavorite, MovieGenre, MovieLike


# ===== Fake Store =====

class FakeInteractionStore:
    """In-memory InteractionStore for pipeline tests.

    Records every call so tests can assert on access patterns.
    """

    def __init__(
            self,
            movies: Iterable[Movie] = (),
            genres: Dict[str, List[str]] | None = None,
            likes: Iterable[tuple] = (),
            favorites: Iterable[tuple] = ()
    ):
        self.movies = {movie.slug: movie for movie in movies}
        self.genres = dict(genres or {})
        self.likes = list(likes)
        self.favorites = list(favorites)
        self.failing_users: Set[str] = set()
        self.unavailable = False
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)
        if self.unavailable:
            raise StoreUnavailableError("store is down")

    def find_users_who_favorited(self, movie_slug: str) -> Set[str]:
        self._record("find_users_who_favorited", movie_slug)
        return {user for user, slug in self.favorites if slug == movie_slug}

    def find_users_who_liked(self, movie_slug: str) -> Set[str]:
        self._record("find_users_who_liked", movie_slug)
        return {user for user, slug in self.likes if slug == movie_slug}

    def get_other_favorites(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        self._record("get_other_favorites", username)
        if username in self.failing_users:
            raise StoreQueryError(f"lookup failed for {username}")
        exclude = set(exclude_slugs)
        return {slug for user, slug in self.favorites if user == username and slug not in exclude}

    def get_other_likes(self, username: str, exclude_slugs: Iterable[str]) -> Set[str]:
        self._record("get_other_likes", username)
        if username in self.failing_users:
            raise StoreQueryError(f"lookup failed for {username}")
        exclude = set(exclude_slugs)
        return {slug for user, slug in self.likes if user == username and slug not in exclude}

    def get_total_like_counts(self) -> Dict[str, int]:
        self._record("get_total_like_counts")
        counts: Dict[str, int] = {}
        for _, slug in self.likes:
            counts[slug] = counts.get(slug, 0) + 1
        return counts

    def get_movies(self, slugs: Iterable[str]) -> Dict[str, Movie]:
        slugs = list(slugs)
        self._record("get_movies", tuple(slugs))
        return {slug: self.movies[slug] for slug in slugs if slug in self.movies}

    def get_genres(self, slugs: Iterable[str]) -> Dict[str, List[str]]:
        slugs = list(slugs)
        self._record("get_genres", tuple(slugs))
        return {slug: list(self.genres[slug]) for slug in slugs if self.genres.get(slug)}


def make_movie(slug: str, title: str | None = None, release_year: int | None = 2000,
               review_count: int | None = 100, **kwargs) -> Movie:
    """Build a transient Movie record."""
    return Movie(
        slug=slug,
        title=title or slug.replace('-', ' ').title(),
        release_year=release_year,
        review_count=review_count,
        **kwargs
    )


@pytest.fixture
def movie_factory():
    """Factory for transient Movie records."""
    return make_movie


@pytest.fixture
def fake_store_factory():
    """Factory for FakeInteractionStore instances."""
    return FakeInteractionStore


@pytest.fixture
def scenario_store() -> FakeInteractionStore:
    """
    Two users favorited movie-a. u1 also favorited movie-b (shares a genre
    with movie-a); u2 also liked movie-c (shares no genre).
    """
    return FakeInteractionStore(
        movies=[
            make_movie('movie-a', release_year=2000, review_count=100),
            make_movie('movie-b', release_year=2002, review_count=50),
            make_movie('movie-c', release_year=2001, review_count=50),
        ],
        genres={
            'movie-a': ['Drama', 'Crime'],
            'movie-b': ['Drama'],
            'movie-c': ['Comedy'],
        },
        favorites=[('u1', 'movie-a'), ('u2', 'movie-a'), ('u1', 'movie-b')],
        likes=[('u2', 'movie-c')],
    )


@pytest.fixture
def genre_heavy_store() -> FakeInteractionStore:
    """
    One seed movie and eight candidates, six of them Drama-only, so the
    genre cap decides which Drama films make the list.
    """
    movies = [make_movie('seed', review_count=10)]
    genres = {'seed': ['Drama', 'Thriller']}
    favorites = []
    likes = []

    for i in range(6):
        slug = f'drama-{i}'
        movies.append(make_movie(slug, review_count=10))
        genres[slug] = ['Drama']
        # Earlier dramas are favorited by more users, so they rank higher
        for user in range(6 - i):
            favorites.append((f'user-{user}', slug))

    for i in range(2):
        slug = f'thriller-{i}'
        movies.append(make_movie(slug, review_count=10))
        genres[slug] = ['Thriller']
        likes.append((f'user-{i}', slug))

    for user in range(6):
        favorites.append((f'user-{user}', 'seed'))

    return FakeInteractionStore(movies=movies, genres=genres, favorites=favorites, likes=likes)


# ===== Settings Fixtures =====

@pytest.fixture
def default_settings() -> RecommendationSettings:
    """Default pipeline settings, independent of the environment."""
    return RecommendationSettings()


# ===== Database Fixtures =====

@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=test_db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def file_db_session_factory(tmp_path):
    """
    Session factory over a file-backed SQLite database.

    Each session gets its own connection, which the threaded store
    lookups need (an in-memory database exists per connection).
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(engine)
    engine.dispose()


def seed_corpus(session: Session):
    """Insert a small catalog with likes and favorites, including duplicate rows."""
    session.add_all([
        Movie(slug='heat', title='Heat', release_year=1995, runtime=170, review_count=400, average_rating=4.1),
        Movie(slug='collateral', title='Collateral', release_year=2004, runtime=120, review_count=300),
        Movie(slug='thief', title='Thief', release_year=1981, runtime=123, review_count=120),
        Movie(slug='amelie', title='Amelie', release_year=2001, runtime=122, review_count=500),
        Movie(slug='obscure-noir', title='Obscure Noir', release_year=1990, review_count=3),
        Movie(slug='untagged', title='Untagged', release_year=2000, review_count=200),
    ])
    session.add_all([
        MovieGenre(movie_slug='heat', genre='Crime'),
        MovieGenre(movie_slug='heat', genre='Thriller'),
        MovieGenre(movie_slug='heat', genre='Crime'),
        MovieGenre(movie_slug='collateral', genre='Crime'),
        MovieGenre(movie_slug='collateral', genre='Drama'),
        MovieGenre(movie_slug='thief', genre='Crime'),
        MovieGenre(movie_slug='amelie', genre='Romance'),
        MovieGenre(movie_slug='amelie', genre='Comedy'),
        MovieGenre(movie_slug='obscure-noir', genre='Crime'),
    ])
    session.add_all([
        MovieFavorite(username='alice', movie_slug='heat'),
        MovieFavorite(username='alice', movie_slug='heat'),
        MovieFavorite(username='alice', movie_slug='collateral'),
        MovieFavorite(username='bob', movie_slug='heat'),
        MovieFavorite(username='bob', movie_slug='amelie'),
        MovieLike(username='alice', movie_slug='heat'),
        MovieLike(username='alice', movie_slug='thief'),
        MovieLike(username='bob', movie_slug='collateral'),
        MovieLike(username='bob', movie_slug='obscure-noir'),
        MovieLike(username='bob', movie_slug='untagged'),
        MovieLike(username='carol', movie_slug='collateral'),
        MovieLike(username='carol', movie_slug='amelie'),
    ])
    session.commit()


@pytest.fixture
def seeded_session(test_db_session) -> Session:
    """In-memory session with the sample corpus loaded."""
    seed_corpus(test_db_session)
    return test_db_session


@pytest.fixture
def seeded_session_factory(file_db_session_factory):
    """File-backed session factory with the sample corpus loaded."""
    session = file_db_session_factory()
    try:
        seed_corpus(session)
    finally:
        session.close()
    return file_db_session_factory


# ===== Repository Fixtures =====

@pytest.fixture
def movie_repository(test_db_session):
    """Create MovieRepository with test database session."""
    from suggested_movies_service.repos import MovieRepository
    return MovieRepository(test_db_session)


@pytest.fixture
def interaction_repository(test_db_session):
    """Create InteractionRepository with test database session."""
    from suggested_movies_service.repos import InteractionRepository
    return InteractionRepository(test_db_session)


# ===== Mock Fixtures =====

@pytest.fixture
def mock_database_session():
    """Mock database session."""
    mock_session = Mock(spec=Session)
    mock_session.query.return_value = mock_session
    mock_session.filter.return_value = mock_session
    mock_session.first.return_value = None
    mock_session.all.return_value = []
    mock_session.count.return_value = 0
    mock_session.close.return_value = None
    return mock_session


# ===== Script Fixtures =====

@pytest.fixture
def csv_input_dir(tmp_path):
    """Directory with small CSV exports for scripts/populate_database.py."""
    (tmp_path / 'movies.csv').write_text(
        "slug,title,release_year,runtime,review_count,average_rating,popularity_ranking,poster_url,link\n"
        "heat,Heat,1995,170,400,4.1,12,,\n"
        "thief,Thief,1981,,120,,,,\n"
        "collateral,Collateral,2004,120,300,3.9,40,,\n"
    )
    (tmp_path / 'genres.csv').write_text(
        "movie_slug,genre\n"
        "heat,Crime\n"
        "heat,Thriller\n"
        "thief,Crime\n"
        "collateral,Crime\n"
    )
    (tmp_path / 'likes.csv').write_text(
        "username,movie_slug\n"
        "alice,heat\n"
        "alice,thief\n"
        "bob,collateral\n"
    )
    (tmp_path / 'favorites.csv').write_text(
        "username,movie_slug\n"
        "alice,collateral\n"
        "bob,heat\n"
    )
    return tmp_path
