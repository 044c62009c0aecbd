"""
Populate the database with movies, genre tags, likes and favorites.
Loads CSV exports and stores them in the database the recommender reads from.

Expected files in the input directory:
    movies.csv     slug, title, release_year, runtime, review_count, average_rating,
                   popularity_ranking, poster_url, link
    genres.csv     movie_slug, genre
    likes.csv      username, movie_slug
    favorites.csv  username, movie_slug
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

import numpy as np
import pandas as pd

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

MOVIE_INT_COLUMNS = ['release_year', 'runtime', 'review_count', 'popularity_ranking']


def clean_dataframe_for_db(df: pd.DataFrame) -> pd.DataFrame:
    """
    Clean DataFrame by replacing NaN/NA values with None for database compatibility.

    Args:
        df: Input DataFrame

    Returns:
        Cleaned DataFrame
    """
    df = df.astype(object)
    df = df.replace({np.nan: None, pd.NA: None})
    df = df.where(pd.notnull(df), None)

    return df


def load_csv(input_dir: Path, name: str, required_columns: list[str]) -> pd.DataFrame:
    """
    Load one CSV file and check its columns.

    Args:
        input_dir: Directory containing the CSV exports
        name: File name
        required_columns: Columns that must be present

    Returns:
        Raw DataFrame
    """
    path = input_dir / name

    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    df = pd.read_csv(path)
    missing = [column for column in required_columns if column not in df.columns]
    if missing:
        raise ValueError(f"{name} is missing columns: {', '.join(missing)}")

    logger.info(f"Loaded {len(df)} rows from {path}")
    return df


def prepare_movies(df: pd.DataFrame) -> list[dict]:
    """Convert the movies frame to dict records with integer columns coerced."""
    df = df.drop_duplicates(subset='slug', keep='last').copy()
    for column in MOVIE_INT_COLUMNS:
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors='coerce').astype('Int64')
    if 'average_rating' in df.columns:
        df['average_rating'] = pd.to_numeric(df['average_rating'], errors='coerce')

    records = clean_dataframe_for_db(df).to_dict('records')
    for record in records:
        for column in MOVIE_INT_COLUMNS:
            if record.get(column) is not None:
                record[column] = int(record[column])
        if record.get('average_rating') is not None:
            record['average_rating'] = float(record['average_rating'])
    return records


def populate(input_dir: Path, session_factory=None) -> dict:
    """
    Replace the movie, genre, like and favorite tables with the CSV contents.

    Args:
        input_dir: Directory containing the CSV exports
        session_factory: Callable returning a Session (default: SessionLocal)

    Returns:
        Dict of row counts per table
    """
    from suggested_movies_service.repos import InteractionRepository, MovieRepository

    if session_factory is None:
        from suggested_movies_service.models.database import SessionLocal, init_db
        init_db()
        session_factory = SessionLocal

    movies_df = load_csv(input_dir, 'movies.csv', ['slug', 'title'])
    genres_df = load_csv(input_dir, 'genres.csv', ['movie_slug', 'genre'])
    likes_df = load_csv(input_dir, 'likes.csv', ['username', 'movie_slug'])
    favorites_df = load_csv(input_dir, 'favorites.csv', ['username', 'movie_slug'])

    db = session_factory()
    try:
        movie_repo = MovieRepository(db)
        interaction_repo = InteractionRepository(db)

        stats = {
            'movies': movie_repo.bulk_store_movies(prepare_movies(movies_df)),
            'genres': movie_repo.bulk_store_genres(clean_dataframe_for_db(genres_df).to_dict('records')),
            'likes': interaction_repo.bulk_store_likes(clean_dataframe_for_db(likes_df).to_dict('records')),
            'favorites': interaction_repo.bulk_store_favorites(
                clean_dataframe_for_db(favorites_df).to_dict('records')
            ),
        }
        return stats
    finally:
        db.close()


def verify_recommendations(input_slugs: list[str]):
    """
    Log recommendations for the given seed movies.

    Args:
        input_slugs: Seed movie slugs
    """
    from suggested_movies_service.services import MovieRecommendationService

    logger.info("\n" + "="*70)
    logger.info("TESTING RECOMMENDATIONS")
    logger.info("="*70)

    service = MovieRecommendationService()
    recommendations = service.generate_recommendations(input_slugs)

    if not recommendations:
        logger.warning(f"  No recommendations found for {input_slugs}")
        return

    for i, rec in enumerate(recommendations, 1):
        logger.info(f"  {i}. {rec.title} (score: {rec.score:.3f}, genres: {rec.genres})")


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description='Populate database with movies, genres, likes and favorites'
    )
    parser.add_argument(
        '--input-dir',
        type=str,
        default='data/raw',
        help='Input directory with CSV exports (default: data/raw)'
    )
    parser.add_argument(
        '--test-slugs',
        type=str,
        default=None,
        help='Comma-separated movie slugs to request recommendations for after loading'
    )

    args = parser.parse_args()

    input_dir = project_root / args.input_dir

    logger.info("="*70)
    logger.info("POPULATE DATABASE")
    logger.info("="*70)
    logger.info(f"Input directory: {input_dir}")

    try:
        stats = populate(input_dir)

        if args.test_slugs:
            verify_recommendations([slug.strip() for slug in args.test_slugs.split(',') if slug.strip()])
        else:
            logger.info("\n⊘ Skipping recommendation testing")

        logger.info("\n" + "="*70)
        logger.info("✓ DATABASE POPULATION COMPLETE")
        logger.info("="*70)
        for table, count in stats.items():
            logger.info(f"{table}: {count}")

    except Exception as e:
        logger.error(f"Error populating database: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
