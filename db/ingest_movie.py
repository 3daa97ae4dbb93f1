"""
Movie catalog ingestion into Qdrant.

This module reads the movie CSV, embeds every movie and (re)builds the vector
collection the retriever searches. It is a one-off batch job, run through
`movie-agent ingest`.
"""

import csv
import logging
import os
import uuid
from pathlib import Path
from typing import Iterator, Sequence

from openai import AsyncOpenAI
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams
from tqdm import tqdm

from db.qdrant import COLLECTION_NAME
from implementation.classes.movie import CatalogMovie
from implementation.llms.generic_methods import EMBEDDING_MODEL, generate_vector_embedding

logger = logging.getLogger(__name__)

MOVIES_CSV_PATH = Path(os.getenv("MOVIES_CSV_PATH", Path.cwd() / "data" / "movies.csv"))
MAX_MOVIES = 100_000
BATCH_SIZE = 1000           # movies upserted per Qdrant request
EMBEDDING_CHUNK_SIZE = 100  # texts per embeddings request


# ================================
#          CSV LOADING
# ================================

def read_movies_from_csv(csv_path: Path = MOVIES_CSV_PATH, max_movies: int = MAX_MOVIES) -> list[CatalogMovie]:
    """
    Load unique movies from the catalog CSV.

    Rows are deduplicated by id (first occurrence wins), rows without an id
    or title are skipped, and loading stops once `max_movies` are collected.
    """
    movies: list[CatalogMovie] = []
    seen_ids: set[str] = set()

    with open(csv_path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            if len(movies) >= max_movies:
                break
            movie = CatalogMovie.from_csv_row(row)
            if movie is None or movie.id in seen_ids:
                continue
            seen_ids.add(movie.id)
            movies.append(movie)

    logger.info("Loaded %d unique movies from %s (limit %d)", len(movies), csv_path, max_movies)
    return movies


def batched(items: Sequence, size: int) -> Iterator[Sequence]:
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def point_id_for(movie_id: str) -> int | str:
    """Qdrant point ids must be unsigned ints or UUIDs; derive one from the catalog id."""
    if movie_id.isdigit():
        return int(movie_id)
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"movie:{movie_id}"))


# ================================
#          EMBEDDING
# ================================

async def embed_movies(
    openai_client: AsyncOpenAI,
    movies: Sequence[CatalogMovie],
    chunk_size: int = EMBEDDING_CHUNK_SIZE,
    model: str = EMBEDDING_MODEL,
) -> list[tuple[CatalogMovie, list[float]]]:
    """
    Embed movies chunk by chunk. A failed chunk is logged and its movies are
    left out; the rest of the batch still gets ingested.
    """
    embedded: list[tuple[CatalogMovie, list[float]]] = []
    for chunk in batched(movies, chunk_size):
        try:
            vectors = await generate_vector_embedding(
                openai_client, [movie.embedding_text() for movie in chunk], model=model
            )
        except ValueError as e:
            logger.error("Embedding generation failed for %d movies: %s", len(chunk), e)
            continue
        embedded.extend(
            (movie, vector) for movie, vector in zip(chunk, vectors) if vector
        )
    return embedded


# ================================
#         QDRANT INGESTION
# ================================

async def recreate_collection(qdrant_client: AsyncQdrantClient, collection_name: str, vector_size: int) -> None:
    """Drop the collection if it exists and create an empty cosine collection."""
    if await qdrant_client.collection_exists(collection_name):
        await qdrant_client.delete_collection(collection_name)
        logger.info("Deleted existing collection: %s", collection_name)
    await qdrant_client.create_collection(
        collection_name=collection_name,
        vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
    )


async def ingest_catalog(
    qdrant_client: AsyncQdrantClient,
    openai_client: AsyncOpenAI,
    csv_path: Path = MOVIES_CSV_PATH,
    collection_name: str = COLLECTION_NAME,
    batch_size: int = BATCH_SIZE,
    max_movies: int = MAX_MOVIES,
) -> int:
    """
    Rebuild the movie collection from the catalog CSV.

    The collection is recreated once the first batch has been embedded (the
    vector size is only known then), so a run that cannot embed anything
    leaves the existing collection untouched.

    Returns:
        Number of movies inserted.
    """
    movies = read_movies_from_csv(csv_path, max_movies=max_movies)
    collection_ready = False
    inserted = 0

    batches = list(batched(movies, batch_size))
    for batch in tqdm(batches, desc="Ingesting movies"):
        embedded = await embed_movies(openai_client, batch)
        if not embedded:
            continue

        if not collection_ready:
            await recreate_collection(qdrant_client, collection_name, vector_size=len(embedded[0][1]))
            collection_ready = True

        points = [
            PointStruct(id=point_id_for(movie.id), vector=vector, payload=movie.payload())
            for movie, vector in embedded
        ]
        await qdrant_client.upsert(collection_name=collection_name, points=points)
        inserted += len(points)
        logger.info("Inserted %d movies into %s", len(points), collection_name)

    if not collection_ready:
        logger.error("No movies could be embedded; collection %s left unchanged", collection_name)
    return inserted
