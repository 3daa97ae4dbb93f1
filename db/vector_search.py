"""
vector_search.py: Movie candidate retrieval over the Qdrant catalog.

Flow for one search:
  1. Embed the consolidated query text with the same model the catalog was
     ingested with.
  2. Run a single nearest-neighbour query against the catalog collection,
     asking for payloads (the movie metadata stored at ingestion time).
  3. Map every payload to a Candidate, preserving Qdrant's ranking.

Failures are not caught here. The refinement controller treats any exception
from search() as an empty result set and logs it.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError
from qdrant_client import AsyncQdrantClient

from db.qdrant import COLLECTION_NAME
from implementation.classes.schemas import Candidate
from implementation.llms.generic_methods import EMBEDDING_MODEL, generate_vector_embedding

logger = logging.getLogger(__name__)

# Number of movies surfaced per round.
DEFAULT_RESULT_LIMIT = 3


def payload_to_candidate(payload: Optional[dict[str, Any]]) -> Optional[Candidate]:
    """
    Convert a Qdrant point payload into a Candidate.

    Returns None for payloads without a usable title so a single malformed
    point never hides the rest of the result set.
    """
    if not payload:
        return None
    try:
        return Candidate.model_validate(payload)
    except ValidationError as e:
        logger.warning("Skipping catalog point with malformed payload: %s", e)
        return None


class QdrantMovieRetriever:
    """CandidateRetriever backed by an embedded-movie collection in Qdrant."""

    def __init__(
        self,
        qdrant_client: AsyncQdrantClient,
        openai_client: AsyncOpenAI,
        collection_name: str = COLLECTION_NAME,
        limit: int = DEFAULT_RESULT_LIMIT,
        embedding_model: str = EMBEDDING_MODEL,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        self._qdrant_client = qdrant_client
        self._openai_client = openai_client
        self._collection_name = collection_name
        self._limit = limit
        self._embedding_model = embedding_model

    async def search(self, query: str) -> list[Candidate]:
        start = time.monotonic()

        embeddings = await generate_vector_embedding(
            self._openai_client, [query], model=self._embedding_model
        )
        if not embeddings:
            raise ValueError("Embedding service returned no vector for the query")

        # with_payload=True: the payload is the movie card shown to the user.
        results = await self._qdrant_client.query_points(
            collection_name=self._collection_name,
            query=embeddings[0],
            limit=self._limit,
            with_payload=True,
            with_vectors=False,
        )

        candidates: list[Candidate] = []
        for point in results.points:
            candidate = payload_to_candidate(point.payload)
            if candidate is not None:
                candidates.append(candidate)

        logger.debug(
            "Vector search returned %d candidate(s) in %.2fms",
            len(candidates), (time.monotonic() - start) * 1000,
        )
        return candidates
