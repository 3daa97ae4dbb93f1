import os
from qdrant_client import AsyncQdrantClient

QDRANT_HOST = os.getenv("QDRANT_HOST", "localhost")
QDRANT_PORT = int(os.getenv("QDRANT_PORT", 6333))
COLLECTION_NAME = os.getenv("QDRANT_COLLECTION", "movie_collection")


def create_qdrant_client(host: str = QDRANT_HOST, port: int = QDRANT_PORT) -> AsyncQdrantClient:
    return AsyncQdrantClient(host=host, port=port, timeout=10)


async def check_qdrant(qdrant_client: AsyncQdrantClient) -> str:
    try:
        await qdrant_client.get_collections()
        return "ok"
    except Exception as e:
        return str(e)
