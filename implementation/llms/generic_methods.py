import os
from typing import Optional

from openai import AsyncOpenAI
from dotenv import load_dotenv

# Load environment variables (for API key)
load_dotenv()

QUESTION_MODEL = os.getenv("OPENAI_QUESTION_MODEL", "gpt-4o-mini")
REFINE_MODEL = os.getenv("OPENAI_REFINE_MODEL", "gpt-4o")
EMBEDDING_MODEL = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-large")


# ===============================
#           Clients
# ===============================

def create_openai_client(api_key: Optional[str] = None, timeout: float = 30.0) -> AsyncOpenAI:
    """
    Build an async OpenAI client. The caller owns it and passes it to the
    adapters that need it.
    """
    return AsyncOpenAI(
        api_key=api_key or os.getenv("OPENAI_API_KEY"),
        timeout=timeout,
    )


# ===============================
#     Base Generation Methods
# ===============================

async def generate_openai_text_async(
    client: AsyncOpenAI,
    user_prompt: str,
    model: str = QUESTION_MODEL,
    system_prompt: Optional[str] = None,
    temperature: Optional[float] = None,
) -> str:
    """
    Run a single chat completion and return the stripped text content.
    Throws a ValueError if anything fails.
    """
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})

    kwargs = {}
    if temperature is not None:
        kwargs["temperature"] = temperature

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            **kwargs,
        )
        content = response.choices[0].message.content
    except Exception as e:
        raise ValueError(f"OpenAI failed to generate response: {e}")

    if content is None:
        raise ValueError("OpenAI returned an empty message")
    return content.strip()


# ===============================
#          Embeddings
# ===============================

async def generate_vector_embedding(
    client: AsyncOpenAI,
    texts: list[str],
    model: str = EMBEDDING_MODEL,
) -> list[list[float]]:
    """
    Embed one or more texts. Returns one embedding per input text, in input order.
    Throws a ValueError if anything fails.
    """
    if not texts:
        return []
    try:
        response = await client.embeddings.create(model=model, input=texts)
    except Exception as e:
        raise ValueError(f"OpenAI failed to generate embeddings: {e}")

    ordered = sorted(response.data, key=lambda item: item.index)
    return [item.embedding for item in ordered]
