from typing import Sequence

from openai import AsyncOpenAI

from implementation.llms.generic_methods import (
    QUESTION_MODEL,
    REFINE_MODEL,
    generate_openai_text_async,
)
from implementation.prompts.refinement_prompts import (
    FIRST_FOLLOW_UP_QUESTION_PROMPT,
    NEXT_FOLLOW_UP_QUESTION_PROMPT,
    REFINED_QUERY_PROMPT,
)

# ===============================
#      Follow-up Questions
# ===============================

class OpenAIQuestionGenerator:
    """
    Generates clarifying questions with an OpenAI chat model.
    Both entry points raise on provider failure; the controller owns the fallbacks.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = QUESTION_MODEL,
        temperature: float = 0.8,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature

    async def first(self, query: str) -> str:
        return await generate_openai_text_async(
            self._client,
            user_prompt=FIRST_FOLLOW_UP_QUESTION_PROMPT.format(query=query),
            model=self._model,
            temperature=self._temperature,
        )

    async def next(self, previous_question: str, previous_answer: str) -> str:
        return await generate_openai_text_async(
            self._client,
            user_prompt=NEXT_FOLLOW_UP_QUESTION_PROMPT.format(
                previous_question=previous_question,
                previous_answer=previous_answer,
            ),
            model=self._model,
            temperature=self._temperature,
        )


# ===============================
#        Query Refinement
# ===============================

class OpenAIQueryRefiner:
    """Condenses the search history plus the latest answer into one search phrase."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = REFINE_MODEL,
        temperature: float = 0.5,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature

    async def refine(self, query_history: Sequence[str], question: str, answer: str) -> str:
        history = "\n".join(f"• {query}" for query in query_history)
        return await generate_openai_text_async(
            self._client,
            user_prompt=REFINED_QUERY_PROMPT.format(
                query_history=history,
                question=question,
                answer=answer,
            ),
            model=self._model,
            temperature=self._temperature,
        )
