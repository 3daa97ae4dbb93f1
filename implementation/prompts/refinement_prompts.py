FIRST_FOLLOW_UP_QUESTION_PROMPT = """The user is searching for: "{query}". Generate ONE high-quality follow-up question.

RULES
- The question must refine the user's preferences, not ask about general facts.
- Focus on movie attributes (genre, style, tone, era, actors, themes) instead of trivia.
- Do NOT ask about movie history, famous roles, or factual information.
- Keep it short, direct, and highly specific.
- Do NOT include numbers, dashes, or bullet points.
- The question must add depth to their movie preference.

OUTPUT
Only the question, nothing else.
"""

NEXT_FOLLOW_UP_QUESTION_PROMPT = """A user looking for a movie was asked: "{previous_question}"
They responded: "{previous_answer}"

RULES
- Generate ONE high-quality next follow-up question that builds on their response.
- Focus on the user's movie preferences, not factual information.
- Do NOT ask about specific actors' careers, historical roles, or movie trivia.
- The question must add depth to their movie preferences and refine the search, not test their knowledge.
- Do NOT start with numbers, dashes, or bullet points.

OUTPUT
Only the question, nothing else.
"""

REFINED_QUERY_PROMPT = """The user has refined their movie search with the following inputs:
{query_history}

A follow-up question was asked: "{question}"
The user responded: "{answer}"

RULES
- Generate a refined search query (max 15 words) incorporating the latest response.
- Do NOT include the question itself or any yes/no responses.
- Keep the query concise, natural, and highly relevant for a movie search.

OUTPUT
Only the refined search phrase, without extra commentary.
"""
