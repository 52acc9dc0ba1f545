"""
Rules Chat

Answers Pathfinder 2e rules questions from retrieved passages. The
indexed data is English, so the question is first turned into an English
search query; the answer is written in the user's language.
"""

import time
from typing import Optional

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.llm.provider import LLMConfig, LLMProvider
from pf2e_oracle.search.rag import RagService, SearchResults

logger = get_logger("llm.chat")

CONTEXT_RESULTS = 8

SYSTEM_PROMPT = """\
You are a Pathfinder 2e rules expert assistant.
Base your answers only on the rule passages provided with each question.
If the passages do not contain the relevant information, clearly state that.
Be concise but thorough in your explanations.

IMPORTANT: Always respond in the same language the user writes in.
For official game terms (spell names, conditions, traits), include the English term in parentheses
for reference, e.g., "Feuerball (Fireball)"."""

QUERY_PROMPT = """\
Rewrite the following Pathfinder 2e question as a short English search query for a rules database.
Keep official game terms (spell, feat, condition and trait names) in English.
Respond with only the query.

Question: {message}"""


def format_passages(results: SearchResults) -> str:
    """Render search results as numbered passages for the prompt."""
    if not results.results:
        return "(no matching rule passages found)"
    blocks = []
    for i, result in enumerate(results.results, 1):
        source = f" [{result.source}]" if result.source else ""
        blocks.append(f"[{i}] {result.name} ({result.category}){source}\n{result.content}")
    return "\n\n".join(blocks)


class ChatService:
    """Retrieval-grounded question answering."""

    def __init__(self, rag: RagService, provider: LLMProvider, model: Optional[str] = None):
        self.rag = rag
        self.provider = provider
        self.model = model

    def build_search_query(self, message: str) -> str:
        query = self.provider.ask(
            QUERY_PROMPT.format(message=message),
            config=LLMConfig(model=self.model, max_tokens=100, temperature=0.0),
        ).strip('"')
        return query or message

    def chat(self, message: str) -> str:
        """
        Answer a rules question.

        Raises:
            ValueError: If message is blank
            LLMError: If the provider fails
        """
        if not message or not message.strip():
            raise ValueError("Message must not be empty")

        logger.debug("Starting LLM call")
        start = time.time()

        query = self.build_search_query(message)
        results = self.rag.search_rules(query, max_results=CONTEXT_RESULTS)

        prompt = f"Rule passages:\n\n{format_passages(results)}\n\nQuestion: {message}"
        answer = self.provider.ask(
            prompt,
            system=SYSTEM_PROMPT,
            config=LLMConfig(model=self.model, max_tokens=1500),
        )

        logger.debug(f"LLM call completed in {(time.time() - start) * 1000:.0f}ms (query: {query!r})")
        return answer or "No response received"
