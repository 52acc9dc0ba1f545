"""
Search and Chat Endpoints

Similarity search over indexed rules and LLM-answered rules questions.
"""

import time
from typing import Any, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.configs.services import get_chat_service, get_rag_service
from pf2e_oracle.search.rag import DEFAULT_TOP_K, MAX_TOP_K

logger = get_logger("http.search")

router = APIRouter()


# --- Request/Response Models ---


class ChatRequest(BaseModel):
    """Request body for a rules question."""
    message: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    response: str


# --- Endpoints ---


@router.get("/search")
def search(
    q: str = Query(..., min_length=1),
    category: Optional[str] = None,
    level: Optional[int] = Query(default=None, ge=0),
    max_level: Optional[int] = Query(default=None, ge=0),
    rarity: Optional[str] = None,
    limit: int = Query(default=DEFAULT_TOP_K, ge=1, le=MAX_TOP_K),
) -> dict[str, Any]:
    """
    Search indexed rules.

    Args:
        q: Search query
        category: Optional category filter (spell, feat, ...)
        level: Exact level filter
        max_level: Upper level bound
        rarity: Optional rarity filter
        limit: Maximum results (default 5)
    """
    logger.info(f"Search: query='{q}', category={category}, limit={limit}")
    results = get_rag_service().search(
        q,
        category=category,
        level=level,
        max_level=max_level,
        rarity=rarity,
        max_results=limit,
    )
    return results.to_dict()


@router.post("/chat")
def chat(request: ChatRequest) -> ChatResponse:
    """Answer a rules question in the language it was asked in."""
    logger.info(f"Received chat request: {request.message[:100]}")
    start_time = time.time()

    response = get_chat_service().chat(request.message)

    duration = (time.time() - start_time) * 1000
    logger.info(f"Chat response generated in {duration:.0f}ms, length: {len(response)} chars")
    return ChatResponse(response=response)
