"""
Chat Pipeline - Conversational Property Search

Turns a free-text message into a listings search and a natural-language reply.

Key Components:
- CriteriaExtractor: LLM extraction of SearchCriteria from the message
- build_query: SearchCriteria -> listings filter
- ResponseSynthesizer: LLM reply from the results and recent context
- ContextStore: bounded per-session conversation history
- ChatPipeline: runs the stages for each message

Pipeline:
1. Extract criteria (failures -> empty criteria)
2. Build the filter (status defaults to "available")
3. Look up the 20 most recent matches
4. Synthesize the reply (failures -> fixed apology)
"""

from .context_store import ContextStore, ConversationTurn
from .criteria_extractor import CriteriaExtractor
from .query_builder import build_query
from .synthesizer import ResponseSynthesizer, FALLBACK_RESPONSE
from .pipeline import ChatPipeline, ChatResult

__all__ = [
    "ContextStore",
    "ConversationTurn",
    "CriteriaExtractor",
    "build_query",
    "ResponseSynthesizer",
    "FALLBACK_RESPONSE",
    "ChatPipeline",
    "ChatResult",
]
