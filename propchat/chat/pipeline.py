"""
Chat Pipeline

Runs one chat turn end to end:
1. Extract search criteria from the message (LLM)
2. Build the listings filter
3. Look up matching listings in the store
4. Synthesize the reply (LLM), reading and recording session context

Stages run strictly in that order. Extraction and synthesis absorb their own
failures; anything else that goes wrong (notably the store lookup) aborts the
turn with ChatProcessingError.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.config import PropChatConfig
from ..common.errors import ChatProcessingError, InvalidInputError
from ..common.llm_client import ProviderRegistry
from ..common.property_store import PropertyStore
from ..common.schemas import PropertyRecord, SearchCriteria
from .context_store import ContextStore
from .criteria_extractor import CriteriaExtractor
from .query_builder import build_query
from .synthesizer import ResponseSynthesizer

logger = logging.getLogger("propchat.chat.pipeline")

PROCESSING_ERROR_MESSAGE = (
    "Sorry, I encountered an error while processing your request. Please try again."
)


@dataclass
class ChatResult:
    """Outcome of one chat turn"""
    response_text: str
    criteria: SearchCriteria
    match_count: int
    session_key: str
    provider_used: str
    top_records: List[PropertyRecord] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Wire shape returned by the chat endpoint"""
        return {
            "message": self.response_text,
            "searchCriteria": self.criteria.to_dict(),
            "propertiesFound": self.match_count,
            "properties": [r.to_api_dict() for r in self.top_records],
            "sessionId": self.session_key,
            "model": self.provider_used,
        }


def new_session_key() -> str:
    return f"session_{int(time.time() * 1000)}"


class ChatPipeline:
    """Sequences extraction, query building, lookup and synthesis."""

    def __init__(
        self,
        providers: ProviderRegistry,
        store: PropertyStore,
        extractor: CriteriaExtractor,
        synthesizer: ResponseSynthesizer,
        search_limit: int = 20,
        top_results: int = 5,
    ):
        self._providers = providers
        self._store = store
        self._extractor = extractor
        self._synthesizer = synthesizer
        self._search_limit = search_limit
        self._top_results = top_results

    @classmethod
    def from_config(
        cls,
        config: PropChatConfig,
        providers: ProviderRegistry,
        store: PropertyStore,
        context_store: Optional[ContextStore] = None,
    ) -> "ChatPipeline":
        context_store = context_store or ContextStore(history_limit=config.chat.history_limit)
        return cls(
            providers=providers,
            store=store,
            extractor=CriteriaExtractor(providers),
            synthesizer=ResponseSynthesizer(
                providers,
                context_store,
                context_turns=config.chat.context_turns,
                top_results=config.chat.top_results,
            ),
            search_limit=config.chat.search_limit,
            top_results=config.chat.top_results,
        )

    def handle(
        self,
        message: str,
        session_key: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> ChatResult:
        """
        Process one chat message.

        Args:
            message: User message
            session_key: Conversation to continue; context is only read and
                recorded when the caller supplies one
            provider: "gemini" or "groq"; None for the configured default

        Returns:
            ChatResult

        Raises:
            InvalidInputError: Empty message or unknown provider
            ChatProcessingError: Any stage failed
        """
        if not message or not message.strip():
            raise InvalidInputError("Message is required")

        try:
            provider_used = self._providers.resolve(provider).provider
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

        logger.info('Processing message: "%s" with %s', message, provider_used)

        try:
            criteria = self._extractor.extract(message, provider_used)
            logger.info("Extracted criteria: %s", criteria.to_dict())

            query = build_query(criteria)
            logger.info("Listings query: %s", query)

            records = self._store.find(query, limit=self._search_limit)
            logger.info("Found %d properties", len(records))

            response = self._synthesizer.synthesize(
                message, records, criteria, provider_used, session_key
            )
        except Exception as e:
            logger.exception("Chat turn failed")
            raise ChatProcessingError(PROCESSING_ERROR_MESSAGE, detail=str(e)) from e

        return ChatResult(
            response_text=response,
            criteria=criteria,
            match_count=len(records),
            session_key=session_key or new_session_key(),
            provider_used=provider_used,
            top_records=records[:self._top_results],
        )
