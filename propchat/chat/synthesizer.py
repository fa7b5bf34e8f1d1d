"""
Response Synthesizer

LLM-based reply generation from search results.

Two prompt shapes:
- no results: acknowledge the request, explain the likely cause using the
  actual criteria, suggest relaxations, end with a question
- results: summarize the count, highlight 2-3 listings from the top 5,
  relate them to the criteria, offer follow-ups

When a session key is given, the last few turns of that session are
prepended to the prompt and the new turn is recorded afterwards.
"""

import json
import logging
from typing import List, Optional, Sequence

from ..common.llm_client import ProviderRegistry
from ..common.schemas import PropertyRecord, SearchCriteria
from .context_store import ContextStore, ConversationTurn

logger = logging.getLogger("propchat.chat.synthesizer")

SYNTHESIS_TEMPERATURE = 0.7
SYNTHESIS_MAX_TOKENS = 1000

FALLBACK_RESPONSE = (
    "I'm sorry, I'm having trouble processing your request right now. "
    "Please try again or contact our support team."
)


NO_RESULTS_PROMPT = """{context}Current user message: "{message}"
Search criteria extracted: {criteria}

No properties were found matching the user's criteria. As a helpful property assistant, provide a conversational response that:

1. Acknowledges their specific request
2. Explains why no results were found (be specific about the criteria)
3. Suggests practical alternatives:
   - Adjusting budget range
   - Considering nearby locations
   - Looking at different property types
   - Modifying room requirements
4. Ask what they'd like to adjust in their search
5. Keep the tone friendly and helpful

Make it conversational, not robotic."""


RESULTS_PROMPT = """{context}Current user message: "{message}"
Search criteria: {criteria}

Found {count} matching properties. Here are the top results:
{records}

As a professional property consultant, provide a response that:

1. Acknowledges their request naturally
2. Summarizes the search results (mention total count)
3. Highlight 2-3 most relevant properties with key details:
   - Title, price, location
   - Bedrooms, bathrooms, area if available
   - Notable features
4. Mention why these properties match their criteria
5. Ask if they want:
   - More details about specific properties
   - To see more options
   - To refine their search
   - Contact information for any property

Keep the response conversational, helpful, and professional. Use Indian Rupees format for prices (₹)."""


def format_context(turns: Sequence[ConversationTurn]) -> str:
    """Render prior turns as a prompt prefix ("" when there are none)"""
    if not turns:
        return ""
    lines = []
    for turn in turns:
        lines.append(f"User: {turn.user}")
        lines.append(f"Assistant: {turn.assistant}")
    return "Previous conversation:\n" + "\n".join(lines) + "\n\n"


class ResponseSynthesizer:
    """
    Writes the assistant reply for a chat turn.

    Falls back to a fixed apology if the LLM call fails; never raises.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        context_store: ContextStore,
        context_turns: int = 3,
        top_results: int = 5,
    ):
        """
        Initialize synthesizer.

        Args:
            providers: Provider registry used to resolve the caller's choice
            context_store: Shared conversation history
            context_turns: Prior turns injected into the prompt
            top_results: Listings serialized into the prompt
        """
        self._providers = providers
        self._context = context_store
        self._context_turns = context_turns
        self._top_results = top_results

    def build_prompt(
        self,
        message: str,
        results: Sequence[PropertyRecord],
        criteria: SearchCriteria,
        session_key: Optional[str] = None,
    ) -> str:
        """Assemble the synthesis prompt for one turn"""
        history: List[ConversationTurn] = []
        if session_key:
            history = self._context.recent(session_key, self._context_turns)
        context = format_context(history)
        criteria_json = json.dumps(criteria.to_dict(), ensure_ascii=False)

        if not results:
            return NO_RESULTS_PROMPT.format(
                context=context,
                message=message,
                criteria=criteria_json,
            )

        records = [r.prompt_view() for r in results[:self._top_results]]
        return RESULTS_PROMPT.format(
            context=context,
            message=message,
            criteria=criteria_json,
            count=len(results),
            records=json.dumps(records, indent=2, ensure_ascii=False),
        )

    def synthesize(
        self,
        message: str,
        results: Sequence[PropertyRecord],
        criteria: SearchCriteria,
        provider: Optional[str] = None,
        session_key: Optional[str] = None,
    ) -> str:
        """
        Generate the reply for a chat turn.

        Args:
            message: User message
            results: Matching listings, most relevant first
            criteria: Criteria the listings were searched with
            provider: Provider name; None for the default
            session_key: Session to read context from and record the turn in

        Returns:
            Reply text, or FALLBACK_RESPONSE on any failure
        """
        try:
            prompt = self.build_prompt(message, results, criteria, session_key)
            client = self._providers.resolve(provider)
            reply = client.generate(
                prompt,
                temperature=SYNTHESIS_TEMPERATURE,
                max_tokens=SYNTHESIS_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("Response synthesis failed: %s", e)
            return FALLBACK_RESPONSE

        if not reply:
            logger.warning("LLM returned an empty reply")
            return FALLBACK_RESPONSE

        if session_key:
            self._context.append(session_key, message, reply)

        return reply
