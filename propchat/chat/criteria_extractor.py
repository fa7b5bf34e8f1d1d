"""
LLM-based Criteria Extractor

Turns a free-text property request into SearchCriteria.

The reply is expected to hold a JSON object, possibly wrapped in commentary
or code fences. Fields with unexpected types are dropped rather than passed
on to the query builder. Any failure (provider error, unavailable provider,
unparsable reply) yields empty criteria; this stage never raises.
"""

import logging
from typing import Optional

from ..common.llm_client import ProviderRegistry
from ..common.llm_utils import parse_llm_json
from ..common.schemas import SearchCriteria

logger = logging.getLogger("propchat.chat.extractor")

EXTRACTION_TEMPERATURE = 0.1
EXTRACTION_MAX_TOKENS = 500


EXTRACTION_PROMPT = """
You are a property search assistant. Extract search criteria from this user message and return ONLY a valid JSON object.

User message: "{message}"

Extract these fields if mentioned (include only if explicitly stated or strongly implied):
- location: string (city, area, neighborhood, locality)
- type: string (apartment, house, villa, studio, penthouse, townhouse, condo, duplex)
- minPrice: number (minimum budget in your currency)
- maxPrice: number (maximum budget in your currency)
- bedrooms: number (number of bedrooms: 1, 2, 3, etc.)
- halls: number (number of halls/living rooms)
- bathrooms: number (number of bathrooms)
- status: string (available, sold, rented, pending)
- features: array of strings (parking, gym, pool, garden, security, etc.)
- furnished: boolean (if furnished/unfurnished is mentioned)
- parking: boolean (if parking is mentioned)
- balcony: boolean (if balcony is mentioned)
- minArea: number (minimum area in sq ft)
- maxArea: number (maximum area in sq ft)

Examples:
- "2 bedroom apartment in Mumbai under 50 lakhs" → {{"location": "Mumbai", "type": "apartment", "bedrooms": 2, "maxPrice": 5000000}}
- "furnished house with parking" → {{"furnished": true, "parking": true, "type": "house"}}
- "villa in Gurgaon" → {{"type": "villa", "location": "Gurgaon"}}

Return ONLY the JSON object, no other text:"""


class CriteriaExtractor:
    """Extracts SearchCriteria from user messages with an LLM."""

    def __init__(self, providers: ProviderRegistry):
        self._providers = providers

    def build_prompt(self, message: str) -> str:
        return EXTRACTION_PROMPT.format(message=message)

    def extract(self, message: str, provider: Optional[str] = None) -> SearchCriteria:
        """
        Extract search criteria from a message.

        Args:
            message: User message (non-empty)
            provider: Provider name ("gemini" or "groq"); None for the default

        Returns:
            SearchCriteria, empty when nothing could be extracted
        """
        try:
            client = self._providers.resolve(provider)
            raw = client.generate(
                self.build_prompt(message),
                temperature=EXTRACTION_TEMPERATURE,
                max_tokens=EXTRACTION_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("Criteria extraction failed: %s", e)
            return SearchCriteria()

        data = parse_llm_json(raw)
        if not data:
            logger.info("No criteria extracted from LLM reply: %.200r", raw)
            return SearchCriteria()

        return SearchCriteria.from_payload(data)
