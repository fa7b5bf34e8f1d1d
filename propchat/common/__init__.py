"""
PropChat Common Module

Shared infrastructure for the chat pipeline: configuration, LLM providers,
schemas, and the property store.
"""

from .config import PropChatConfig, load_config
from .errors import ChatProcessingError, InvalidInputError, ProviderUnavailableError
from .llm_client import LLMClient, GeminiClient, GroqClient, ProviderRegistry
from .property_store import (
    PropertyStore,
    MongoPropertyStore,
    InMemoryPropertyStore,
    create_property_store,
)

__all__ = [
    "PropChatConfig",
    "load_config",
    "ChatProcessingError",
    "InvalidInputError",
    "ProviderUnavailableError",
    "LLMClient",
    "GeminiClient",
    "GroqClient",
    "ProviderRegistry",
    "PropertyStore",
    "MongoPropertyStore",
    "InMemoryPropertyStore",
    "create_property_store",
]
