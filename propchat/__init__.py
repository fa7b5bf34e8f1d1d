"""
PropChat

Conversational search over a property listings store.

Pipeline:
- Extract structured search criteria from a free-text message (LLM)
- Translate the criteria into a document-store filter
- Run the query and summarize the matches in natural language (LLM)
- Keep a short per-session history so replies can refer to earlier turns

Usage:
    from propchat.common import load_config, ProviderRegistry, create_property_store
    from propchat.chat import ChatPipeline
"""

__version__ = "0.1.0"
