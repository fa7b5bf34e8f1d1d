"""
Configuration Management for PropChat

Loads configuration from ~/.propchat/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

logger = logging.getLogger("propchat.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".propchat"
CONFIG_PATH = CONFIG_DIR / "config.json"

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


@dataclass
class LLMConfig:
    """Text-completion provider configuration"""
    provider: str = "gemini"  # default provider: "gemini" or "groq"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    groq_api_key: str = ""
    groq_model: str = "llama3-8b-8192"
    groq_base_url: str = GROQ_BASE_URL
    timeout: float = 30.0


@dataclass
class StoreConfig:
    """Property store configuration"""
    backend: str = "mongo"  # "mongo" or "memory"
    mongo_uri: str = "mongodb://localhost:27017/properties"
    database: str = "properties"
    collection: str = "properties"
    server_selection_timeout_ms: int = 5000
    seed_file: str = ""  # JSON list of listings loaded by the memory backend


@dataclass
class ChatConfig:
    """Chat pipeline tunables"""
    history_limit: int = 10    # turns kept per session
    context_turns: int = 3     # turns injected into the synthesis prompt
    search_limit: int = 20     # records fetched per query
    top_results: int = 5       # records shown to the LLM and returned to the caller


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "production"
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@dataclass
class PropChatConfig:
    """Main PropChat configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "gemini"),
        gemini_api_key=llm_data.get("gemini_api_key", ""),
        gemini_model=llm_data.get("gemini_model", "gemini-1.5-flash"),
        groq_api_key=llm_data.get("groq_api_key", ""),
        groq_model=llm_data.get("groq_model", "llama3-8b-8192"),
        groq_base_url=llm_data.get("groq_base_url", GROQ_BASE_URL),
        timeout=llm_data.get("timeout", 30.0),
    )


def _parse_store_config(data: dict) -> StoreConfig:
    """Parse store section from config dict"""
    store_data = data.get("store", {})
    return StoreConfig(
        backend=store_data.get("backend", "mongo"),
        mongo_uri=store_data.get("mongo_uri", "mongodb://localhost:27017/properties"),
        database=store_data.get("database", "properties"),
        collection=store_data.get("collection", "properties"),
        server_selection_timeout_ms=store_data.get("server_selection_timeout_ms", 5000),
        seed_file=store_data.get("seed_file", ""),
    )


def _parse_chat_config(data: dict) -> ChatConfig:
    """Parse chat section from config dict"""
    chat_data = data.get("chat", {})
    return ChatConfig(
        history_limit=chat_data.get("history_limit", 10),
        context_turns=chat_data.get("context_turns", 3),
        search_limit=chat_data.get("search_limit", 20),
        top_results=chat_data.get("top_results", 5),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    return ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=server_data.get("port", 3000),
        environment=server_data.get("environment", "production"),
        log_level=server_data.get("log_level", "INFO"),
    )


def load_config() -> PropChatConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.propchat/config.json)
    3. Default values
    """
    config = PropChatConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.store = _parse_store_config(data)
            config.chat = _parse_chat_config(data)
            config.server = _parse_server_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file: %s", e)

    # LLM env var overrides (track env-sourced keys so they are never saved)
    _env_llm_map = {
        "GOOGLE_API_KEY": "gemini_api_key",
        "GEMINI_API_KEY": "gemini_api_key",
        "GEMINI_MODEL": "gemini_model",
        "GROQ_API_KEY": "groq_api_key",
        "GROQ_MODEL": "groq_model",
        "GROQ_BASE_URL": "groq_base_url",
        "PROPCHAT_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    if os.getenv("PROPCHAT_STORE"):
        config.store.backend = os.getenv("PROPCHAT_STORE")
    if os.getenv("MONGO_URI"):
        config.store.mongo_uri = os.getenv("MONGO_URI")
    if os.getenv("MONGO_DB"):
        config.store.database = os.getenv("MONGO_DB")
    if os.getenv("PROPCHAT_SEED_FILE"):
        config.store.seed_file = os.getenv("PROPCHAT_SEED_FILE")
    if os.getenv("MONGO_COLLECTION"):
        config.store.collection = os.getenv("MONGO_COLLECTION")

    if os.getenv("PORT"):
        config.server.port = int(os.getenv("PORT"))
    environment = os.getenv("PROPCHAT_ENV") or os.getenv("NODE_ENV")
    if environment:
        config.server.environment = environment
    if os.getenv("PROPCHAT_LOG_LEVEL"):
        config.server.log_level = os.getenv("PROPCHAT_LOG_LEVEL")

    return config


def save_config(config: PropChatConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "gemini_api_key": config.llm.gemini_api_key,
        "gemini_model": config.llm.gemini_model,
        "groq_api_key": config.llm.groq_api_key,
        "groq_model": config.llm.groq_model,
        "groq_base_url": config.llm.groq_base_url,
        "timeout": config.llm.timeout,
    }
    for key in ("gemini_api_key", "groq_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "llm": llm_section,
        "store": {
            "backend": config.store.backend,
            "mongo_uri": config.store.mongo_uri,
            "database": config.store.database,
            "collection": config.store.collection,
            "server_selection_timeout_ms": config.store.server_selection_timeout_ms,
            "seed_file": config.store.seed_file,
        },
        "chat": {
            "history_limit": config.chat.history_limit,
            "context_turns": config.chat.context_turns,
            "search_limit": config.chat.search_limit,
            "top_results": config.chat.top_results,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "environment": config.server.environment,
            "log_level": config.server.log_level,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)
