"""
PropChat Server

FastAPI server exposing the chat pipeline and the listings store.

Endpoints:
- POST /api/chat: Run one chat turn
- GET /api/properties: Paginated listings (pass-through to the store)
- DELETE /api/sessions/{session_id}: Forget a conversation
- GET /health: Health check (providers, store reachability, sessions)

Error mapping:
- InvalidInputError -> 400
- ChatProcessingError -> 500 (details only in development)
"""

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..chat import ChatPipeline, ContextStore
from ..common.config import PropChatConfig, load_config
from ..common.errors import ChatProcessingError, InvalidInputError
from ..common.llm_client import GROQ, ProviderRegistry
from ..common.property_store import PropertyStore, create_property_store

logger = logging.getLogger("propchat.api.server")


# Global state
config: Optional[PropChatConfig] = None
providers: Optional[ProviderRegistry] = None
store: Optional[PropertyStore] = None
context_store: Optional[ContextStore] = None
pipeline: Optional[ChatPipeline] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    global config, providers, store, context_store, pipeline

    if pipeline is None:
        load_dotenv()
        config = load_config()
        logger.info("Loaded config (store: %s, provider: %s)", config.store.backend, config.llm.provider)

        providers = ProviderRegistry.from_config(config.llm)
        logger.info("Models available: %s", providers.providers)

        store = create_property_store(config.store)
        context_store = ContextStore(history_limit=config.chat.history_limit)
        pipeline = ChatPipeline.from_config(config, providers, store, context_store)
        logger.info("Ready to receive messages")

    yield

    logger.info("Shutting down...")
    if store is not None:
        store.close()


app = FastAPI(
    title="PropChat",
    description="Conversational search over property listings",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Request Models
# =============================================================================

class ChatRequest(BaseModel):
    """Chat turn request"""
    message: Optional[str] = None
    sessionId: Optional[str] = None
    provider: Optional[str] = None  # "gemini" or "groq"
    useGroq: Optional[bool] = None  # legacy provider switch

    def provider_choice(self) -> Optional[str]:
        if self.provider:
            return self.provider
        if self.useGroq:
            return GROQ
        return None


# =============================================================================
# Error Handlers
# =============================================================================

def _is_development() -> bool:
    return config is not None and config.server.is_development


def _error_body(error: str, details: str = "") -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error}
    if details and _is_development():
        body["details"] = details
    return body


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ChatProcessingError)
async def processing_error_handler(request: Request, exc: ChatProcessingError):
    return JSONResponse(status_code=500, content=_error_body(str(exc), exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content=_error_body("Something went wrong!", str(exc)))


# =============================================================================
# Endpoints
# =============================================================================

@app.post("/api/chat")
def chat(request: ChatRequest):
    """
    Run one chat turn.

    Declared sync so the blocking LLM and store calls run on the threadpool.
    """
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")

    result = pipeline.handle(
        request.message or "",
        session_key=request.sessionId,
        provider=request.provider_choice(),
    )
    return result.to_response()


@app.get("/api/properties")
def list_properties(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    type_: Optional[str] = Query(None, alias="type"),
    location: Optional[str] = None,
):
    """Paginated listings, newest first"""
    if store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")

    page = page if page > 0 else 1
    limit = limit if limit > 0 else 10
    skip = (page - 1) * limit

    query: Dict[str, Any] = {}
    if status:
        query["status"] = status
    if type_:
        query["type"] = type_
    if location:
        query["location"] = {"$regex": location, "$options": "i"}

    try:
        records = store.find(query, limit=limit, skip=skip)
        total = store.count(query)
    except Exception as e:
        logger.exception("Listing query failed")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return {
        "properties": [r.to_api_dict() for r in records],
        "pagination": {
            "current": page,
            "total": math.ceil(total / limit),
            "count": len(records),
            "totalProperties": total,
        },
    }


@app.delete("/api/sessions/{session_id}")
def clear_session(session_id: str):
    """Forget a conversation's context"""
    if context_store is None:
        raise HTTPException(status_code=503, detail="Context store not initialized")

    if not context_store.clear(session_id):
        raise HTTPException(status_code=404, detail="Session not found")

    return {"status": "cleared", "sessionId": session_id}


@app.get("/health")
def health():
    """Health check endpoint"""
    if store is None:
        database = "not initialized"
    else:
        database = "connected" if store.ping() else "unreachable"

    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "models": providers.providers if providers else {},
        "database": database,
        "activeSessions": context_store.session_count() if context_store else 0,
    }


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the PropChat server"""
    import uvicorn

    load_dotenv()
    cfg = load_config()
    logging.basicConfig(
        level=cfg.server.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting server on port %d", cfg.server.port)
    uvicorn.run(
        "propchat.api.server:app",
        host=cfg.server.host,
        port=cfg.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
