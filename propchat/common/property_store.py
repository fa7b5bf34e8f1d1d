"""
Property Store

Read access to the listings document store.

Two backends share one interface:
- MongoPropertyStore: the production store (pymongo)
- InMemoryPropertyStore: evaluates the same filter operators in-process,
  used for local development and tests

Filter semantics (MongoDB query subset):
- {"$regex": p, "$options": "i"}  case-insensitive substring/pattern match
- {"$gte": a, "$lte": b}          range comparison
- {"$in": [...]}                  set membership (any element for array fields)
- plain value                     equality (element match for array fields)
"""

import json
import logging
import re
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError
from pymongo import DESCENDING, MongoClient

from .config import StoreConfig
from .schemas import PropertyRecord

logger = logging.getLogger("propchat.common.property_store")

# Listings are ordered most-recent-first by this field
RECENCY_FIELD = "createdAt"


class PropertyStore(ABC):
    """Read-only listing store"""

    @abstractmethod
    def find(self, query: Dict[str, Any], *, limit: int = 20, skip: int = 0) -> List[PropertyRecord]:
        """Return listings matching ``query``, most recent first"""

    @abstractmethod
    def count(self, query: Dict[str, Any]) -> int:
        """Number of listings matching ``query``"""

    def ping(self) -> bool:
        """Check that the backend is reachable"""
        return True

    def close(self) -> None:
        """Release backend resources"""


class MongoPropertyStore(PropertyStore):
    """Listings stored in a MongoDB collection"""

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017/properties",
        database: str = "properties",
        collection: str = "properties",
        server_selection_timeout_ms: int = 5000,
        client: Optional[MongoClient] = None,
    ):
        """
        Initialize the store.

        MongoClient connects lazily, so construction does not touch the network.

        Args:
            uri: MongoDB connection string
            database: Database name
            collection: Collection holding the listings
            server_selection_timeout_ms: How long a query waits for a server
            client: Pre-built client (tests)
        """
        self._client = client or MongoClient(uri, serverSelectionTimeoutMS=server_selection_timeout_ms)
        self._collection = self._client[database][collection]

    def find(self, query: Dict[str, Any], *, limit: int = 20, skip: int = 0) -> List[PropertyRecord]:
        cursor = (
            self._collection.find(query)
            .sort(RECENCY_FIELD, DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        return _to_records(cursor)

    def count(self, query: Dict[str, Any]) -> int:
        return self._collection.count_documents(query)

    def ping(self) -> bool:
        """Check that the server is reachable"""
        try:
            self._client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    def close(self) -> None:
        self._client.close()


class InMemoryPropertyStore(PropertyStore):
    """Listings held in a Python list"""

    def __init__(self, documents: Optional[Iterable[Dict[str, Any]]] = None):
        self._documents: List[Dict[str, Any]] = []
        for doc in documents or []:
            self.add(doc)

    @classmethod
    def from_file(cls, path: Path) -> "InMemoryPropertyStore":
        """Load listings from a JSON file holding a list of documents"""
        with open(path) as f:
            documents = json.load(f)
        if not isinstance(documents, list):
            raise ValueError(f"Seed file must contain a JSON list: {path}")
        logger.info("Loaded %d listings from %s", len(documents), path)
        return cls(documents)

    def add(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a listing, filling ``_id`` and ``createdAt`` when missing"""
        doc = dict(document)
        doc.setdefault("_id", uuid.uuid4().hex)
        created = doc.get(RECENCY_FIELD)
        if created is None:
            doc[RECENCY_FIELD] = datetime.now(timezone.utc)
        elif isinstance(created, str):
            doc[RECENCY_FIELD] = datetime.fromisoformat(created.replace("Z", "+00:00"))
        self._documents.append(doc)
        return doc

    def __len__(self) -> int:
        return len(self._documents)

    def find(self, query: Dict[str, Any], *, limit: int = 20, skip: int = 0) -> List[PropertyRecord]:
        matched = [doc for doc in self._documents if matches_query(doc, query)]
        matched.sort(key=_recency_key, reverse=True)
        window = matched[skip:skip + limit] if limit else matched[skip:]
        return _to_records(window)

    def count(self, query: Dict[str, Any]) -> int:
        return sum(1 for doc in self._documents if matches_query(doc, query))


def _to_records(documents: Iterable[Dict[str, Any]]) -> List[PropertyRecord]:
    """Validate store documents, skipping any that cannot be read"""
    records = []
    for doc in documents:
        try:
            records.append(PropertyRecord.model_validate(doc))
        except ValidationError as e:
            logger.warning("Skipping unreadable listing %s: %s", doc.get("_id"), e.errors()[0]["msg"])
    return records


def _recency_key(doc: Dict[str, Any]) -> float:
    created = doc.get(RECENCY_FIELD)
    if isinstance(created, datetime):
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return created.timestamp()
    return 0.0


def matches_query(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate a MongoDB-style filter against one document"""
    for field_name, condition in query.items():
        value = doc.get(field_name)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            if not _match_operators(value, condition):
                return False
        elif isinstance(value, list):
            if condition not in value:
                return False
        elif value != condition:
            return False
    return True


def _match_operators(value: Any, condition: Dict[str, Any]) -> bool:
    for op, operand in condition.items():
        if op == "$options":
            continue
        if op == "$regex":
            if not isinstance(value, str):
                return False
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not re.search(operand, value, flags):
                return False
        elif op in ("$gte", "$lte", "$gt", "$lt"):
            if value is None or isinstance(value, (str, list, dict)):
                return False
            if op == "$gte" and not value >= operand:
                return False
            if op == "$lte" and not value <= operand:
                return False
            if op == "$gt" and not value > operand:
                return False
            if op == "$lt" and not value < operand:
                return False
        elif op == "$in":
            if isinstance(value, list):
                if not any(item in operand for item in value):
                    return False
            elif value not in operand:
                return False
        elif op == "$eq":
            if value != operand:
                return False
        else:
            raise ValueError(f"Unsupported query operator: {op}")
    return True


def create_property_store(config: StoreConfig) -> PropertyStore:
    """Build the store backend named in config"""
    backend = (config.backend or "mongo").lower()

    if backend == "memory":
        if config.seed_file:
            return InMemoryPropertyStore.from_file(Path(config.seed_file).expanduser())
        return InMemoryPropertyStore()

    if backend == "mongo":
        return MongoPropertyStore(
            uri=config.mongo_uri,
            database=config.database,
            collection=config.collection,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
        )

    raise ValueError(f"Unsupported store backend: {config.backend}")
