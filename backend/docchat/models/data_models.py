from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime, timezone
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Page(BaseModel):
    """One page of extracted document text; ``index`` is 0-based."""
    index: int
    text: str


class ChunkRecord(BaseModel):
    """A chunk of page text with its embedding, as held by the vector store."""
    model_config = ConfigDict(frozen=True)

    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict) # source, page, chunk_index
    vector: List[float]


class ScoredChunk(BaseModel):
    record: ChunkRecord
    score: float


class IngestionResult(BaseModel):
    filename: str
    pages: int
    chunks: int


# --- Chat Sessions ---

class _CamelModel(BaseModel):
    # Persisted and wire shapes use camelCase (createdAt, messageCount)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(_CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["user", "ai"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class ChatSession(_CamelModel):
    id: str
    created_at: datetime = Field(default_factory=_utcnow)
    messages: List[ChatMessage] = Field(default_factory=list)


class SessionSummary(_CamelModel):
    id: str
    title: str
    timestamp: datetime # Last modification of the session file
    message_count: int


class HistoryTurn(BaseModel):
    """A prior conversation turn as sent by the client."""
    role: str
    content: str
