from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any

from docchat.models.data_models import HistoryTurn

class UploadResponse(BaseModel):
    status: str
    filename: str
    message: Optional[str] = None
    pages: int = 0
    chunks: int = 0

class StatusResponse(BaseModel):
    status: str # 'empty' or 'ready'
    chunks: int
    dimension: Optional[int] = None

# --- WebSocket Event Payloads ---

class EventEnvelope(BaseModel):
    event: str
    data: Dict[str, Any] = Field(default_factory=dict)

class ChatMessageEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    history: List[HistoryTurn] = Field(default_factory=list)
    session_id: Optional[str] = None

class TranslateDocumentEvent(BaseModel):
    language: str
    filename: Optional[str] = None
