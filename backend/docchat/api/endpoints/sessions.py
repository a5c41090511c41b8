from fastapi import APIRouter, Depends, HTTPException
from typing import List

from loguru import logger

from docchat.core.errors import SessionReadError
from docchat.core.state import AppServices, get_services
from docchat.models.data_models import ChatSession, SessionSummary

router = APIRouter()

@router.get("", response_model=List[SessionSummary])
async def list_chats(services: AppServices = Depends(get_services)):
    return services.sessions.list_all()

@router.post("", response_model=ChatSession)
async def create_chat(services: AppServices = Depends(get_services)):
    return services.sessions.create()

@router.get("/{session_id}", response_model=ChatSession)
async def get_chat(session_id: str, services: AppServices = Depends(get_services)):
    try:
        session = services.sessions.get_by_id(session_id)
    except SessionReadError as e:
        logger.error(f"[Sessions Endpoint] {e.message}")
        raise HTTPException(status_code=500, detail="Chat could not be read")
    if session is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return session
