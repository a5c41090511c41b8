"""
WebSocket event channel for chat and translation.

Client sends {"event": ..., "data": {...}}:
    chat_message        {"message", "history", "sessionId"}
    translate_document  {"language", "filename"}
    ping

Server sends:
    ai_response           {"message"}
    translation_start     {"message"}
    translation_progress  {"completed", "total"}
    translation_complete  {"pages"}
    pong
    error                 {"message"}

Each chat/translation event runs as its own task, so a long translation does
not hold up later events on the same connection. Failures are reported as
error events; the connection stays open.
"""

import asyncio
import json
from typing import Optional, Set

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import ValidationError

from docchat.core.errors import DocChatError, TranslationError, UnsafeFilename
from docchat.core.state import AppServices, get_services
from docchat.models.api_models import ChatMessageEvent, EventEnvelope, TranslateDocumentEvent
from docchat.models.data_models import ChatMessage
from docchat.services.uploads import resolve_upload

router = APIRouter()


class EventChannel:
    """Outbound side of one connection; concurrent handlers share it."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._send_lock = asyncio.Lock()

    async def emit(self, event: str, data: Optional[dict] = None) -> None:
        async with self._send_lock:
            await self.websocket.send_json({"event": event, "data": data or {}})

    async def emit_error(self, message: str) -> None:
        await self.emit("error", {"message": message})


async def handle_chat_message(channel: EventChannel, services: AppServices, payload: ChatMessageEvent) -> None:
    session_id = payload.session_id
    try:
        if session_id:
            await services.sessions.append(session_id, ChatMessage(role="user", content=payload.message))

        response = await services.query_engine.answer(payload.message, payload.history)

        if session_id:
            await services.sessions.append(session_id, ChatMessage(role="ai", content=response))
    except (DocChatError, OSError) as e:
        logger.exception(f"[Events] Chat error: {e}")
        await channel.emit_error("Failed to generate response")
        return

    await channel.emit("ai_response", {"message": response})


async def handle_translate_document(channel: EventChannel, services: AppServices,
                                    payload: TranslateDocumentEvent) -> None:
    if not payload.filename:
        await channel.emit_error("No file specified for translation")
        return
    try:
        file_path = resolve_upload(services.upload_dir, payload.filename)
    except UnsafeFilename:
        logger.warning(f"[Events] Rejected translation filename {payload.filename!r}")
        await channel.emit_error("Invalid filename")
        return
    if file_path is None:
        await channel.emit_error("File not found for translation")
        return

    async def report_progress(completed: int, total: int) -> None:
        await channel.emit("translation_progress", {"completed": completed, "total": total})

    await channel.emit("translation_start", {"message": "Translation started..."})
    try:
        pages = await services.translation.translate(payload.language, str(file_path), on_progress=report_progress)
    except (TranslationError, ValueError) as e:
        logger.error(f"[Events] Translation error: {e}")
        await channel.emit_error("Translation failed")
        return

    await channel.emit("translation_complete", {"pages": pages})


HANDLERS = {
    "chat_message": (ChatMessageEvent, handle_chat_message),
    "translate_document": (TranslateDocumentEvent, handle_translate_document),
}


@router.websocket("/ws")
async def websocket_events(websocket: WebSocket, services: AppServices = Depends(get_services)) -> None:
    await websocket.accept()
    logger.info(f"[Events] Client connected: {websocket.client}")
    channel = EventChannel(websocket)
    tasks: Set[asyncio.Task] = set()

    def on_task_done(task: asyncio.Task) -> None:
        tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("[Events] Event handler crashed")

    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                envelope = EventEnvelope.model_validate(json.loads(raw_data))
            except (json.JSONDecodeError, ValidationError):
                await channel.emit_error("Invalid event format")
                continue

            if envelope.event == "ping":
                await channel.emit("pong")
                continue

            handler = HANDLERS.get(envelope.event)
            if handler is None:
                await channel.emit_error(f"Unknown event: {envelope.event}")
                continue

            payload_model, handle = handler
            try:
                payload = payload_model.model_validate(envelope.data)
            except ValidationError:
                await channel.emit_error(f"Invalid payload for {envelope.event}")
                continue
            task = asyncio.create_task(handle(channel, services, payload))
            tasks.add(task)
            task.add_done_callback(on_task_done)
    except WebSocketDisconnect:
        logger.info(f"[Events] Client disconnected: {websocket.client}")
    finally:
        # In-flight handlers have nobody left to answer
        pending = list(tasks)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
