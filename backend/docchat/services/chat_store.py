"""
File-backed chat sessions: one JSON record per session id.

Appends are a read-modify-write of the whole record, serialised per session
id with an asyncio.Lock; the write itself goes through a temp file and
os.replace.
"""

import asyncio
import json
import re
import threading
import time
import weakref
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Union

from loguru import logger
from pydantic import ValidationError

from docchat.core.errors import InvalidSessionId, SessionReadError
from docchat.core.storage import atomic_write_json
from docchat.models.data_models import ChatMessage, ChatSession, SessionSummary

TITLE_MAX_LENGTH = 50
_SESSION_ID_RE = re.compile(r'^[A-Za-z0-9_-]+$')


def derive_title(messages: Sequence[ChatMessage]) -> str:
    if not messages:
        return "Empty chat"
    first_user = next((m.content for m in messages if m.role == "user"), None)
    if not first_user:
        return "No messages"
    if len(first_user) > TITLE_MAX_LENGTH:
        return first_user[:TITLE_MAX_LENGTH] + "..."
    return first_user


def is_valid_session_id(session_id: str) -> bool:
    return bool(session_id) and bool(_SESSION_ID_RE.match(session_id))


class SessionStore:
    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        # Entries vanish once no append holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._id_lock = threading.Lock()
        self._last_id = 0

    def _path(self, session_id: str) -> Path:
        return self.directory / f"{session_id}.json"

    def _next_id(self) -> str:
        # Millisecond clock, bumped past the last id so ids strictly increase
        with self._id_lock:
            now = time.time_ns() // 1_000_000
            self._last_id = max(now, self._last_id + 1)
            return str(self._last_id)

    def _get_lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _read(self, path: Path, session_id: str) -> ChatSession:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return ChatSession.model_validate(json.load(f))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise SessionReadError(session_id, str(e)) from e

    def _save(self, session: ChatSession) -> None:
        atomic_write_json(self._path(session.id), session.model_dump(mode="json", by_alias=True), indent=2)

    # --- Operations ---

    def create(self) -> ChatSession:
        session = ChatSession(id=self._next_id())
        self._save(session)
        logger.info(f"[Chat Store] Created chat session {session.id}")
        return session

    def get_by_id(self, session_id: str) -> Optional[ChatSession]:
        """The stored session, or None if there is none under that id."""
        if not is_valid_session_id(session_id):
            return None
        path = self._path(session_id)
        if not path.exists():
            return None
        return self._read(path, session_id)

    async def append(self, session_id: str, message: ChatMessage) -> ChatSession:
        """Appends a message, creating the session first if it does not exist yet."""
        if not is_valid_session_id(session_id):
            raise InvalidSessionId(session_id)
        lock = self._get_lock(session_id)
        async with lock:
            session = self.get_by_id(session_id)
            if session is None:
                logger.info(f"[Chat Store] Session {session_id} not found, creating it for the new message.")
                session = ChatSession(id=session_id)
            session.messages.append(message)
            self._save(session)
        return session

    def list_all(self) -> List[SessionSummary]:
        """Summaries of all sessions, most recently modified first. Unreadable files are skipped."""
        summaries = []
        for path in self.directory.glob("*.json"):
            session_id = path.stem
            try:
                session = self._read(path, session_id)
                mtime = path.stat().st_mtime
            except (SessionReadError, OSError) as e:
                logger.warning(f"[Chat Store] Skipping unreadable session file {path.name}: {e}")
                continue
            summaries.append(SessionSummary(
                id=session.id,
                title=derive_title(session.messages),
                timestamp=datetime.fromtimestamp(mtime, tz=timezone.utc),
                message_count=len(session.messages),
            ))
        summaries.sort(key=lambda s: s.timestamp, reverse=True)
        return summaries
