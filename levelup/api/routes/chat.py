import logging
import re
import uuid
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from levelup.api.deps import get_current_user
from levelup.core.db import get_db, get_session_factory
from levelup.core.llm_client import LLMClient, LLMError, get_llm_client
from levelup.core.mentor import (
    DEFAULT_SESSION_NAME,
    build_system_prompt,
    build_title_prompt,
    clean_title,
)
from levelup.core.sse import DONE_FRAME, format_event
from levelup.models.base import utcnow
from levelup.models.chat import ChatMessage, ChatSession
from levelup.models.content import Chapter
from levelup.models.progress import UserProgress
from levelup.models.user import User
from levelup.schemas.chat import (
    ChatMessageOut,
    ChatReplyOut,
    ChatSessionCreate,
    ChatSessionCreated,
    ChatSessionOut,
    ChatSessionRename,
    ChatStreamRequest,
    GenerateNameOut,
    GenerateNameRequest,
    OkOut,
)

router = APIRouter(prefix="/chat", tags=["chat"])
logger = logging.getLogger(__name__)

# ids coming from clients: `session-<ms>-<rand>`; anything else gets a server id
_CLIENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_TRANSIENT_PREFIX = "temp-"
_HISTORY_WINDOW = 20
_SUMMARY_LEN = 140


def _as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        # DB stores naive UTC; tag it so clients can interpret correctly
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _session_out(s: ChatSession) -> ChatSessionOut:
    return ChatSessionOut(id=s.id, name=s.name, summary=s.summary or "")


def _message_out(m: ChatMessage) -> ChatMessageOut:
    return ChatMessageOut(role=m.role, content=m.content, timestamp=_as_utc_aware(m.created_at))


def _owned_session(db: Session, session_id: str, user: User) -> ChatSession:
    session = db.get(ChatSession, session_id)
    if not session or session.user_id != user.id:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _history(db: Session, session_id: str) -> List[ChatMessage]:
    q = select(ChatMessage).where(ChatMessage.session_id == session_id).order_by(ChatMessage.id.asc())
    return list(db.execute(q).scalars().all())


def _save_message(db: Session, session: ChatSession, role: str, content: str) -> ChatMessage:
    msg = ChatMessage(session_id=session.id, role=role, content=content)
    session.updated_at = utcnow()
    if role == "user" and not session.summary:
        session.summary = content.strip()[:_SUMMARY_LEN]
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


def _mentor_prompt(db: Session, user: User) -> str:
    chapters = db.execute(select(Chapter).order_by(Chapter.category_id, Chapter.chapter_number)).scalars().all()
    done_ids = set(
        db.execute(
            select(UserProgress.chapter_id).where(
                UserProgress.user_id == user.id, UserProgress.completed.is_(True)
            )
        ).scalars().all()
    )
    return build_system_prompt(
        completed_titles=[c.title for c in chapters if c.id in done_ids],
        catalog_titles=[c.title for c in chapters],
    )


def _llm_messages(messages: List[ChatMessage]) -> List[Dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages[-_HISTORY_WINDOW:]]


@router.get("/sessions", response_model=List[ChatSessionOut])
def list_sessions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = (
        select(ChatSession)
        .where(ChatSession.user_id == current_user.id)
        .order_by(desc(ChatSession.updated_at), desc(ChatSession.created_at))
    )
    return [_session_out(s) for s in db.execute(q).scalars().all()]


@router.post("/session", response_model=ChatSessionCreated)
def create_session(
    payload: ChatSessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    requested = (payload.session_id or "").strip()
    session_id = ""
    if requested and _CLIENT_ID_RE.match(requested) and not requested.startswith(_TRANSIENT_PREFIX):
        existing = db.get(ChatSession, requested)
        if existing and existing.user_id == current_user.id:
            # retried create: acknowledge the row we already have
            return ChatSessionCreated(
                session_id=existing.id, id=existing.id, name=existing.name, summary=existing.summary or ""
            )
        if not existing:
            session_id = requested
    if not session_id:
        session_id = uuid.uuid4().hex

    try:
        session = ChatSession(id=session_id, user_id=current_user.id, name=DEFAULT_SESSION_NAME, summary="")
        db.add(session)
        db.commit()
        db.refresh(session)
    except Exception:
        db.rollback()
        logger.exception("Error creating chat session")
        raise HTTPException(status_code=500, detail="Failed to create chat session")
    return ChatSessionCreated(session_id=session.id, id=session.id, name=session.name, summary=session.summary)


@router.delete("/session/{session_id}", response_model=OkOut)
def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _owned_session(db, session_id, current_user)
    db.delete(session)
    db.commit()
    return OkOut()


@router.patch("/session/{session_id}", response_model=ChatSessionOut)
def rename_session(
    session_id: str,
    payload: ChatSessionRename,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _owned_session(db, session_id, current_user)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name must not be blank")
    session.name = name
    db.commit()
    db.refresh(session)
    return _session_out(session)


@router.post("/session/{session_id}/generate-name", response_model=GenerateNameOut)
async def generate_session_name(
    session_id: str,
    payload: GenerateNameRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    llm: LLMClient = Depends(get_llm_client),
):
    session = _owned_session(db, session_id, current_user)

    first = next((m.content for m in payload.messages if m.role == "user" and m.content.strip()), "")
    if not first:
        first = next((m.content for m in _history(db, session.id) if m.role == "user"), "")
    if not first:
        return GenerateNameOut(name=DEFAULT_SESSION_NAME)

    try:
        raw = await llm.complete(
            [{"role": "user", "content": build_title_prompt(first)}],
            max_tokens=16,
            demo_reply=" ".join(first.split()[:4]),
        )
    except LLMError:
        logger.exception("Error generating session name for %s", session_id)
        raise HTTPException(status_code=500, detail="Failed to generate session name")

    name = clean_title(raw)
    session.name = name
    db.commit()
    return GenerateNameOut(name=name)


@router.get("/history/{session_id}", response_model=List[ChatMessageOut])
def get_history(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _owned_session(db, session_id, current_user)
    return [_message_out(m) for m in _history(db, session.id)]


@router.post("", response_model=ChatReplyOut)
async def chat_once(
    payload: ChatStreamRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    llm: LLMClient = Depends(get_llm_client),
):
    session = _owned_session(db, payload.session_id, current_user)
    _save_message(db, session, "user", payload.message)
    try:
        reply = await llm.complete(
            _llm_messages(_history(db, session.id)),
            system_prompt=_mentor_prompt(db, current_user),
        )
    except LLMError:
        raise HTTPException(status_code=500, detail="Failed to get chat response")
    _save_message(db, session, "assistant", reply)
    return ChatReplyOut(response=reply)


@router.post("/stream")
async def chat_stream(
    payload: ChatStreamRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    llm: LLMClient = Depends(get_llm_client),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    session = _owned_session(db, payload.session_id, current_user)
    _save_message(db, session, "user", payload.message)
    messages = _llm_messages(_history(db, session.id))
    system_prompt = _mentor_prompt(db, current_user)
    session_id = session.id

    async def _sse() -> AsyncIterator[bytes]:
        parts: List[str] = []
        try:
            async for piece in llm.stream(messages, system_prompt=system_prompt):
                parts.append(piece)
                yield format_event({"content": piece})
        except Exception:
            logger.exception("Error in streaming chat for session %s", session_id)
            yield format_event({"error": "Failed to get response"})
            return

        # request-scoped db may already be closed once the body is streaming
        with session_factory() as db2:
            s2 = db2.get(ChatSession, session_id)
            if s2 is not None:
                _save_message(db2, s2, "assistant", "".join(parts))
        yield DONE_FRAME

    return StreamingResponse(
        _sse(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
