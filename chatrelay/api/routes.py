import logging
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends

from chatrelay.api.dependencies import get_orchestrator
from chatrelay.api.dependencies import get_session_store
from chatrelay.generation_logic.upload_triage import build_upload_message
from chatrelay.models.chat_models import ChatRequest
from chatrelay.models.chat_models import Role
from chatrelay.models.chat_models import Turn
from chatrelay.models.chat_models import TurnResponse
from chatrelay.models.chat_models import UploadRequest
from chatrelay.services.fallback import FallbackOrchestrator
from chatrelay.services.session_store import SessionStore

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _run_turn(
    store: SessionStore,
    orchestrator: FallbackOrchestrator,
    session_id: str | None,
    user_text: str,
    request_id: str,
) -> TurnResponse:
    """Append a user turn, generate over the whole session, append the answer.

    The session lock is held for the whole cycle so concurrent requests on one
    session take turns. A failed generation leaves the user turn in place.
    """
    session = store.get_or_create(session_id)
    async with store.lock(session.id):
        store.append(session.id, Turn(role=Role.USER, content=user_text))
        result = await orchestrator.generate(session, request_id=request_id)
        store.append(session.id, Turn(role=Role.ASSISTANT, content=result.text))

    logger.info(
        "[%s] Session %s answered by %s (fallback=%s), history now %d turns",
        request_id,
        session.id,
        result.model_used,
        result.used_fallback,
        len(session.messages),
    )
    return TurnResponse(
        assistant_text=result.text,
        model_used=result.model_used,
        from_fallback=result.used_fallback,
        session_id=session.id,
    )


@router.post("/chat", response_model=TurnResponse)
async def chat(
    payload: ChatRequest,
    store: SessionStore = Depends(get_session_store),
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
) -> TurnResponse:
    """Send one chat message and return the assistant's answer.

    A new session is started when `sessionId` is absent or unknown.
    """
    request_id = str(uuid4())
    logger.info("[%s] /chat called (session=%s, %d chars)", request_id, payload.session_id, len(payload.message))
    return await _run_turn(store, orchestrator, payload.session_id, payload.message, request_id)


@router.post("/upload", response_model=TurnResponse)
async def upload(
    payload: UploadRequest,
    store: SessionStore = Depends(get_session_store),
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
) -> TurnResponse:
    """Send a file for review/refactor.

    The file is converted into a single instruction message (see
    `build_upload_message`) before it joins the conversation.
    """
    request_id = str(uuid4())
    logger.info(
        "[%s] /upload called (session=%s, file=%s, type=%s, size=%s)",
        request_id,
        payload.session_id,
        payload.file_name,
        payload.file_type,
        payload.file_size,
    )
    message = build_upload_message(payload.to_artifact())
    return await _run_turn(store, orchestrator, payload.session_id, message, request_id)
