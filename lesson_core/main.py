from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import ORJSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import uuid
from time import perf_counter
from datetime import datetime, timezone
from .state import session_store, snapshot_store
from .models import (
	AnswerRequest,
	CapabilityNoticeRequest,
	ContentView,
	ContentViewRequest,
	CreateSessionRequest,
	EntitlementRequest,
	EntitlementResponse,
	HostNotice,
	OperationResponse,
	QuizResult,
	ResolvedMedia,
	ResolveMediaRequest,
	SessionStateResponse,
)
from .services.content_view import ContentViewBuilder
from .services.entitlement import evaluate
from .services.media_resolver import MediaResolver
from .services.quiz_engine import QuizSession
from .services.ticker import AsyncioTicker
from .config import settings

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.DEBUG), format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("lesson_core")

CAPABILITY_MESSAGES = {
	"fullscreen": "Fullscreen not supported on this device.",
}

resolver = MediaResolver(branding_url=settings.branding_url)
content_views = ContentViewBuilder(resolver, premium_tag=settings.premium_tag)
ticker = AsyncioTicker()

@asynccontextmanager
async def lifespan(app: FastAPI):
	logger.info({
		"event": "api_startup",
		"utc_time": datetime.now(timezone.utc).isoformat(),
		"batch_size": settings.mcq_batch_size,
		"snapshot_store": type(snapshot_store).__name__,
	})
	yield
	session_store.close_all()
	logger.info({"event": "api_shutdown"})

app = FastAPI(default_response_class=ORJSONResponse, lifespan=lifespan)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

@app.middleware("http")
async def timing_middleware(request: Request, call_next):
	start = perf_counter()
	response = await call_next(request)
	duration_ms = int((perf_counter() - start) * 1000)
	logger.debug({
		"event": "request_timing",
		"method": request.method,
		"path": request.url.path,
		"status_code": response.status_code,
		"duration_ms": duration_ms,
	})
	return response

def _require_session(session_id: str) -> QuizSession:
	if not session_store.has_session(session_id):
		raise HTTPException(status_code=404, detail="session_not_found")
	return session_store.get_quiz(session_id)

def _state_response(session_id: str) -> SessionStateResponse:
	quiz = session_store.get_quiz(session_id)
	completed = quiz.result is not None
	return SessionStateResponse(
		session_id=session_id,
		chapter_id=session_store.get_chapter_id(session_id),
		phase=quiz.phase,
		order=list(quiz.order),
		answers=dict(quiz.answers),
		batch_index=quiz.batch_index,
		batch_count=quiz.batch_count,
		batch_size=quiz.batch_size,
		elapsed_seconds=quiz.elapsed_seconds,
		attempted_count=quiz.attempted_count,
		total_questions=quiz.total,
		can_submit=quiz.can_submit(),
		score=quiz.score() if completed else None,
		has_unsubmitted_answers=quiz.has_unsubmitted_answers,
		batch=quiz.batch_view(),
	)

def _operation(session_id: str, accepted: bool, event: str) -> OperationResponse:
	logger.debug({"event": event, "session_id": session_id, "accepted": accepted})
	return OperationResponse(accepted=accepted, state=_state_response(session_id))

@app.post("/api/entitlements/evaluate", response_model=EntitlementResponse)
def evaluate_entitlement(payload: EntitlementRequest):
	allowed = evaluate(payload)
	logger.debug({"event": "entitlement_evaluated", "plan": payload.learner_plan, "kind": payload.content_kind.value, "premium": payload.is_premium, "allowed": allowed})
	return EntitlementResponse(allowed=allowed)

@app.post("/api/media/resolve", response_model=ResolvedMedia)
def resolve_media(payload: ResolveMediaRequest):
	allowed = evaluate(EntitlementRequest(learner_plan=payload.learner_plan, content_kind=payload.content_kind, is_premium=payload.is_premium))
	media = resolver.resolve(payload.url, download_allowed=allowed)
	logger.debug({"event": "media_resolved", "provider": media.provider.value, "canonical_id": media.canonical_id, "download": media.download_url is not None})
	return media

@app.post("/api/content/view", response_model=ContentView)
def build_content_view(payload: ContentViewRequest):
	view = content_views.build(payload.content, payload.chapter_title, payload.learner)
	logger.debug({"event": "content_view_built", "type": payload.content.type, "variant": view.variant.value})
	return view

@app.post("/api/notices/capability", response_model=HostNotice)
def report_capability(payload: CapabilityNoticeRequest):
	key = payload.capability.strip().lower()
	message = CAPABILITY_MESSAGES.get(key, f"{payload.capability} is not supported on this device.")
	logger.warning({"event": "capability_unsupported", "capability": key, "detail": payload.detail})
	return HostNotice(level="error", code="capability_unsupported", message=message)

@app.post("/api/quiz/sessions", response_model=SessionStateResponse)
async def create_quiz_session(payload: CreateSessionRequest):
	session_id = str(uuid.uuid4())

	def on_complete(result: QuizResult) -> None:
		session_store.record_result(session_id, result)

	quiz = QuizSession(
		payload.chapter_id,
		payload.questions,
		snapshot_store,
		ticker=ticker,
		batch_size=settings.mcq_batch_size,
		on_complete=on_complete,
	)
	replaced = session_store.create_session(session_id, payload.chapter_id, quiz)
	if replaced:
		logger.debug({"event": "sessions_replaced", "chapter_id": payload.chapter_id, "session_ids": replaced})
	phase = quiz.start(review_answers=payload.review_answers)
	logger.debug({"event": "session_started", "session_id": session_id, "chapter_id": payload.chapter_id, "questions": quiz.total, "phase": phase.value})
	return _state_response(session_id)

@app.get("/api/quiz/sessions/{session_id}", response_model=SessionStateResponse)
async def get_quiz_session(session_id: str):
	_require_session(session_id)
	return _state_response(session_id)

@app.post("/api/quiz/sessions/{session_id}/resume", response_model=OperationResponse)
async def resume_quiz_session(session_id: str):
	quiz = _require_session(session_id)
	return _operation(session_id, quiz.resume(), "session_resume")

@app.post("/api/quiz/sessions/{session_id}/restart", response_model=OperationResponse)
async def restart_quiz_session(session_id: str):
	quiz = _require_session(session_id)
	return _operation(session_id, quiz.restart(), "session_restart")

@app.post("/api/quiz/sessions/{session_id}/answer", response_model=OperationResponse)
async def answer_question(session_id: str, payload: AnswerRequest):
	quiz = _require_session(session_id)
	accepted = quiz.answer(payload.pool_index, payload.option_index)
	logger.debug({"event": "answer_recorded", "session_id": session_id, "pool_index": payload.pool_index, "option_index": payload.option_index, "accepted": accepted})
	return OperationResponse(accepted=accepted, state=_state_response(session_id))

@app.post("/api/quiz/sessions/{session_id}/next-batch", response_model=OperationResponse)
async def next_batch(session_id: str):
	quiz = _require_session(session_id)
	return _operation(session_id, quiz.next_batch(), "batch_next")

@app.post("/api/quiz/sessions/{session_id}/prev-batch", response_model=OperationResponse)
async def prev_batch(session_id: str):
	quiz = _require_session(session_id)
	return _operation(session_id, quiz.prev_batch(), "batch_prev")

@app.post("/api/quiz/sessions/{session_id}/submit", response_model=OperationResponse)
async def request_submit(session_id: str):
	quiz = _require_session(session_id)
	return _operation(session_id, quiz.request_submit(), "submit_requested")

@app.post("/api/quiz/sessions/{session_id}/submit/cancel", response_model=OperationResponse)
async def cancel_submit(session_id: str):
	quiz = _require_session(session_id)
	return _operation(session_id, quiz.cancel_submit(), "submit_cancelled")

@app.post("/api/quiz/sessions/{session_id}/submit/confirm", response_model=OperationResponse)
async def confirm_submit(session_id: str):
	quiz = _require_session(session_id)
	result = quiz.confirm_submit()
	logger.debug({"event": "submit_confirmed", "session_id": session_id, "accepted": result is not None})
	return OperationResponse(accepted=result is not None, state=_state_response(session_id), result=result)

@app.get("/api/quiz/sessions/{session_id}/result", response_model=QuizResult)
async def get_quiz_result(session_id: str):
	quiz = _require_session(session_id)
	if quiz.result is None:
		raise HTTPException(status_code=409, detail="session_not_completed")
	return quiz.result

@app.delete("/api/quiz/sessions/{session_id}")
async def close_quiz_session(session_id: str):
	_require_session(session_id)
	session_store.close_session(session_id)
	logger.debug({"event": "session_closed", "session_id": session_id})
	return {"closed": True}
