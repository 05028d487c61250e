from typing import Dict, List
from .config import settings
from .models import QuizResult
from .services.quiz_engine import QuizSession
from .services.snapshot_store import InMemorySnapshotStore, JsonFileSnapshotStore, SnapshotStore

def build_snapshot_store() -> SnapshotStore:
	if settings.snapshot_dir:
		return JsonFileSnapshotStore(settings.snapshot_dir)
	return InMemorySnapshotStore()

class SessionData:
	def __init__(self, chapter_id: str, quiz: QuizSession) -> None:
		self.chapter_id = chapter_id
		self.quiz = quiz
		self.results: List[QuizResult] = []

class SessionStore:
	def __init__(self) -> None:
		self.sessions: Dict[str, SessionData] = {}

	def create_session(self, session_id: str, chapter_id: str, quiz: QuizSession) -> List[str]:
		# One live attempt per chapter, matching the one snapshot per chapter.
		replaced = [sid for sid, data in self.sessions.items() if data.chapter_id == chapter_id]
		for sid in replaced:
			self.close_session(sid)
		self.sessions[session_id] = SessionData(chapter_id, quiz)
		return replaced

	def has_session(self, session_id: str) -> bool:
		return session_id in self.sessions

	def get_quiz(self, session_id: str) -> QuizSession:
		return self.sessions[session_id].quiz

	def get_chapter_id(self, session_id: str) -> str:
		return self.sessions[session_id].chapter_id

	def record_result(self, session_id: str, result: QuizResult) -> None:
		self.sessions[session_id].results.append(result)

	def emitted_count(self, session_id: str) -> int:
		return len(self.sessions[session_id].results)

	def close_session(self, session_id: str) -> bool:
		data = self.sessions.pop(session_id, None)
		if data is None:
			return False
		data.quiz.close()
		return True

	def close_all(self) -> None:
		for session_id in list(self.sessions):
			self.close_session(session_id)

session_store = SessionStore()
snapshot_store = build_snapshot_store()
