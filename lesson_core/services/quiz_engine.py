import logging
import math
import random
from typing import Callable, List, Optional, Sequence
from ..models import AnswerMap, PersistedSnapshot, Question, QuestionView, QuizPhase, QuizResult, SessionState
from .snapshot_store import SnapshotStore, snapshot_key
from .ticker import TickSubscription, Ticker

logger = logging.getLogger("lesson_core")

DEFAULT_BATCH_SIZE = 50

class QuizSession:
    """Timed, resumable multiple-choice session over one chapter's question pool.

    Answers are keyed by pool index, never by on-screen position, so the shuffled
    `order` only affects rendering. Operations that do not fit the current phase
    are ignored and report ``False`` instead of raising.
    """

    def __init__(
        self,
        content_id: str,
        questions: Sequence[Question],
        store: SnapshotStore,
        ticker: Optional[Ticker] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rng: Optional[random.Random] = None,
        on_complete: Optional[Callable[[QuizResult], None]] = None,
    ) -> None:
        if not questions:
            raise ValueError("question pool must not be empty")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.content_id = content_id
        self.questions: List[Question] = [
            q if q.index == i else q.model_copy(update={"index": i}) for i, q in enumerate(questions)
        ]
        self.store = store
        self.ticker = ticker
        self.batch_size = batch_size
        self.rng = rng or random.Random()
        self.on_complete = on_complete

        self.phase = QuizPhase.LOADING
        self.order: List[int] = list(range(len(self.questions)))
        self.answers: AnswerMap = {}
        self.batch_index = 0
        self.elapsed_seconds = 0
        self.result: Optional[QuizResult] = None
        self._pending: Optional[PersistedSnapshot] = None
        self._subscription: Optional[TickSubscription] = None

    @property
    def key(self) -> str:
        return snapshot_key(self.content_id)

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def batch_count(self) -> int:
        return max(1, math.ceil(self.total / self.batch_size))

    @property
    def attempted_count(self) -> int:
        return len(self.answers)

    @property
    def has_unsubmitted_answers(self) -> bool:
        return bool(self.answers) and self.phase != QuizPhase.COMPLETED

    # lifecycle

    def start(self, review_answers: Optional[AnswerMap] = None) -> QuizPhase:
        if self.phase != QuizPhase.LOADING:
            return self.phase
        if review_answers is not None:
            # Reviewing a past attempt: original pool order, no persistence, no clock.
            self.order = list(range(self.total))
            self.answers = {
                i: opt for i, opt in review_answers.items() if 0 <= i < self.total and 0 <= opt < len(self.questions[i].options)
            }
            self.result = self._build_result()
            self._set_phase(QuizPhase.COMPLETED)
            return self.phase
        self.order = self._shuffled_order()
        snapshot = self._load_snapshot()
        if snapshot is not None:
            self._pending = snapshot
            self._set_phase(QuizPhase.AWAITING_RESUME_CHOICE)
        else:
            self._set_phase(QuizPhase.IN_PROGRESS)
        return self.phase

    def resume(self) -> bool:
        if self.phase != QuizPhase.AWAITING_RESUME_CHOICE or self._pending is None:
            return False
        self.order = list(self._pending.order)
        self.answers = dict(self._pending.answers)
        self.batch_index = self._pending.batch_index
        self._pending = None
        self._set_phase(QuizPhase.IN_PROGRESS)
        logger.debug({"event": "session_resumed", "content_id": self.content_id, "answered": len(self.answers)})
        return True

    def restart(self) -> bool:
        if self.phase not in (QuizPhase.AWAITING_RESUME_CHOICE, QuizPhase.IN_PROGRESS):
            return False
        self._discard_snapshot()
        self._pending = None
        self.order = self._shuffled_order()
        self.answers = {}
        self.batch_index = 0
        self.elapsed_seconds = 0
        self._set_phase(QuizPhase.IN_PROGRESS)
        logger.debug({"event": "session_restarted", "content_id": self.content_id})
        return True

    def close(self) -> None:
        self._release_clock()

    # answering and navigation

    def answer(self, pool_index: int, option_index: int) -> bool:
        if self.phase != QuizPhase.IN_PROGRESS:
            return False
        if not 0 <= pool_index < self.total or pool_index in self.answers:
            return False
        if not 0 <= option_index < len(self.questions[pool_index].options):
            return False
        self.answers[pool_index] = option_index
        self._persist()
        return True

    def next_batch(self) -> bool:
        return self._move_batch(1)

    def prev_batch(self) -> bool:
        return self._move_batch(-1)

    def _move_batch(self, step: int) -> bool:
        if self.phase not in (QuizPhase.IN_PROGRESS, QuizPhase.COMPLETED):
            return False
        target = self.batch_index + step
        if not 0 <= target < self.batch_count:
            return False
        self.batch_index = target
        if self.phase == QuizPhase.IN_PROGRESS:
            self._persist()
        return True

    # submission

    def can_submit(self) -> bool:
        return len(self.answers) >= min(self.batch_size, self.total)

    def request_submit(self) -> bool:
        if self.phase != QuizPhase.IN_PROGRESS or not self.can_submit():
            return False
        self._set_phase(QuizPhase.CONFIRMING_SUBMIT)
        return True

    def cancel_submit(self) -> bool:
        if self.phase != QuizPhase.CONFIRMING_SUBMIT:
            return False
        self._set_phase(QuizPhase.IN_PROGRESS)
        return True

    def confirm_submit(self) -> Optional[QuizResult]:
        if self.phase != QuizPhase.CONFIRMING_SUBMIT:
            return None
        self.result = self._build_result()
        self._set_phase(QuizPhase.COMPLETED)
        logger.debug({
            "event": "session_completed",
            "content_id": self.content_id,
            "score": self.result.score,
            "answered": len(self.answers),
            "total": self.total,
            "elapsed_seconds": self.elapsed_seconds,
        })
        if self.on_complete is not None:
            self.on_complete(self.result)
        self._discard_snapshot()
        return self.result

    def score(self) -> int:
        return sum(1 for i, opt in self.answers.items() if opt == self.questions[i].correct_option_index)

    # timing

    def tick(self) -> None:
        if self.phase == QuizPhase.IN_PROGRESS:
            self.elapsed_seconds += 1

    # views

    def state(self) -> SessionState:
        return SessionState(
            phase=self.phase,
            order=list(self.order),
            answers=dict(self.answers),
            batch_index=self.batch_index,
            elapsed_seconds=self.elapsed_seconds,
        )

    def snapshot(self) -> PersistedSnapshot:
        return PersistedSnapshot(order=list(self.order), answers=dict(self.answers), batch_index=self.batch_index)

    def ordered_questions(self) -> List[Question]:
        return [self.questions[i] for i in self.order]

    def batch_view(self) -> List[QuestionView]:
        start = self.batch_index * self.batch_size
        reveal = self.phase == QuizPhase.COMPLETED
        views: List[QuestionView] = []
        for position, pool_index in enumerate(self.order[start:start + self.batch_size], start=start + 1):
            q = self.questions[pool_index]
            selected = self.answers.get(pool_index)
            views.append(QuestionView(
                number=position,
                pool_index=pool_index,
                text=q.text,
                options=list(q.options),
                selected_option=selected,
                correct_option=q.correct_option_index if reveal else None,
                is_correct=(selected == q.correct_option_index) if reveal and selected is not None else None,
                explanation=q.explanation if reveal else None,
            ))
        return views

    # internals

    def _shuffled_order(self) -> List[int]:
        order = list(range(self.total))
        self.rng.shuffle(order)
        return order

    def _build_result(self) -> QuizResult:
        return QuizResult(
            score=self.score(),
            answers=dict(self.answers),
            ordered_questions=self.ordered_questions(),
            elapsed_seconds=self.elapsed_seconds,
        )

    def _persist(self) -> None:
        if not self.answers:
            return
        # In-memory state stays authoritative when the store fails.
        try:
            self.store.put(self.key, self.snapshot())
        except Exception:
            logger.exception({"event": "snapshot_save_failed", "content_id": self.content_id})

    def _discard_snapshot(self) -> None:
        try:
            self.store.delete(self.key)
        except Exception:
            logger.exception({"event": "snapshot_delete_failed", "content_id": self.content_id})

    def _load_snapshot(self) -> Optional[PersistedSnapshot]:
        snapshot = self.store.get(self.key)
        if snapshot is None:
            return None
        if not self._fits_pool(snapshot):
            logger.warning({"event": "snapshot_incompatible", "content_id": self.content_id})
            return None
        return snapshot

    def _fits_pool(self, snapshot: PersistedSnapshot) -> bool:
        if sorted(snapshot.order) != list(range(self.total)):
            return False
        if snapshot.batch_index >= self.batch_count:
            return False
        for i, opt in snapshot.answers.items():
            if not 0 <= i < self.total or not 0 <= opt < len(self.questions[i].options):
                return False
        return True

    def _set_phase(self, phase: QuizPhase) -> None:
        self.phase = phase
        if phase == QuizPhase.IN_PROGRESS:
            self._acquire_clock()
        else:
            self._release_clock()

    def _acquire_clock(self) -> None:
        if self._subscription is None and self.ticker is not None:
            self._subscription = self.ticker.subscribe(self.tick)

    def _release_clock(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
