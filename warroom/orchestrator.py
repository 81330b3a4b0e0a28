"""Debate orchestration: the analysis -> clarification -> refinement -> judgment pipeline."""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Callable

from warroom.errors import (
    InvalidInputError,
    InvocationError,
    MalformedOutputError,
    MalformedQuestionsError,
    MalformedVerdictError,
    WarRoomError,
)
from warroom.invoker import AgentInvoker, ClarificationGenerator
from warroom.models import AgentResponse, Role, Session, SessionStatus, Verdict
from warroom.parsing import QUESTION_COUNT
from warroom.session import (
    AnalysisCompleted,
    AnalystsReported,
    ClarificationsSubmitted,
    Event,
    PhaseFailed,
    QuestionsReceived,
    ResponseAppended,
    VerdictReached,
    new_session,
    reduce,
)

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n---\n"
CLARIFICATIONS_HEADER = "\nUser Clarifications: "
ANSWER_SEPARATOR = "; "

FAILURE_MESSAGE = "Debate failed: a model call timed out or returned unusable data. Reset to start over."

# Judge context order, independent of the order responses were appended in
_CONTEXT_ROLES = (Role.OPTIMIST, Role.SKEPTIC, Role.SOCIAL_LISTENER, Role.AD_ANALYST)


class _SessionDiscarded(Exception):
    """The phase's session was reset or replaced while a call was in flight."""


def build_judge_context(session: Session) -> str:
    """Join the four debater responses and the user's answers for the judge."""
    texts = []
    for role in _CONTEXT_ROLES:
        response = session.response_for(role)
        if response is None:
            raise InvalidInputError(f"Missing {role.value} response for judge context")
        texts.append(response.text)
    answers = session.clarifications.answers if session.clarifications else ()
    return CONTEXT_SEPARATOR.join(texts) + CLARIFICATIONS_HEADER + ANSWER_SEPARATOR.join(answers)


def build_tie_breaker_context(verdict: Verdict, judge_context: str) -> str:
    return json.dumps(verdict.to_payload()) + "\n" + judge_context


class DebateOrchestrator:
    """Owns the single live Session and drives it through the debate phases.

    Usage:
        orchestrator = DebateOrchestrator(invoker, clarifier)
        await orchestrator.start(idea, location)
        await orchestrator.submit_clarifications([a1, a2, a3])
        verdict = orchestrator.session.verdict

    External-call failures never propagate out of start() or
    submit_clarifications(): they move the session to FAILED and are kept
    in Session.error. Only InvalidInputError is raised to the caller.
    """

    def __init__(
        self,
        invoker: AgentInvoker,
        clarifier: ClarificationGenerator,
        on_update: Callable[[Session | None], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._invoker = invoker
        self._clarifier = clarifier
        self._on_update = on_update
        self._clock = clock
        self._session: Session | None = None

    @property
    def session(self) -> Session | None:
        """Current session snapshot. Sessions are immutable."""
        return self._session

    @property
    def error_message(self) -> str | None:
        if self._session is not None and self._session.status is SessionStatus.FAILED:
            return FAILURE_MESSAGE
        return None

    # --- state plumbing ---

    def _notify(self) -> None:
        if self._on_update:
            self._on_update(self._session)

    def _is_current(self, session_id: str) -> bool:
        return self._session is not None and self._session.session_id == session_id

    def _ensure_current(self, session_id: str) -> Session:
        if not self._is_current(session_id):
            logger.debug("Discarding result for stale session %s", session_id[:8])
            raise _SessionDiscarded(session_id)
        return self._session

    def _apply(self, session_id: str, event: Event) -> Session:
        current = self._ensure_current(session_id)
        self._session = reduce(current, event)
        self._notify()
        return self._session

    def _fail(self, session_id: str, exc: Exception) -> None:
        current = self._ensure_current(session_id)
        logger.error("Session %s failed during %s: %s", session_id[:8], current.status.value, exc)
        self._apply(session_id, PhaseFailed(exc))

    def _response(self, role: Role, text: str) -> AgentResponse:
        return AgentResponse(role=role, text=text, produced_at=self._clock())

    # --- agent calls ---

    async def _invoke(self, role: Role, session: Session, context: str | None = None) -> str | Verdict:
        try:
            return await self._invoker.invoke(role, session.idea, session.location, context)
        except WarRoomError:
            raise
        except Exception as exc:
            raise InvocationError(role.value, f"Unexpected error: {exc}") from exc

    async def _invoke_text(self, role: Role, session: Session, context: str | None = None) -> str:
        output = await self._invoke(role, session, context)
        if not isinstance(output, str) or not output.strip():
            raise MalformedOutputError(role.value, "Expected non-empty text output")
        return output

    async def _invoke_judge(self, session: Session, context: str) -> Verdict:
        output = await self._invoke(Role.JUDGE, session, context)
        if not isinstance(output, Verdict):
            raise MalformedVerdictError(Role.JUDGE.value, f"Expected a Verdict, got {type(output).__name__}")
        return output

    async def _generate_questions(self, session: Session) -> tuple[str, ...]:
        try:
            questions = await self._clarifier.generate(session.idea, session.location)
        except WarRoomError:
            raise
        except Exception as exc:
            raise InvocationError("clarifier", f"Unexpected error: {exc}") from exc
        if not isinstance(questions, (list, tuple)):
            raise MalformedQuestionsError("clarifier", f"Expected a list of questions, got {type(questions).__name__}")
        if len(questions) != QUESTION_COUNT:
            raise MalformedQuestionsError(
                "clarifier", f"Expected {QUESTION_COUNT} questions, got {len(questions)}"
            )
        if not all(isinstance(q, str) and q.strip() for q in questions):
            raise MalformedQuestionsError("clarifier", "Questions must be non-empty strings")
        return tuple(questions)

    # --- phases ---

    async def _run_analysis(self, session_id: str) -> None:
        session = self._ensure_current(session_id)
        try:
            logger.info("Analysis: optimist then skeptic")
            optimist = await self._invoke_text(Role.OPTIMIST, session)
            self._apply(session_id, ResponseAppended(self._response(Role.OPTIMIST, optimist)))

            skeptic = await self._invoke_text(Role.SKEPTIC, session, context=optimist)
            self._apply(session_id, ResponseAppended(self._response(Role.SKEPTIC, skeptic)))
            self._apply(session_id, AnalysisCompleted())

            logger.info("Clarifying: generating questions")
            questions = await self._generate_questions(session)
            self._apply(session_id, QuestionsReceived(questions))
        except WarRoomError as exc:
            self._fail(session_id, exc)

    async def _run_refinement(self, session_id: str) -> None:
        session = self._ensure_current(session_id)
        try:
            logger.info("Refining: social listener and ad analyst")
            social, ads = await asyncio.gather(
                self._invoke_text(Role.SOCIAL_LISTENER, session),
                self._invoke_text(Role.AD_ANALYST, session),
            )
            session = self._apply(
                session_id,
                AnalystsReported((
                    self._response(Role.SOCIAL_LISTENER, social),
                    self._response(Role.AD_ANALYST, ads),
                )),
            )

            logger.info("Judging: judge then tie-breaker")
            context = build_judge_context(session)
            verdict = await self._invoke_judge(session, context)
            self._ensure_current(session_id)

            ruling = await self._invoke_text(
                Role.TIE_BREAKER, session, context=build_tie_breaker_context(verdict, context)
            )
            # Verdict is stored only together with its ruling
            self._apply(session_id, VerdictReached(verdict.with_ruling(ruling)))
            logger.info("Session %s completed: score %.1f", session_id[:8], verdict.viability_score)
        except WarRoomError as exc:
            self._fail(session_id, exc)

    # --- public API ---

    async def start(self, idea: str, location: str) -> Session | None:
        """Begin a new debate and run it up to the clarification questions.

        Returns:
            The session snapshot after the phase, or None if the session was
            reset or replaced before the phase finished.

        Raises:
            InvalidInputError: If idea or location is blank.
        """
        if not idea or not idea.strip():
            raise InvalidInputError("idea must not be empty")
        if not location or not location.strip():
            raise InvalidInputError("location must not be empty")

        if self._session is not None:
            logger.info("Discarding session %s", self._session.session_id[:8])

        session_id = uuid.uuid4().hex
        self._session = new_session(session_id, idea.strip(), location.strip())
        self._notify()
        logger.info("Session %s started: %s @ %s", session_id[:8], idea.strip()[:60], location.strip())

        try:
            await self._run_analysis(session_id)
        except _SessionDiscarded:
            return None
        return self._session

    async def submit_clarifications(self, answers: list[str] | tuple[str, ...]) -> Session | None:
        """Store the user's answers and run refinement and judgment.

        Returns:
            The session snapshot after the phase, or None if the session was
            reset or replaced before the phase finished.

        Raises:
            InvalidInputError: If no session awaits answers or any of the
                three answers is blank. The session is left untouched.
        """
        session = self._session
        if session is None:
            raise InvalidInputError("No active session")
        if session.status is not SessionStatus.CLARIFYING or session.clarifications is None:
            raise InvalidInputError(f"Session is not awaiting clarifications (status: {session.status.value})")
        if not isinstance(answers, (list, tuple)) or not all(isinstance(a, str) for a in answers):
            raise InvalidInputError("Answers must be a list of strings")
        if len(answers) != QUESTION_COUNT or not all(a and a.strip() for a in answers):
            raise InvalidInputError(f"All {QUESTION_COUNT} clarification answers are required")

        session_id = session.session_id
        self._apply(session_id, ClarificationsSubmitted(tuple(a.strip() for a in answers)))

        try:
            await self._run_refinement(session_id)
        except _SessionDiscarded:
            return None
        return self._session

    def reset(self) -> None:
        """Drop the current session. In-flight calls are left to finish and ignored."""
        if self._session is not None:
            logger.info("Session %s reset", self._session.session_id[:8])
        self._session = None
        self._notify()
