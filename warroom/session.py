"""Session events and the pure reducer that folds them into a new Session."""

from dataclasses import dataclass, replace

from warroom.errors import InvalidInputError
from warroom.models import AgentResponse, ClarificationSet, Session, SessionStatus, Verdict
from warroom.parsing import QUESTION_COUNT


@dataclass(frozen=True)
class ResponseAppended:
    response: AgentResponse


@dataclass(frozen=True)
class AnalysisCompleted:
    pass


@dataclass(frozen=True)
class QuestionsReceived:
    questions: tuple[str, ...]


@dataclass(frozen=True)
class ClarificationsSubmitted:
    answers: tuple[str, ...]


@dataclass(frozen=True)
class AnalystsReported:
    responses: tuple[AgentResponse, ...]


@dataclass(frozen=True)
class VerdictReached:
    verdict: Verdict


@dataclass(frozen=True)
class PhaseFailed:
    error: Exception


Event = (
    ResponseAppended
    | AnalysisCompleted
    | QuestionsReceived
    | ClarificationsSubmitted
    | AnalystsReported
    | VerdictReached
    | PhaseFailed
)

_APPEND_STATUSES = (SessionStatus.ANALYZING, SessionStatus.REFINING)


def new_session(session_id: str, idea: str, location: str) -> Session:
    """A fresh session, already in the analyzing phase."""
    return Session(
        session_id=session_id,
        idea=idea,
        location=location,
        status=SessionStatus.ANALYZING,
    )


def _require(session: Session, event: Event, *allowed: SessionStatus) -> None:
    if session.status not in allowed:
        raise InvalidInputError(
            f"{type(event).__name__} not allowed in status '{session.status.value}'"
        )


def reduce(session: Session, event: Event) -> Session:
    """Return the session that results from applying event.

    Raises:
        InvalidInputError: If the event is not valid in the session's status.
    """
    if isinstance(event, ResponseAppended):
        _require(session, event, *_APPEND_STATUSES)
        return replace(session, responses=session.responses + (event.response,))

    if isinstance(event, AnalysisCompleted):
        _require(session, event, SessionStatus.ANALYZING)
        return replace(session, status=SessionStatus.CLARIFYING)

    if isinstance(event, QuestionsReceived):
        _require(session, event, SessionStatus.CLARIFYING)
        if len(event.questions) != QUESTION_COUNT:
            raise InvalidInputError(f"Expected {QUESTION_COUNT} questions, got {len(event.questions)}")
        return replace(session, clarifications=ClarificationSet(questions=tuple(event.questions)))

    if isinstance(event, ClarificationsSubmitted):
        _require(session, event, SessionStatus.CLARIFYING)
        if session.clarifications is None:
            raise InvalidInputError("No clarifying questions have been generated yet")
        submitted = replace(session.clarifications, answers=tuple(event.answers))
        if len(event.answers) != QUESTION_COUNT or not submitted.is_complete:
            raise InvalidInputError(f"All {QUESTION_COUNT} clarification answers are required")
        return replace(session, clarifications=submitted, status=SessionStatus.REFINING)

    if isinstance(event, AnalystsReported):
        _require(session, event, SessionStatus.REFINING)
        return replace(
            session,
            responses=session.responses + tuple(event.responses),
            status=SessionStatus.JUDGING,
        )

    if isinstance(event, VerdictReached):
        _require(session, event, SessionStatus.JUDGING)
        if not event.verdict.tie_breaker_ruling:
            raise InvalidInputError("A completed verdict requires a tie-breaker ruling")
        return replace(session, verdict=event.verdict, status=SessionStatus.COMPLETED)

    if isinstance(event, PhaseFailed):
        if session.status.is_terminal:
            raise InvalidInputError(f"Session already {session.status.value}")
        return replace(session, status=SessionStatus.FAILED, error=event.error)

    raise TypeError(f"Unknown event: {event!r}")
