"""Pure dataclasses for the War Room debate session. No I/O, no deps."""

from dataclasses import dataclass, field, replace
from enum import Enum


class Role(str, Enum):
    OPTIMIST = "optimist"
    SKEPTIC = "skeptic"
    SOCIAL_LISTENER = "social_listener"
    AD_ANALYST = "ad_analyst"
    JUDGE = "judge"
    TIE_BREAKER = "tie_breaker"

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]


_ROLE_LABELS = {
    Role.OPTIMIST: "Eternal Optimist",
    Role.SKEPTIC: "Ruthless Skeptic",
    Role.SOCIAL_LISTENER: "Social Media Listener",
    Role.AD_ANALYST: "Ad-Spend Analyst",
    Role.JUDGE: "Pragmatic Judge",
    Role.TIE_BREAKER: "Tie-Breaker",
}


class SessionStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    CLARIFYING = "clarifying"
    REFINING = "refining"
    JUDGING = "judging"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


@dataclass(frozen=True)
class AgentResponse:
    role: Role
    text: str
    produced_at: float     # unix timestamp


@dataclass(frozen=True)
class ClarificationSet:
    questions: tuple[str, str, str]
    answers: tuple[str, str, str] = ("", "", "")

    @property
    def is_complete(self) -> bool:
        return all(a.strip() for a in self.answers)


@dataclass(frozen=True)
class Source:
    title: str
    uri: str


@dataclass(frozen=True)
class Verdict:
    viability_score: float          # 0..10
    summary: str
    key_risks: tuple[str, ...]
    key_opportunities: tuple[str, ...]
    market_trends: tuple[str, ...]
    social_sentiment: str
    estimated_cac: str
    tie_breaker_ruling: str | None = None
    sources: tuple[Source, ...] = ()

    def with_ruling(self, ruling: str) -> "Verdict":
        return replace(self, tie_breaker_ruling=ruling)

    def to_payload(self) -> dict:
        """The camelCase JSON shape the judge is asked to produce."""
        payload = {
            "viabilityScore": self.viability_score,
            "summary": self.summary,
            "keyRisks": list(self.key_risks),
            "keyOpportunities": list(self.key_opportunities),
            "marketTrends": list(self.market_trends),
            "socialSentiment": self.social_sentiment,
            "estimatedCAC": self.estimated_cac,
            "sources": [{"title": s.title, "uri": s.uri} for s in self.sources],
        }
        if self.tie_breaker_ruling is not None:
            payload["tieBreakerRuling"] = self.tie_breaker_ruling
        return payload


@dataclass(frozen=True)
class Session:
    session_id: str
    idea: str
    location: str
    responses: tuple[AgentResponse, ...] = ()
    status: SessionStatus = SessionStatus.IDLE
    clarifications: ClarificationSet | None = None
    verdict: Verdict | None = None
    error: Exception | None = field(default=None, compare=False)

    def response_for(self, role: Role) -> AgentResponse | None:
        return next((r for r in self.responses if r.role == role), None)


@dataclass
class ProviderRequest:
    system_instruction: str
    prompt: str
    json_schema: dict | None = None      # request JSON output matching this schema
    use_search: bool = False             # web-search grounding, where the backend has it
    thinking_budget: int | None = None


@dataclass
class ModelResponse:
    provider: str          # model key from settings.yaml, e.g. "gemini_flash"
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None
    sources: list[dict] = field(default_factory=list)   # raw {"title", "uri"} grounding chunks
