"""State definitions for the tool-calling conversation loop."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from codewizard.clients.groq import GroqClient
from codewizard.models.llm import ChatCompletion, LLMTool, Turn

MAX_ITERATIONS = 5


class RunPhase(StrEnum):
    """Phases of one run."""

    REQUESTING = "requesting"
    DECIDING = "deciding"
    EXECUTING_TOOLS = "executing_tools"
    TERMINAL = "terminal"


class TurnLog:
    """Append-only sequence of turns produced during a run."""

    def __init__(self, turns: Iterable[Turn] = ()):
        self._turns: list[Turn] = list(turns)

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._turns)


@dataclass
class RunContext:
    """Collaborators a run talks to."""

    client: GroqClient
    tools: dict[str, LLMTool]
    max_iterations: int = MAX_ITERATIONS

    @property
    def tool_list(self) -> list[LLMTool] | None:
        return list(self.tools.values()) or None


@dataclass
class RunState:
    """Mutable state threaded through one run.

    ``prior_turns`` is the filtered client history; ``log`` holds what the
    model and tools add during this run.
    """

    run_id: str
    model: str
    system_prompt: str
    prior_turns: tuple[Turn, ...] = ()
    log: TurnLog = field(default_factory=TurnLog)

    phase: RunPhase = RunPhase.REQUESTING
    iteration: int = 0
    notice_sent: bool = False
    response: ChatCompletion | None = None
    error: str | None = None

    def messages(self) -> list[Turn]:
        """Full message list for the next model request."""
        return [Turn(role="system", content=self.system_prompt), *self.prior_turns, *self.log]
