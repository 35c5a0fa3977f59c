"""Transition routing for the conversation loop."""

from codewizard.graphs.state import RunPhase, RunState
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)


def route_after_request(state: RunState) -> RunPhase:
    """A failed model call ends the run; otherwise inspect the response."""
    if state.error or state.response is None:
        return RunPhase.TERMINAL
    return RunPhase.DECIDING


def route_after_decision(state: RunState) -> RunPhase:
    """Run tools only when the model stopped to request them."""
    if state.response is not None and state.response.requests_tools:
        return RunPhase.EXECUTING_TOOLS
    return RunPhase.TERMINAL


def route_after_tools(state: RunState, max_iterations: int) -> RunPhase:
    """Loop back to the model until the iteration cap is reached."""
    if state.iteration >= max_iterations:
        logger.warning(f"[{state.run_id}] Reached max tool call iterations ({max_iterations})")
        return RunPhase.TERMINAL
    return RunPhase.REQUESTING


def hit_iteration_cap(state: RunState) -> bool:
    """Whether the run stopped while the model was still requesting tools."""
    return state.error is None and state.response is not None and state.response.requests_tools
