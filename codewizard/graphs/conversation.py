"""Conversation turn driver."""

from collections.abc import AsyncIterator

from cuid2 import cuid_wrapper

from codewizard.clients.groq import GroqClient
from codewizard.graphs.edges import route_after_decision, route_after_request, route_after_tools
from codewizard.graphs.nodes import decide_node, execute_tools_node, request_node, terminal_event
from codewizard.graphs.state import MAX_ITERATIONS, RunContext, RunPhase, RunState
from codewizard.models.events import StreamEvent
from codewizard.models.llm import LLMTool, Turn
from codewizard.tools.fetch_documentation import FETCH_DOCUMENTATION
from codewizard.tools.resolve_library import RESOLVE_LIBRARY_ID
from codewizard.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

# Libraries whose Context7 ID is known up front, so resolution can be skipped.
KNOWN_LIBRARY_IDS = {
    "Groq": "/context7/groq-console-docs",
    "OpenAI": "/openai/openai-cookbook",
    "Anthropic": "/llmstxt/anthropic-llms-full.txt",
    "Perplexity": "/context7/perplexity_ai",
    "Vercel": "/llmstxt/vercel_com-docs-llms.txt",
    "Next.js": "/vercel/next.js",
    "React": "/reactjs/react.dev",
    "Supabase": "/llmstxt/supabase-llms.txt",
    "Prisma": "/prisma/docs",
    "Clerk": "/context7/clerk",
    "Stripe": "/llmstxt/stripe-llms.txt",
    "Firebase": "/llmstxt/firebase_google-llms.txt",
    "Tailwind CSS": "/context7/tailwindcss",
    "MongoDB": "/mongodb/docs",
    "Express": "/expressjs/express",
}


def get_system_prompt() -> str:
    """CodeWizard persona plus the documentation lookup procedure."""
    shortcuts = "\n".join(f"- {name}: {library_id}" for name, library_id in KNOWN_LIBRARY_IDS.items())

    return f"""You are CodeWizard, an AI assistant specialized in helping developers with coding questions, \
debugging, and software development tasks.

When asked to find documentation, and you do not already know the library ID, follow this two-step process:
1.  First, use the '{RESOLVE_LIBRARY_ID}' tool to find the exact Context7-compatible library ID for the \
requested library.
2.  Once you have the ID, use the '{FETCH_DOCUMENTATION}' tool with that ID to retrieve the documentation.

HOWEVER, if you are asked about any of the following libraries, use this library ID already, do not search for it:
{shortcuts}

Go directly to step 2.

Always be helpful, concise, and provide practical solutions. When you use tools to gather information, always \
follow up with a helpful explanation or summary of what you found. Be informative and practical in your responses."""


class ConversationDriver:
    """Drives one user submission through the model/tool loop.

    ``run`` is an explicit scheduler: it dispatches the node for the current
    phase, forwards the node's events, and asks the edge functions for the
    next phase. The stream always ends with exactly one terminal event.
    """

    def __init__(self, client: GroqClient, tools: dict[str, LLMTool], max_iterations: int = MAX_ITERATIONS):
        """Initialize the driver.

        Args:
            client: Chat-completions client bound to the caller's credential
            tools: Tools offered to the model (may be empty)
            max_iterations: Maximum model calls per run
        """
        self.context = RunContext(client=client, tools=tools, max_iterations=max_iterations)

    def create_state(self, turns: list[Turn], model: str, run_id: str | None = None) -> RunState:
        """Initial state for a run.

        Only user and assistant turns are accepted from the caller; tool turns
        exist only inside a run.
        """
        system_prompt = get_system_prompt()
        prior_turns = [turn for turn in turns if turn.role in ("user", "assistant")]
        prior_turns = self.context.client.truncate_conversation(prior_turns, system_prompt)

        return RunState(
            run_id=run_id or cuid(),
            model=model,
            system_prompt=system_prompt,
            prior_turns=tuple(prior_turns),
        )

    async def run(self, turns: list[Turn], model: str, run_id: str | None = None) -> AsyncIterator[StreamEvent]:
        """Yield the events of one run, ending with a terminal event."""
        state = self.create_state(turns, model, run_id)
        logger.info(
            f"[{state.run_id}] Starting run with {len(state.prior_turns)} turns, "
            f"{len(self.context.tools)} tools, model: {model}"
        )

        while True:
            try:
                if state.phase is RunPhase.REQUESTING:
                    await request_node(state, self.context)
                    state.phase = route_after_request(state)

                elif state.phase is RunPhase.DECIDING:
                    for event in decide_node(state):
                        yield event
                    state.phase = route_after_decision(state)

                elif state.phase is RunPhase.EXECUTING_TOOLS:
                    async for event in execute_tools_node(state, self.context):
                        yield event
                    state.phase = route_after_tools(state, self.context.max_iterations)

                else:
                    event = terminal_event(state)
                    logger.info(f"[{state.run_id}] Run finished after {state.iteration} model calls: {event}")
                    yield event
                    return

            except Exception as e:
                logger.error(f"[{state.run_id}] Run failed in phase {state.phase}: {e}", exc_info=True)
                state.error = str(e) or e.__class__.__name__
                state.phase = RunPhase.TERMINAL
