"""Agent execution loop.

A single :class:`Agent` type drives the think/act cycle. What "thinking" and
"acting" mean is supplied by a policy object (see
:class:`agentflow.core.toolcall.ToolCallPolicy`), so specialised agents are
built by composition rather than subclassing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from agentflow.core.memory import Memory
from agentflow.errors import AgentStateError
from agentflow.types.agent import AgentState
from agentflow.types.messages import Message, Role

if TYPE_CHECKING:
    from agentflow.core.llm import LLMClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10
DEFAULT_DUPLICATE_THRESHOLD = 2

STUCK_PROMPT = (
    "Observed duplicate responses. Consider new strategies and avoid "
    "repeating ineffective paths already attempted."
)
NO_ACTION_RESULT = "Thinking complete - no action needed"


class AgentPolicy(ABC):
    """Decides what an agent does on each step.

    ``prepare`` runs once per ``run()`` before the loop starts; the default
    records the request as a user message. ``think`` returns whether there is
    anything to act on, and ``act`` performs it and returns the step result.
    """

    async def prepare(self, agent: Agent, request: str | None) -> None:
        if request:
            agent.update_memory(Role.USER, request)

    @abstractmethod
    async def think(self, agent: Agent) -> bool:
        """Decide the next action; False means there is nothing to act on."""

    @abstractmethod
    async def act(self, agent: Agent) -> str:
        """Carry out the decided action and return the step result."""


class Agent:
    """Bounded reason/act loop with stuck detection and lifecycle state."""

    def __init__(
        self,
        name: str,
        *,
        policy: AgentPolicy,
        llm: LLMClient,
        description: str | None = None,
        system_prompt: str | None = None,
        next_step_prompt: str | None = None,
        memory: Memory | None = None,
        max_steps: int = DEFAULT_MAX_STEPS,
        duplicate_threshold: int = DEFAULT_DUPLICATE_THRESHOLD,
    ) -> None:
        if not name:
            raise ValueError("Agent name must not be empty")
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.name = name
        self.description = description
        self.policy = policy
        self.llm = llm
        self.system_prompt = system_prompt
        self.next_step_prompt = next_step_prompt
        self.memory = memory if memory is not None else Memory()
        self.max_steps = max_steps
        self.duplicate_threshold = duplicate_threshold
        self.state = AgentState.IDLE
        self.current_step = 0

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, state={self.state!r}, step={self.current_step}/{self.max_steps})"

    @property
    def messages(self) -> list[Message]:
        return self.memory.messages

    # ------------------------------------------------------------------
    # Memory
    # ------------------------------------------------------------------

    def update_memory(self, role: Role | str, content: str, **kwargs: Any) -> None:
        """Append a message for ``role``; tool messages take ``name`` and ``tool_call_id``."""
        try:
            role = Role(role)
        except ValueError:
            raise ValueError(f"Unsupported message role: {role}") from None

        if role == Role.TOOL:
            message = Message.tool(
                content,
                name=kwargs.get("name") or "unknown",
                tool_call_id=kwargs.get("tool_call_id") or "unknown",
            )
        else:
            message = Message(role=role, content=content)
        self.memory.add_message(message)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self, request: str | None = None) -> str:
        """Run steps until finished or ``max_steps`` is reached; return the step log."""
        if self.state != AgentState.IDLE:
            raise AgentStateError(f"Cannot run agent from state: {self.state}", state=str(self.state))

        results: list[str] = []
        previous_state = self.state
        self.state = AgentState.RUNNING
        self.current_step = 0
        try:
            await self.policy.prepare(self, request)

            while self.current_step < self.max_steps and self.state != AgentState.FINISHED:
                self.current_step += 1
                logger.info("%s: executing step %d/%d", self.name, self.current_step, self.max_steps)

                step_result = await self.step()

                if self.is_stuck():
                    self.handle_stuck_state()

                results.append(f"Step {self.current_step}: {step_result}")

            if self.current_step >= self.max_steps and self.state != AgentState.FINISHED:
                results.append(f"Terminated: Reached max steps ({self.max_steps})")
        except Exception:
            self.state = AgentState.ERROR
            raise
        finally:
            if self.state not in (AgentState.FINISHED, AgentState.ERROR):
                self.state = previous_state

        return "\n".join(results) if results else "No steps executed"

    async def step(self) -> str:
        """One think/act cycle."""
        should_act = await self.policy.think(self)
        if not should_act:
            return NO_ACTION_RESULT
        return await self.policy.act(self)

    def reset(self) -> None:
        """Return to ``idle`` so the agent can run again. Memory is kept."""
        self.state = AgentState.IDLE
        self.current_step = 0

    # ------------------------------------------------------------------
    # Stuck detection
    # ------------------------------------------------------------------

    def is_stuck(self) -> bool:
        """True when the latest content repeats earlier assistant output often enough."""
        messages = self.memory.messages
        if len(messages) < 2:
            return False

        last = messages[-1]
        if not last.content:
            return False

        duplicates = sum(
            1
            for msg in messages[:-1]
            if msg.role == Role.ASSISTANT and msg.content == last.content
        )
        return duplicates >= self.duplicate_threshold

    def handle_stuck_state(self) -> None:
        if self.next_step_prompt and self.next_step_prompt.startswith(STUCK_PROMPT):
            return
        self.next_step_prompt = f"{STUCK_PROMPT}\n{self.next_step_prompt}" if self.next_step_prompt else STUCK_PROMPT
        logger.warning("%s detected stuck state. Added prompt: %s", self.name, STUCK_PROMPT)
