"""Core conversation loop.

Provides the Orchestrator class that runs one exchange with the model:
collect the initial messages, send the transcript, run any requested
tool calls, repeat until the model answers without tool calls.

The loop is a state machine driven by ``start()`` and ``step()``. Each
step performs exactly one round-trip; ``run()`` chains them. The only
blocking points are ``LLMClient.complete()`` and ``ToolGateway.invoke()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rlm.exceptions import EmptyModelReplyError, OrchestratorError
from rlm.orchestrator.config import OrchestratorConfig, OrchestratorState
from rlm.orchestrator.models import (
    Continue,
    Finished,
    OrchestratorResult,
    Step,
    ToolStep,
)
from rlm.protocols import Message, RequestEnvelope
from rlm.toolkit.gateway import ToolGateway
from rlm.transcript import BudgetGuard, Transcript

if TYPE_CHECKING:
    from rlm.llm.protocols import LLMClient
    from rlm.protocols import ToolCall

logger = logging.getLogger(__name__)


class Orchestrator:
    """Drives one conversational exchange, including tool-call rounds.

    The orchestrator exclusively owns the transcript. The client and the
    gateway only receive data from it and return new data.

    Budget checkpoints:

    1. after the initial user/system messages, before any request
       (empty and over-limit input both fail);
    2. before each tool result is appended (over-limit only);
    3. after the final reply (both checks again, on the full transcript).

    Usage::

        orch = Orchestrator(client, ToolGateway(tool_dir), OrchestratorConfig())
        result = orch.run("What's 2+2?", system_message="Be terse.")
        print(result.content)
    """

    def __init__(
        self,
        client: LLMClient,
        gateway: ToolGateway | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._client = client
        self._gateway = gateway or ToolGateway()
        self._config = config or OrchestratorConfig()
        self._guard = BudgetGuard(self._config.character_limit)
        self._transcript = Transcript()
        self._state = OrchestratorState.COLLECTING
        self._rounds = 0
        self._tool_steps: list[ToolStep] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        """Return the current orchestrator state."""
        return self._state

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the transcript so far."""
        return self._transcript.messages

    @property
    def rounds(self) -> int:
        """Number of requests sent so far."""
        return self._rounds

    @property
    def tool_steps(self) -> list[ToolStep]:
        """Tool calls completed so far, including those of a failed batch."""
        return list(self._tool_steps)

    def start(self, user_message: str, system_message: str | None = None) -> Continue:
        """Collect the initial messages and build the first request.

        The user message is appended first, then the system message when
        one is given.

        Raises:
            OrchestratorError: If called after the exchange has started.
            EmptyInputError: If the initial messages carry no content.
            BudgetExceededError: If they exceed the character limit.
        """
        if self._state != OrchestratorState.COLLECTING:
            raise OrchestratorError(
                f"start() called in state {self._state.value!r}"
            )
        try:
            self._transcript.append(Message.user(user_message))
            if system_message is not None:
                self._transcript.append(Message.system(system_message))
            self._guard.check(self._transcript)
        except Exception:
            self._state = OrchestratorState.FAILED
            raise

        self._state = OrchestratorState.REQUESTING
        return Continue(self._envelope())

    def step(self, pending: Continue) -> Step:
        """Perform one round-trip and decide what comes next.

        Returns:
            Continue with the next envelope if tool calls were served,
            Finished with the reply content otherwise.

        Raises:
            OrchestratorError: If not in the REQUESTING state.
            RlmError: Any client, tool, protocol or budget error. The
                orchestrator moves to FAILED and cannot be resumed.
        """
        if self._state != OrchestratorState.REQUESTING:
            raise OrchestratorError(
                f"step() called in state {self._state.value!r}"
            )
        try:
            return self._round_trip(pending.envelope)
        except Exception:
            self._state = OrchestratorState.FAILED
            raise

    def run(self, user_message: str, system_message: str | None = None) -> OrchestratorResult:
        """Execute the whole exchange.

        There is no iteration bound other than the character budget,
        which the growing transcript eventually exhausts.

        Returns:
            OrchestratorResult with the final content and the transcript.
        """
        result: Step = self.start(user_message, system_message)
        while isinstance(result, Continue):
            result = self.step(result)

        return OrchestratorResult(
            content=result.content,
            messages=self._transcript.messages,
            rounds=self._rounds,
            tool_steps=list(self._tool_steps),
        )

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _envelope(self) -> RequestEnvelope:
        return RequestEnvelope(
            model=self._config.model,
            messages=self._transcript,
            tools=self._gateway.tools(),
        )

    def _round_trip(self, envelope: RequestEnvelope) -> Step:
        self._rounds += 1
        if self._config.on_request is not None:
            self._config.on_request(envelope.to_payload())

        reply = self._client.complete(envelope)

        # The reply is part of the exchange even if handling it fails below
        self._state = OrchestratorState.DECIDING
        self._transcript.append(reply)

        if reply.has_tool_calls:
            self._state = OrchestratorState.INVOKING
            for tool_call in reply.tool_calls or ():
                self._dispatch(tool_call)
            self._state = OrchestratorState.REQUESTING
            return Continue(self._envelope())

        if reply.content is None:
            raise EmptyModelReplyError()

        self._guard.check(self._transcript)
        self._state = OrchestratorState.DONE
        logger.debug(
            "Exchange finished after %d round(s), %d tool call(s)",
            self._rounds,
            len(self._tool_steps),
        )
        return Finished(reply.content)

    def _dispatch(self, tool_call: ToolCall) -> None:
        """Run one tool call and append its result to the transcript."""
        if not tool_call.is_function:
            logger.warning("Unknown tool_call type: %s", tool_call.type)
            return

        logger.debug("Tool %s called.", tool_call.name)
        self._gateway.resolve(tool_call.name)
        output = self._gateway.invoke(tool_call.arguments)

        self._guard.check_addition(self._transcript, output)
        if self._config.on_tool_result is not None:
            self._config.on_tool_result(output)
        self._transcript.append(Message.tool_result(tool_call.id, output))
        self._tool_steps.append(
            ToolStep(round=self._rounds, tool_call=tool_call, output=output)
        )
