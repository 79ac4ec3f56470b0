"""Integration tests for the conversation loop.

Tests cover the full exchange: initial budget check, final replies,
tool-call rounds, ordering, forward-compatible skipping, and failure
states. All tests use a scripted client -- no real API calls. Tools
are real scripts on disk.
"""

from __future__ import annotations

import pytest

from rlm.exceptions import (
    BudgetExceededError,
    EmptyInputError,
    EmptyModelReplyError,
    OrchestratorError,
    ToolExecutionFailedError,
    UnknownFunctionRequestedError,
)
from rlm.llm import ApiError
from rlm.orchestrator import (
    Continue,
    Finished,
    Orchestrator,
    OrchestratorConfig,
    OrchestratorResult,
    OrchestratorState,
)
from rlm.toolkit import ToolGateway
from tests.conftest import ScriptedClient, text_reply, tool_call_dict, tool_reply, write_tool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_orchestrator(
    replies: list[dict],
    tool_dir=None,
    **config_kwargs,
) -> tuple[Orchestrator, ScriptedClient]:
    client = ScriptedClient(replies)
    gateway = ToolGateway(tool_dir) if tool_dir is not None else None
    orch = Orchestrator(client, gateway, OrchestratorConfig(**config_kwargs))
    return orch, client


class FailingClient:
    """Client whose every request fails with an API error."""

    def __init__(self):
        self.call_count = 0

    def complete(self, envelope):
        self.call_count += 1
        raise ApiError(500, "boom")

    def close(self):
        pass


# ===========================================================================
# Plain exchanges
# ===========================================================================


class TestPlainExchange:

    def test_hello_returns_reply_content(self):
        orch, client = make_orchestrator([text_reply("Hi there")])
        result = orch.run("Hello")

        assert isinstance(result, OrchestratorResult)
        assert result.content == "Hi there"
        assert result.rounds == 1
        assert result.total_tool_calls == 0
        assert orch.state == OrchestratorState.DONE
        assert client.payloads[0]["messages"] == [{"role": "user", "content": "Hello"}]
        assert "tools" not in client.payloads[0]

    def test_user_message_precedes_system_message(self):
        orch, client = make_orchestrator([text_reply("ok")])
        orch.run("Hello", system_message="Be terse.")

        assert client.payloads[0]["messages"] == [
            {"role": "user", "content": "Hello"},
            {"role": "system", "content": "Be terse."},
        ]

    def test_model_is_sent(self):
        orch, client = make_orchestrator([text_reply("ok")], model="openai/gpt-4o")
        orch.run("Hello")
        assert client.payloads[0]["model"] == "openai/gpt-4o"

    def test_reply_appended_to_transcript(self):
        orch, _ = make_orchestrator([text_reply("Hi there")])
        result = orch.run("Hello")
        assert [m.role for m in result.messages] == ["user", "assistant"]
        assert result.messages[-1].content == "Hi there"

    def test_empty_tool_calls_list_finishes(self):
        orch, _ = make_orchestrator([{"role": "assistant", "content": "done", "tool_calls": []}])
        assert orch.run("Hello").content == "done"

    def test_reply_without_content_or_tool_calls_fails(self):
        orch, _ = make_orchestrator([text_reply(None)])
        with pytest.raises(EmptyModelReplyError):
            orch.run("Hello")
        assert orch.state == OrchestratorState.FAILED
        # The reply is still part of the history
        assert [m.role for m in orch.messages] == ["user", "assistant"]


# ===========================================================================
# Budget checkpoints
# ===========================================================================


class TestBudget:

    def test_oversized_input_fails_before_any_request(self):
        orch, client = make_orchestrator([text_reply()], character_limit=16384)
        with pytest.raises(BudgetExceededError) as exc_info:
            orch.run("x" * 20000)

        assert exc_info.value.actual == 20000
        assert exc_info.value.limit == 16384
        assert client.call_count == 0
        assert orch.state == OrchestratorState.FAILED

    def test_system_message_counts_toward_budget(self):
        orch, client = make_orchestrator([text_reply()], character_limit=10)
        with pytest.raises(BudgetExceededError):
            orch.run("x" * 6, system_message="y" * 5)
        assert client.call_count == 0

    def test_empty_input_fails_before_any_request(self):
        orch, client = make_orchestrator([text_reply()])
        with pytest.raises(EmptyInputError):
            orch.run("")
        assert client.call_count == 0

    def test_empty_user_message_with_system_message_passes(self):
        orch, _ = make_orchestrator([text_reply("ok")])
        assert orch.run("", system_message="Say ok.").content == "ok"

    def test_input_at_limit_passes(self):
        orch, _ = make_orchestrator([text_reply("")], character_limit=5)
        assert orch.run("x" * 5).content == ""

    def test_final_reply_counts_toward_budget(self):
        orch, _ = make_orchestrator([text_reply("y" * 6)], character_limit=10)
        with pytest.raises(BudgetExceededError) as exc_info:
            orch.run("x" * 5)
        assert exc_info.value.actual == 11
        assert orch.state == OrchestratorState.FAILED

    def test_oversized_tool_result_is_never_appended(self, tmp_path):
        tool = write_tool(tmp_path / "big", name="big", script='printf "%0100d" 0\n')
        orch, client = make_orchestrator(
            [tool_reply(tool_call_dict("big")), text_reply("unreachable")],
            tool_dir=tool,
            character_limit=50,
        )
        with pytest.raises(BudgetExceededError) as exc_info:
            orch.run("Hello")

        assert exc_info.value.actual == len("Hello") + 100
        assert [m.role for m in orch.messages] == ["user", "assistant"]
        assert client.call_count == 1

    def test_oversized_tool_result_is_not_reported(self, tmp_path):
        tool = write_tool(tmp_path / "big", name="big", script='printf "%0100d" 0\n')
        outputs: list[str] = []
        orch, _ = make_orchestrator(
            [tool_reply(tool_call_dict("big")), text_reply("unreachable")],
            tool_dir=tool,
            character_limit=50,
            on_tool_result=outputs.append,
        )
        with pytest.raises(BudgetExceededError):
            orch.run("Hello")

        assert outputs == []


# ===========================================================================
# Tool-call rounds
# ===========================================================================


class TestToolCalls:

    def test_calc_round_trip(self, tool_dir):
        orch, client = make_orchestrator(
            [
                tool_reply(tool_call_dict("calc", '{"expr":"2+2"}')),
                text_reply("The answer is 4"),
            ],
            tool_dir=tool_dir,
        )
        result = orch.run("What's 2+2?")

        assert result.content == "The answer is 4"
        assert result.rounds == 2
        assert [m.role for m in result.messages] == ["user", "assistant", "tool", "assistant"]
        tool_msg = result.messages[2]
        assert tool_msg.content == "4"
        assert tool_msg.tool_call_id == "call_1"
        assert result.messages[1].content is None

        # Second request carries the whole history and the tool definition
        second = client.payloads[1]
        assert [m["role"] for m in second["messages"]] == ["user", "assistant", "tool"]
        assert second["messages"][1]["tool_calls"][0]["function"]["name"] == "calc"
        assert second["tools"][0]["function"]["name"] == "calc"

    def test_tool_receives_raw_arguments(self, tmp_path):
        tool = write_tool(tmp_path / "echo", name="echo", script='printf "%s" "$1"\n')
        orch, _ = make_orchestrator(
            [tool_reply(tool_call_dict("echo", '{"text": "a b"}')), text_reply("ok")],
            tool_dir=tool,
        )
        result = orch.run("Echo")
        assert result.messages[2].content == '{"text": "a b"}'

    def test_results_appended_in_call_order(self, tmp_path):
        tool = write_tool(tmp_path / "echo", name="echo", script='printf "%s" "$1"\n')
        calls = [tool_call_dict("echo", f'"{i}"', call_id=f"call_{i}") for i in range(3)]
        orch, client = make_orchestrator(
            [tool_reply(*calls), text_reply("ok")],
            tool_dir=tool,
        )
        result = orch.run("Go")

        tool_msgs = [m for m in result.messages if m.role == "tool"]
        assert [m.tool_call_id for m in tool_msgs] == ["call_0", "call_1", "call_2"]
        assert [m.content for m in tool_msgs] == ['"0"', '"1"', '"2"']
        assert [s.tool_call.id for s in result.tool_steps] == ["call_0", "call_1", "call_2"]
        # All results go out together in one follow-up request
        assert client.call_count == 2

    def test_multiple_tool_rounds(self, tool_dir):
        orch, client = make_orchestrator(
            [
                tool_reply(tool_call_dict("calc", call_id="a")),
                tool_reply(tool_call_dict("calc", call_id="b")),
                text_reply("done"),
            ],
            tool_dir=tool_dir,
        )
        result = orch.run("Twice")
        assert result.rounds == 3
        assert [s.round for s in result.tool_steps] == [1, 2]
        assert len(client.payloads[2]["messages"]) == 5

    def test_reply_with_tool_calls_never_finishes(self, tool_dir):
        orch, _ = make_orchestrator(
            [tool_reply(tool_call_dict("calc"), content="Let me check."), text_reply("4")],
            tool_dir=tool_dir,
        )
        pending = orch.start("What's 2+2?")
        step = orch.step(pending)
        assert isinstance(step, Continue)
        assert orch.state == OrchestratorState.REQUESTING
        final = orch.step(step)
        assert isinstance(final, Finished)
        assert final.content == "4"

    def test_unknown_function_fails_without_spawning(self, tmp_path):
        marker = tmp_path / "ran"
        tool = write_tool(tmp_path / "calc", script=f'touch "{marker}"\nprintf 4\n')
        orch, _ = make_orchestrator(
            [tool_reply(tool_call_dict("unknown_fn")), text_reply("unreachable")],
            tool_dir=tool,
        )
        with pytest.raises(UnknownFunctionRequestedError) as exc_info:
            orch.run("Hello")

        assert exc_info.value.name == "unknown_fn"
        assert not marker.exists()
        assert orch.state == OrchestratorState.FAILED

    def test_tool_call_without_configured_tool_fails(self):
        orch, _ = make_orchestrator([tool_reply(tool_call_dict("calc"))])
        with pytest.raises(UnknownFunctionRequestedError):
            orch.run("Hello")

    def test_non_function_kind_is_skipped(self, tool_dir, caplog):
        orch, _ = make_orchestrator(
            [
                tool_reply(
                    tool_call_dict("whatever", call_id="skip", kind="retrieval"),
                    tool_call_dict("calc", call_id="run"),
                ),
                text_reply("ok"),
            ],
            tool_dir=tool_dir,
        )
        with caplog.at_level("WARNING", logger="rlm"):
            result = orch.run("Hello")

        assert result.content == "ok"
        assert [m.tool_call_id for m in result.messages if m.role == "tool"] == ["run"]
        assert "Unknown tool_call type: retrieval" in caplog.text

    def test_tool_failure_aborts_and_keeps_completed_steps(self, tmp_path):
        counter = tmp_path / "count"
        script = (
            f'if [ -f "{counter}" ]; then exit 7; fi\n'
            f'touch "{counter}"\n'
            "printf first\n"
        )
        tool = write_tool(tmp_path / "flaky", name="flaky", script=script)
        orch, client = make_orchestrator(
            [
                tool_reply(
                    tool_call_dict("flaky", call_id="one"),
                    tool_call_dict("flaky", call_id="two"),
                ),
                text_reply("unreachable"),
            ],
            tool_dir=tool,
        )
        with pytest.raises(ToolExecutionFailedError) as exc_info:
            orch.run("Go")

        assert exc_info.value.exit_status == 7
        assert [s.output for s in orch.tool_steps] == ["first"]
        assert client.call_count == 1

    def test_callbacks_see_payloads_and_results(self, tool_dir):
        payloads: list[dict] = []
        outputs: list[str] = []
        orch, _ = make_orchestrator(
            [tool_reply(tool_call_dict("calc")), text_reply("4")],
            tool_dir=tool_dir,
            on_request=payloads.append,
            on_tool_result=outputs.append,
        )
        orch.run("What's 2+2?")

        assert len(payloads) == 2
        assert len(payloads[0]["messages"]) == 1
        assert len(payloads[1]["messages"]) == 3
        assert outputs == ["4"]


# ===========================================================================
# State machine
# ===========================================================================


class TestStateMachine:

    def test_initial_state(self):
        orch, _ = make_orchestrator([])
        assert orch.state == OrchestratorState.COLLECTING
        assert orch.messages == ()

    def test_start_moves_to_requesting(self):
        orch, client = make_orchestrator([text_reply()])
        pending = orch.start("Hello")
        assert isinstance(pending, Continue)
        assert orch.state == OrchestratorState.REQUESTING
        assert pending.envelope.model == OrchestratorConfig().model
        assert client.call_count == 0

    def test_start_twice_rejected(self):
        orch, _ = make_orchestrator([text_reply()])
        orch.start("Hello")
        with pytest.raises(OrchestratorError):
            orch.start("Again")

    def test_step_before_start_rejected(self):
        orch, _ = make_orchestrator([text_reply()])
        other, _ = make_orchestrator([text_reply()])
        with pytest.raises(OrchestratorError):
            orch.step(other.start("Hello"))

    def test_step_after_done_rejected(self):
        orch, _ = make_orchestrator([text_reply()])
        pending = orch.start("Hello")
        orch.step(pending)
        assert orch.state.is_terminal
        with pytest.raises(OrchestratorError):
            orch.step(pending)

    def test_client_error_moves_to_failed(self):
        client = FailingClient()
        orch = Orchestrator(client)
        with pytest.raises(ApiError):
            orch.run("Hello")
        assert orch.state == OrchestratorState.FAILED
        assert client.call_count == 1
        assert [m.role for m in orch.messages] == ["user"]
