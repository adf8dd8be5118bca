import pytest

from convoflow.contracts import HandlerResult, StepRecord, WorkflowContext
from convoflow.definitions import State, StateType, ValidationRule
from convoflow.errors import HandlerError
from convoflow.executors import build_executors
from convoflow.executors.base import DEFAULT_PROCESSING_ERROR
from convoflow.handlers import handler
from convoflow.registry import HandlerRegistry


@handler("compute")
async def compute(context, user_input=""):
    return HandlerResult(success=True, output="computed", data={"total": 3})


@handler("quiet")
async def quiet(context, user_input=""):
    return HandlerResult(success=True, data={"seen": user_input}, next_state="jump")


@handler("refuse")
async def refuse(context, user_input=""):
    return HandlerResult(success=False, error="Refused")


@handler("explode")
async def explode(context, user_input=""):
    raise HandlerError("Service down")


@pytest.fixture
def executors():
    return build_executors(HandlerRegistry([compute, quiet, refuse, explode]))


def _context(state_id=None, data=None):
    history = [StepRecord(state_id=state_id, success=True)] if state_id else []
    return WorkflowContext(
        user_id="u1",
        workflow_id="wf",
        current_state=state_id or "s",
        data=data or {},
        history=history,
    )


@pytest.mark.asyncio
async def test_input_prompts_on_first_visit(executors):
    state = State(id="ask", name="Ask", type=StateType.INPUT, prompt="Name {{x}}?")
    result = await executors[StateType.INPUT].execute(state, _context(data={"x": "!"}), "")
    assert result.success
    assert result.stay_in_current_state
    assert result.message == "Name !?"


@pytest.mark.asyncio
async def test_input_without_rules_stores_under_state_id(executors):
    state = State(id="ask", name="Ask", type=StateType.INPUT)
    result = await executors[StateType.INPUT].execute(state, _context("ask"), "Ahmed")
    assert result.success
    assert not result.stay_in_current_state
    assert result.message == ""
    assert result.data == {"ask": "Ahmed"}


@pytest.mark.asyncio
async def test_input_validation_failure_stays(executors):
    state = State(
        id="ask",
        name="Ask",
        type=StateType.INPUT,
        validation=[ValidationRule(type="required", field="name", message="Requis")],
    )
    result = await executors[StateType.INPUT].execute(state, _context("ask"), "  ")
    assert not result.success
    assert result.stay_in_current_state
    assert result.message == "Requis"


@pytest.mark.asyncio
async def test_decision_without_rules_stores_decision(executors):
    state = State(id="choose", name="Choose", type=StateType.DECISION)
    result = await executors[StateType.DECISION].execute(state, _context("choose"), "2")
    assert result.data == {"decision": "2"}


@pytest.mark.asyncio
async def test_validation_state(executors):
    executor = executors[StateType.VALIDATION]
    bare = State(id="check", name="Check", type=StateType.VALIDATION)
    assert (await executor.execute(bare, _context(), "anything")).success

    state = State(
        id="check",
        name="Check",
        type=StateType.VALIDATION,
        prompt="Retry please",
        validation=[
            ValidationRule(type="regex", field="code", pattern=r"^\d{4}$", message="Bad code")
        ],
    )
    failed = await executor.execute(state, _context(), "12")
    assert not failed.success
    assert failed.stay_in_current_state
    assert failed.message == "Bad code\n\nRetry please"

    passed = await executor.execute(state, _context(), "1234")
    assert passed.success
    assert passed.message == ""
    assert passed.data == {"code": "1234"}


@pytest.mark.asyncio
async def test_processing_with_handler(executors):
    state = State(id="p", name="P", type=StateType.PROCESSING, handler="compute")
    result = await executors[StateType.PROCESSING].execute(state, _context(), "")
    assert result.success
    assert result.message == "computed"
    assert result.data == {"total": 3}


@pytest.mark.asyncio
async def test_processing_passes_handler_next_state(executors):
    state = State(id="p", name="P", type=StateType.PROCESSING, handler="quiet")
    result = await executors[StateType.PROCESSING].execute(state, _context(), "hi")
    assert result.message == ""
    assert result.next_state == "jump"
    assert result.data == {"seen": "hi"}


@pytest.mark.asyncio
async def test_processing_without_handler_uses_prompt(executors):
    state = State(
        id="p", name="P", type=StateType.PROCESSING, handler="missing", prompt="Info"
    )
    result = await executors[StateType.PROCESSING].execute(state, _context(), "")
    assert result.success
    assert result.message == "Info"


@pytest.mark.asyncio
async def test_handler_failures(executors):
    executor = executors[StateType.PROCESSING]
    refused = await executor.execute(
        State(id="p", name="P", type=StateType.PROCESSING, handler="refuse"), _context(), ""
    )
    assert not refused.success
    assert refused.message == "Refused"
    assert refused.error == "Refused"

    raised = await executor.execute(
        State(id="p", name="P", type=StateType.PROCESSING, handler="explode"), _context(), ""
    )
    assert not raised.success
    assert raised.error == "Service down"


@pytest.mark.asyncio
async def test_output_prefers_handler_text_over_prompt(executors):
    executor = executors[StateType.OUTPUT]
    plain = State(id="o", name="O", type=StateType.OUTPUT, prompt="Bye {{name}}")
    result = await executor.execute(plain, _context(data={"name": "Ana"}), "")
    assert result.message == "Bye Ana"
    assert not result.stay_in_current_state

    with_handler = State(
        id="o", name="O", type=StateType.OUTPUT, prompt="unused", handler="compute"
    )
    assert (await executor.execute(with_handler, _context(), "")).message == "computed"


@pytest.mark.asyncio
async def test_ai_processing_requires_handler(executors):
    executor = executors[StateType.AI_PROCESSING]
    missing = State(id="ai", name="AI", type=StateType.AI_PROCESSING, handler="llm")
    result = await executor.execute(missing, _context(), "question")
    assert not result.success
    assert result.message == DEFAULT_PROCESSING_ERROR
    assert "llm" in result.error

    present = State(id="ai", name="AI", type=StateType.AI_PROCESSING, handler="compute")
    assert (await executor.execute(present, _context(), "question")).message == "computed"


@pytest.mark.asyncio
async def test_terminal_states_complete(executors):
    for state_type in (StateType.COMPLETED, StateType.CANCELLED):
        state = State(id="end", name="End", type=state_type)
        result = await executors[state_type].execute(state, _context(), "")
        assert result.success
        assert result.completed
        assert result.message == "Workflow terminé"
