import pytest

import convoflow.persistence as persistence
from convoflow import WorkflowEngine
from convoflow.contracts import HandlerResult
from convoflow.definitions import State, StateType, Transition, WorkflowDefinition
from convoflow.handlers import handler
from convoflow.persistence import InMemoryContextRepository


@pytest.fixture(autouse=True)
def _reset_repository(monkeypatch):
    """Keep the module-level repository and env config out of other tests."""
    monkeypatch.delenv("CONVOFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("CONVOFLOW_CONFIG", raising=False)
    persistence._repository_instance = None
    yield
    persistence._repository_instance = None


@pytest.fixture
def repo() -> InMemoryContextRepository:
    return InMemoryContextRepository()


@handler("echo")
async def echo_handler(context, user_input=""):
    return HandlerResult(success=True, output=f"echo: {user_input}")


@pytest.fixture
def simple_workflow() -> WorkflowDefinition:
    """ask_name (input) -> greet (output) -> completed."""
    return WorkflowDefinition(
        id="simple",
        name="Simple",
        initial_state="ask_name",
        states=[
            State(id="ask_name", name="Ask", type=StateType.INPUT, prompt="Your name?"),
            State(
                id="greet",
                name="Greet",
                type=StateType.OUTPUT,
                prompt="Hello {{ask_name}}",
            ),
            State(id="completed", name="Done", type=StateType.COMPLETED),
        ],
        transitions=[
            Transition(from_state="ask_name", to="greet"),
            Transition(from_state="greet", to="completed"),
        ],
    )


@pytest.fixture
def engine(repo, simple_workflow) -> WorkflowEngine:
    return WorkflowEngine(repo, workflows=[simple_workflow], handlers=[echo_handler])
