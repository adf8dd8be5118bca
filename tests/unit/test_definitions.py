import pytest

from convoflow.definitions import (
    State,
    StateType,
    Transition,
    WorkflowDefinition,
    check_definition,
)
from convoflow.errors import DefinitionError
from convoflow.registry import HandlerRegistry, WorkflowRegistry
from convoflow.workflows import BUILTIN_WORKFLOWS


def _states(*ids):
    return [State(id=i, name=i, type=StateType.INPUT) for i in ids]


def test_transition_accepts_from_alias():
    transition = Transition.model_validate({"from": "a", "to": "b", "priority": 3})
    assert transition.from_state == "a"
    assert transition.to == "b"
    assert transition.priority == 3
    assert transition.condition is None


def test_definition_lookups():
    definition = WorkflowDefinition(
        id="wf",
        name="WF",
        initial_state="a",
        states=_states("a", "b"),
        transitions=[
            Transition(from_state="a", to="b", priority=1),
            Transition(from_state="b", to="a"),
        ],
    )
    assert definition.get_state("b").id == "b"
    assert definition.get_state("zzz") is None
    assert definition.has_state("a")
    assert [t.to for t in definition.transitions_from("a")] == ["b"]


def test_definitions_are_immutable():
    state = State(id="a", name="A", type=StateType.INPUT)
    with pytest.raises(Exception):
        state.id = "b"


@pytest.mark.parametrize(
    "kwargs, message",
    [
        (dict(id="", name="x", initial_state="a", states=_states("a")), "id and name"),
        (dict(id="wf", name="x", initial_state="a", states=[]), "at least one state"),
        (dict(id="wf", name="x", initial_state="zz", states=_states("a")), "Initial state"),
        (dict(id="wf", name="x", initial_state="a", states=_states("a", "a")), "Duplicate"),
    ],
)
def test_check_definition_rejects_structural_errors(kwargs, message):
    with pytest.raises(DefinitionError, match=message):
        check_definition(WorkflowDefinition(**kwargs))


def test_check_definition_rejects_unknown_transition_endpoints():
    bad_from = WorkflowDefinition(
        id="wf",
        name="x",
        initial_state="a",
        states=_states("a"),
        transitions=[Transition(from_state="ghost", to="a")],
    )
    with pytest.raises(DefinitionError, match="from state 'ghost'"):
        check_definition(bad_from)

    bad_to = WorkflowDefinition(
        id="wf",
        name="x",
        initial_state="a",
        states=_states("a"),
        transitions=[Transition(from_state="a", to="ghost")],
    )
    with pytest.raises(DefinitionError, match="to state 'ghost'"):
        check_definition(bad_to)


def test_check_definition_rejects_unknown_next_state():
    definition = WorkflowDefinition(
        id="wf",
        name="x",
        initial_state="a",
        states=[State(id="a", name="A", type=StateType.INPUT, next_state="nowhere")],
    )
    with pytest.raises(DefinitionError, match="nowhere"):
        check_definition(definition)


def test_registry_rejects_unparseable_condition():
    definition = WorkflowDefinition(
        id="wf",
        name="x",
        initial_state="a",
        states=_states("a", "b"),
        transitions=[Transition(from_state="a", to="b", condition="__import__('os')")],
    )
    registry = WorkflowRegistry()
    with pytest.raises(DefinitionError):
        registry.register(definition)
    assert "wf" not in registry


def test_registry_rejects_invalid_validation_pattern():
    definition = WorkflowDefinition(
        id="wf",
        name="x",
        initial_state="a",
        states=[
            State(
                id="a",
                name="a",
                type=StateType.INPUT,
                validation=[{"type": "regex", "field": "phone", "pattern": "^(6\\d{8}$"}],
            )
        ],
    )
    registry = WorkflowRegistry()
    with pytest.raises(DefinitionError, match="invalid pattern"):
        registry.register(definition)
    assert "wf" not in registry


def test_registry_available_skips_inactive_workflows():
    active = WorkflowDefinition(id="on", name="On", initial_state="a", states=_states("a"))
    inactive = WorkflowDefinition(
        id="off", name="Off", initial_state="a", states=_states("a"), is_active=False
    )
    registry = WorkflowRegistry([active, inactive])
    assert [w.id for w in registry.available()] == ["on"]
    assert [w.id for w in registry.all()] == ["on", "off"]
    assert registry.get("off") is inactive


def test_builtin_workflows_are_valid():
    registry = WorkflowRegistry(BUILTIN_WORKFLOWS)
    assert "name_collection" in registry
    assert "product_purchase" in registry


def test_handler_registry_requires_name():
    class Nameless:
        name = ""

    with pytest.raises(ValueError):
        HandlerRegistry().register(Nameless())
    assert HandlerRegistry().get(None) is None
