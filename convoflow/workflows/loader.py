"""Load workflow definitions from YAML documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..definitions import WorkflowDefinition, check_definition
from ..errors import DefinitionError


def parse_definition(data: Any, source: str = "<data>") -> WorkflowDefinition:
    """Build and structurally check a definition from decoded YAML/JSON."""

    if not isinstance(data, dict):
        raise DefinitionError(f"{source}: expected a mapping at the top level")
    try:
        definition = WorkflowDefinition.model_validate(data)
    except ValidationError as exc:
        raise DefinitionError(f"{source}: {exc}") from exc
    check_definition(definition)
    return definition


def load_workflow_file(path: str | Path) -> WorkflowDefinition:
    """Read a workflow definition from a YAML file.

    Transitions use the ``from``/``to`` keys; states use the same field names
    as ``State`` (``next_state``, ``on_enter``...).
    """

    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise DefinitionError(f"{path}: not valid YAML: {exc}") from exc
    return parse_definition(data, source=str(path))
