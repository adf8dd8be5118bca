"""Prompt rendering with ``{{variable}}`` placeholders."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Union

from .definitions import PromptTemplate

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def render_prompt(
    prompt: Optional[Union[str, PromptTemplate, Mapping[str, Any]]],
    data: Mapping[str, Any],
    _depth: int = 0,
) -> str:
    """Substitute ``{{name}}`` placeholders in ``prompt`` from ``data``.

    Missing or falsy values render as an empty string. A template object
    (``PromptTemplate`` or a mapping with a ``template`` key) is unwrapped
    once; anything else is converted with ``str``.
    """

    if not prompt:
        return ""

    if isinstance(prompt, str):
        return _PLACEHOLDER.sub(lambda m: _format_value(data.get(m.group(1))), prompt)

    if _depth == 0:
        if isinstance(prompt, PromptTemplate):
            return render_prompt(prompt.template, data, _depth + 1)
        if isinstance(prompt, Mapping) and "template" in prompt:
            return render_prompt(prompt["template"], data, _depth + 1)

    return str(prompt)


def _format_value(value: Any) -> str:
    if not value:
        return ""
    return str(value)
