"""Validation of raw user input against state rules."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, Field

from .definitions import ValidationRule

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_MESSAGE = "Ce champ est requis"
DEFAULT_FORMAT_MESSAGE = "Format invalide"


class ValidationOutcome(BaseModel):
    """Result of running a rule list over one input."""

    is_valid: bool
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


def validate_input(user_input: str, rules: Sequence[ValidationRule]) -> ValidationOutcome:
    """Apply ``rules`` in order to ``user_input``.

    The first failing rule stops evaluation. On success every rule's ``field``
    is set to the same raw input, so several rules on one state all receive
    the full value. Unknown rule types only contribute their field.
    """

    data: Dict[str, Any] = {}
    for rule in rules:
        if rule.type == "required" and not user_input.strip():
            return ValidationOutcome(
                is_valid=False, message=rule.message or DEFAULT_REQUIRED_MESSAGE
            )

        if rule.type == "regex" and rule.pattern:
            if not re.search(rule.pattern, user_input):
                return ValidationOutcome(
                    is_valid=False, message=rule.message or DEFAULT_FORMAT_MESSAGE
                )

        data[rule.field] = user_input

    logger.debug(f"Input accepted for fields {sorted(data)}")
    return ValidationOutcome(is_valid=True, data=data)
