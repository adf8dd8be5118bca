"""Safe evaluation of transition conditions.

Conditions are short boolean expressions over the workflow data, e.g.::

    data.start_confirmation === 'oui' || data.start_confirmation === 'yes'
    data.age >= 18 and not data.blocked

JavaScript operator spellings are accepted for compatibility with existing
definitions and translated to their Python equivalents before parsing. The
parsed tree is walked by a whitelist evaluator; no code is ever executed.
"""

from __future__ import annotations

import ast
import logging
import operator
import re
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping

from .errors import ConditionError

logger = logging.getLogger(__name__)

DATA_ROOT = "data"

_STRING_LITERAL = re.compile(r"""('(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*")""")

_TRANSLATIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"!=="), "!="),
    (re.compile(r"==="), "=="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!(?!=)"), " not "),
    (re.compile(r"(?<![.\w])true\b"), "True"),
    (re.compile(r"(?<![.\w])false\b"), "False"),
    (re.compile(r"(?<![.\w])(?:null|undefined)\b"), "None"),
)

_COMPARATORS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}


def translate(condition: str) -> str:
    """Rewrite JavaScript operator spellings outside string literals."""

    parts = _STRING_LITERAL.split(condition)
    # odd indexes hold the string literals captured by the split pattern
    for index in range(0, len(parts), 2):
        segment = parts[index]
        for pattern, replacement in _TRANSLATIONS:
            segment = pattern.sub(replacement, segment)
        parts[index] = segment
    return "".join(parts).strip()


@lru_cache(maxsize=256)
def compile_condition(condition: str) -> ast.Expression:
    """Parse and check ``condition``; raise ``ConditionError`` if unsupported."""

    source = translate(condition)
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as exc:
        raise ConditionError(f"Invalid condition {condition!r}: {exc.msg}") from exc
    _check(tree.body, condition)
    return tree


def _check(node: ast.AST, condition: str) -> None:
    if isinstance(node, ast.BoolOp):
        for value in node.values:
            _check(value, condition)
    elif isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.Not, ast.USub)):
        _check(node.operand, condition)
    elif isinstance(node, ast.Compare):
        for op in node.ops:
            if type(op) not in _COMPARATORS:
                raise ConditionError(
                    f"Unsupported operator {type(op).__name__} in {condition!r}"
                )
        _check(node.left, condition)
        for comparator in node.comparators:
            _check(comparator, condition)
    elif isinstance(node, (ast.List, ast.Tuple)):
        for element in node.elts:
            _check(element, condition)
    elif isinstance(node, ast.Constant):
        return
    elif isinstance(node, ast.Attribute):
        if not (isinstance(node.value, ast.Name) and node.value.id == DATA_ROOT):
            raise ConditionError(
                f"Only '{DATA_ROOT}.<field>' references are allowed in {condition!r}"
            )
    else:
        raise ConditionError(
            f"Unsupported expression {type(node).__name__} in {condition!r}"
        )


def _evaluate(node: ast.AST, data: Mapping[str, Any]) -> Any:
    if isinstance(node, ast.BoolOp):
        result: Any = None
        for value in node.values:
            result = _evaluate(value, data)
            if isinstance(node.op, ast.And) and not result:
                return result
            if isinstance(node.op, ast.Or) and result:
                return result
        return result
    if isinstance(node, ast.UnaryOp):
        operand = _evaluate(node.operand, data)
        return not operand if isinstance(node.op, ast.Not) else -operand
    if isinstance(node, ast.Compare):
        left = _evaluate(node.left, data)
        for op, comparator in zip(node.ops, node.comparators):
            right = _evaluate(comparator, data)
            try:
                holds = _COMPARATORS[type(op)](left, right)
            except TypeError:
                # e.g. a missing field (None) against a number
                holds = False
            if not holds:
                return False
            left = right
        return True
    if isinstance(node, ast.List):
        return [_evaluate(e, data) for e in node.elts]
    if isinstance(node, ast.Tuple):
        return tuple(_evaluate(e, data) for e in node.elts)
    if isinstance(node, ast.Constant):
        return node.value
    if isinstance(node, ast.Attribute):
        return data.get(node.attr)
    raise ConditionError(f"Unsupported expression {type(node).__name__}")


def evaluate_condition(condition: str, data: Mapping[str, Any]) -> bool:
    """Evaluate ``condition`` against ``data``.

    Unknown fields evaluate to ``None``. A comparison between incompatible
    types is false on its own, so ``or``/``and`` still see the other clauses.
    """

    tree = compile_condition(condition)
    try:
        return bool(_evaluate(tree.body, data))
    except TypeError as exc:
        logger.warning(f"Condition {condition!r} could not be evaluated: {exc}")
        return False
