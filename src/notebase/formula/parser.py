"""Formula parser for NoteBase.

Parses formula strings into an AST using the Lark parser. The AST is the
only thing the evaluator ever sees; formula text is never executed.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError, UnexpectedInput

from notebase.core.config import settings
from notebase.core.exceptions import FormulaSyntaxError
from notebase.fields.coercion import normalize_number
from notebase.formula.grammar import FORMULA_GRAMMAR

_ESCAPE_PATTERN = re.compile(r"\\(.)", re.DOTALL)
_ESCAPES = {"n": "\n", "t": "\t"}


# AST Node types
@dataclass(frozen=True)
class NumberNode:
    value: float | int


@dataclass(frozen=True)
class StringNode:
    value: str


@dataclass(frozen=True)
class BooleanNode:
    value: bool


@dataclass(frozen=True)
class PropertyRefNode:
    property_name: str
    # Offsets of the quoted name in the source, used to rewrite it on rename
    span: tuple[int, int] | None = field(default=None, compare=False)


@dataclass(frozen=True)
class FunctionCallNode:
    name: str
    arguments: tuple[Any, ...]


@dataclass(frozen=True)
class BinaryOpNode:
    operator: str
    left: Any
    right: Any


@dataclass(frozen=True)
class UnaryOpNode:
    operator: str
    operand: Any


@dataclass(frozen=True)
class ConditionalNode:
    """if(condition, then, otherwise); branches are evaluated lazily."""

    condition: Any
    then: Any
    otherwise: Any = None


def _unquote(token: Any) -> str:
    body = str(token)[1:-1]
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


class FormulaTransformer(Transformer):
    """Transform Lark parse tree into AST nodes."""

    @v_args(inline=True)
    def number(self, token):
        return NumberNode(normalize_number(float(token)))

    @v_args(inline=True)
    def string(self, token):
        return StringNode(_unquote(token))

    @v_args(inline=True)
    def boolean(self, token):
        return BooleanNode(str(token).lower() == "true")

    @v_args(inline=True)
    def prop_ref(self, _keyword, token):
        return PropertyRefNode(_unquote(token), span=(token.start_pos, token.end_pos))

    def function_call(self, items):
        name = str(items[0]).upper()
        args = tuple(items[1]) if len(items) > 1 and items[1] else ()
        if name == "IF" and len(args) in (2, 3):
            return ConditionalNode(*args)
        return FunctionCallNode(name, args)

    def arguments(self, items):
        return list(items)

    # Arithmetic operators
    @v_args(inline=True)
    def add(self, left, right):
        return BinaryOpNode("+", left, right)

    @v_args(inline=True)
    def sub(self, left, right):
        return BinaryOpNode("-", left, right)

    @v_args(inline=True)
    def mul(self, left, right):
        return BinaryOpNode("*", left, right)

    @v_args(inline=True)
    def div(self, left, right):
        return BinaryOpNode("/", left, right)

    # Comparison operators
    @v_args(inline=True)
    def eq(self, left, right):
        return BinaryOpNode("==", left, right)

    @v_args(inline=True)
    def ne(self, left, right):
        return BinaryOpNode("!=", left, right)

    @v_args(inline=True)
    def lt(self, left, right):
        return BinaryOpNode("<", left, right)

    @v_args(inline=True)
    def gt(self, left, right):
        return BinaryOpNode(">", left, right)

    @v_args(inline=True)
    def le(self, left, right):
        return BinaryOpNode("<=", left, right)

    @v_args(inline=True)
    def ge(self, left, right):
        return BinaryOpNode(">=", left, right)

    # Unary operators
    @v_args(inline=True)
    def neg(self, operand):
        return UnaryOpNode("-", operand)

    @v_args(inline=True)
    def pos(self, operand):
        return operand  # Positive is a no-op


class FormulaParser:
    """
    Parser for NoteBase formulas.

    Parses formula strings into an AST that can be evaluated.
    """

    def __init__(self):
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=FormulaTransformer(),
        )

    def parse(self, formula: str) -> Any:
        """
        Parse a formula string into an AST.

        Args:
            formula: Formula string to parse

        Returns:
            AST root node

        Raises:
            FormulaSyntaxError: If formula syntax is invalid
        """
        try:
            return self._parser.parse(formula)
        except UnexpectedInput as e:
            raise FormulaSyntaxError(
                f"Invalid formula syntax at line {e.line}, column {e.column}",
                line=e.line,
                column=e.column,
            ) from e
        except LarkError as e:
            raise FormulaSyntaxError(f"Invalid formula syntax: {e}") from e

    def validate(self, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula syntax.

        Args:
            formula: Formula string to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.parse(formula)
            return True, None
        except FormulaSyntaxError as e:
            return False, e.error

    def get_property_references(self, formula: str) -> list[str]:
        """
        Extract all property names referenced in a formula.

        Args:
            formula: Formula string

        Returns:
            Referenced names, in order of first appearance
        """
        names: list[str] = []
        for node in iter_property_refs(self.parse(formula)):
            if node.property_name not in names:
                names.append(node.property_name)
        return names


def iter_property_refs(node: Any):
    """Yield every PropertyRefNode in an AST, left to right."""
    # Explicit stack; long operator chains nest deeper than the recursion limit
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, PropertyRefNode):
            yield current
            continue
        if isinstance(current, BinaryOpNode):
            children = [current.left, current.right]
        elif isinstance(current, UnaryOpNode):
            children = [current.operand]
        elif isinstance(current, ConditionalNode):
            children = [current.condition, current.then, current.otherwise]
        elif isinstance(current, FunctionCallNode):
            children = list(current.arguments)
        else:
            continue
        stack.extend(child for child in reversed(children) if child is not None)


_parser: FormulaParser | None = None


def get_parser() -> FormulaParser:
    """Lazily build the shared parser; grammar compilation is the slow part."""
    global _parser
    if _parser is None:
        _parser = FormulaParser()
    return _parser


@lru_cache(maxsize=settings.formula_parse_cache_size)
def parse_formula(formula: str) -> Any:
    """Parse with memoisation; the AST is immutable so sharing it is safe."""
    return get_parser().parse(formula)
