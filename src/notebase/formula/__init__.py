"""Formula engine for NoteBase.

This module provides the formula column evaluation system supporting:
- Arithmetic operations (+, -, *, /, unary minus)
- Comparison operations (==, !=, <, >, <=, >=)
- Text functions (CONCAT, LENGTH)
- Numeric functions (SUM, MIN, MAX, ABS, ROUND)
- Logical functions (IF, EMPTY)
- Date functions (NOW)
- Property references (prop("Column Name"))
"""

from notebase.formula.dependencies import FormulaDependencyGraph, build_dependency_graph
from notebase.formula.evaluator import FormulaEvaluator, evaluate, evaluate_column
from notebase.formula.functions import FORMULA_FUNCTIONS, FormulaContext, register_function
from notebase.formula.parser import FormulaParser, get_parser, parse_formula
from notebase.formula.references import bind_references, render_source, resolve_property
from notebase.formula.results import ComputedStatus, FormulaResult, RollupResult

__all__ = [
    "ComputedStatus",
    "FORMULA_FUNCTIONS",
    "FormulaContext",
    "FormulaDependencyGraph",
    "FormulaEvaluator",
    "FormulaParser",
    "FormulaResult",
    "RollupResult",
    "bind_references",
    "build_dependency_graph",
    "evaluate",
    "evaluate_column",
    "get_parser",
    "parse_formula",
    "register_function",
    "render_source",
    "resolve_property",
]
