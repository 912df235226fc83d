"""Property reference resolution for formulas.

Formulas name columns by display name, which users can change. When a
formula is saved, ``bind_references`` captures the id of every column it
names; at evaluation time the captured id wins over the name, so renaming a
column does not break formulas that use it.
"""

from collections.abc import Mapping, Sequence

from notebase.core.exceptions import FormulaReferenceError
from notebase.formula.parser import get_parser, iter_property_refs, parse_formula
from notebase.schemas.column import ColumnRef, FormulaOptions


def _find_by_id(columns: Sequence[ColumnRef], column_id: str | None) -> ColumnRef | None:
    if not column_id:
        return None
    for column in columns:
        if column.id == column_id:
            return column
    return None


def _find_by_name(columns: Sequence[ColumnRef], name: str) -> ColumnRef | None:
    for column in columns:
        if column.name == name:
            return column
    return None


def resolve_property(
    name: str,
    columns: Sequence[ColumnRef],
    references: Mapping[str, str] | None = None,
) -> ColumnRef:
    """
    Find the column a ``prop("name")`` reference points at.

    Args:
        name: Name as written in the formula source
        columns: Columns of the row's table
        references: Captured name -> column id map, if any

    Returns:
        The referenced column

    Raises:
        FormulaReferenceError: If neither the captured id nor the name matches
    """
    if references:
        column = _find_by_id(columns, references.get(name))
        if column is not None:
            return column
    column = _find_by_name(columns, name)
    if column is None:
        raise FormulaReferenceError(name)
    return column


def bind_references(source: str, columns: Sequence[ColumnRef]) -> dict[str, str]:
    """
    Capture the column id of every property named in ``source``.

    Names that match no column are left out; evaluating the formula will
    report them.

    Raises:
        FormulaSyntaxError: If the source does not parse
    """
    references: dict[str, str] = {}
    for name in get_parser().get_property_references(source):
        column = _find_by_name(columns, name)
        if column is not None:
            references[name] = column.id
    return references


def unresolved_references(options: FormulaOptions, columns: Sequence[ColumnRef]) -> list[str]:
    """Names in the formula that no longer resolve to a column."""
    if not options.has_valid_config:
        return []
    missing = []
    for name in get_parser().get_property_references(options.formula_source):
        try:
            resolve_property(name, columns, options.references)
        except FormulaReferenceError:
            missing.append(name)
    return missing


def _quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def render_source(options: FormulaOptions, columns: Sequence[ColumnRef]) -> str:
    """
    Rewrite ``prop()`` names to the current names of the columns they were bound to.

    Used to show a saved formula in the editor after referenced columns were
    renamed. References without a captured id, or whose column is gone, are
    left as written.

    Raises:
        FormulaSyntaxError: If the saved source does not parse
    """
    source = options.formula_source
    if not options.has_valid_config or not options.references:
        return source

    replacements: list[tuple[int, int, str]] = []
    for node in iter_property_refs(parse_formula(source)):
        column = _find_by_id(columns, options.references.get(node.property_name))
        if column is None or column.name == node.property_name or node.span is None:
            continue
        start, end = node.span
        replacements.append((start, end, _quote(column.name)))

    # Splice from the end so earlier offsets stay valid
    for start, end, text in sorted(replacements, reverse=True):
        source = source[:start] + text + source[end:]
    return source
