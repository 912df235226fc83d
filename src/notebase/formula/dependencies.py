"""Formula dependency tracking for NoteBase.

Tracks which columns each computed column reads, so a table can be
recomputed in dependency order and a formula that would close a loop is
rejected when it is configured.
"""

from collections import defaultdict, deque
from collections.abc import Iterable

from notebase.core.exceptions import FormulaError
from notebase.core.logging import get_logger
from notebase.formula.parser import get_parser
from notebase.formula.references import resolve_property
from notebase.schemas.column import Column, ColumnType, FormulaOptions, RollupOptions

logger = get_logger(__name__)


class FormulaDependencyGraph:
    """
    Track computed column dependencies.

    Maintains a bidirectional graph of column ids:
    - dependencies: column_id -> set of column_ids that depend on this column
    - reverse: column_id -> set of column_ids this column depends on
    """

    def __init__(self):
        """Initialize empty dependency graph."""
        # If column A changes, every column in dependencies[A] needs recomputing
        self.dependencies: dict[str, set[str]] = defaultdict(set)

        # To compute column A, every column in reverse[A] must be ready
        self.reverse: dict[str, set[str]] = defaultdict(set)

    def add_formula_column(self, column_id: str, depends_on: set[str]) -> tuple[bool, str | None]:
        """
        Add or replace a computed column in the graph.

        Args:
            column_id: ID of the formula (or rollup) column
            depends_on: IDs of the columns it reads

        Returns:
            Tuple of (success, error_message); the graph is unchanged on failure
        """
        if self.detect_circular_reference(column_id, depends_on):
            return False, "Circular reference"

        # Drop the edges of the previous definition
        if column_id in self.reverse:
            for old_dep in self.reverse[column_id]:
                self.dependencies[old_dep].discard(column_id)

        self.reverse[column_id] = set(depends_on)
        for dep in depends_on:
            self.dependencies[dep].add(column_id)

        return True, None

    def remove_formula_column(self, column_id: str) -> None:
        """Remove a computed column and its outgoing edges."""
        if column_id in self.reverse:
            for dep in self.reverse[column_id]:
                self.dependencies[dep].discard(column_id)
            del self.reverse[column_id]

        self.dependencies.pop(column_id, None)

    def get_affected_columns(self, changed_column_id: str) -> list[str]:
        """
        Get computed columns that need recomputing when a column changes.

        Breadth-first over the transitive dependents of the changed column.
        """
        affected: list[str] = []
        queue = deque([changed_column_id])
        reached = {changed_column_id}
        while queue:
            for dependent in sorted(self.dependencies.get(queue.popleft(), ())):
                if dependent in reached:
                    continue
                reached.add(dependent)
                affected.append(dependent)
                queue.append(dependent)
        return affected

    def get_evaluation_order(self, column_ids: Iterable[str]) -> list[str]:
        """
        Order computed columns so each comes after the columns it reads.

        Uses Kahn's algorithm. Ties keep the order of ``column_ids``.

        Returns:
            Ordered list of column IDs, or an empty list if there is a cycle
        """
        ordered_ids = list(dict.fromkeys(column_ids))
        in_degree = {cid: 0 for cid in ordered_ids}

        for cid in ordered_ids:
            for dep in self.reverse.get(cid, ()):
                if dep in in_degree:
                    in_degree[cid] += 1

        queue = deque(cid for cid in ordered_ids if in_degree[cid] == 0)

        result = []
        while queue:
            cid = queue.popleft()
            result.append(cid)

            for dependent in ordered_ids:
                if cid in self.reverse.get(dependent, ()):
                    in_degree[dependent] -= 1
                    if in_degree[dependent] == 0:
                        queue.append(dependent)

        if len(result) != len(ordered_ids):
            return []

        return result

    def detect_circular_reference(self, column_id: str, depends_on: set[str]) -> bool:
        """
        Check whether giving ``column_id`` these dependencies would create a cycle.

        Depth-first search from the new dependencies back through the graph.
        """
        if column_id in depends_on:
            return True

        # A cycle exists if column_id is reachable upstream of any new dependency
        pending = list(depends_on)
        explored = set(pending)
        while pending:
            for upstream in self.reverse.get(pending.pop(), ()):
                if upstream == column_id:
                    return True
                if upstream not in explored:
                    explored.add(upstream)
                    pending.append(upstream)
        return False

    def get_dependencies(self, column_id: str) -> set[str]:
        """Direct dependencies of a column."""
        return set(self.reverse.get(column_id, ()))

    def get_dependents(self, column_id: str) -> set[str]:
        """Direct dependents of a column."""
        return set(self.dependencies.get(column_id, ()))

    def clear(self) -> None:
        """Clear all dependencies from the graph."""
        self.dependencies.clear()
        self.reverse.clear()

    def __repr__(self) -> str:
        return (
            f"FormulaDependencyGraph("
            f"columns={len(self.reverse)}, "
            f"edges={sum(len(deps) for deps in self.dependencies.values())})"
        )


def column_dependencies(column: Column, columns: list[Column]) -> set[str]:
    """
    IDs of the same-table columns a computed column reads.

    Formula references that no longer resolve, or a source that does not
    parse, contribute nothing; the evaluator reports those when it runs.
    """
    options = column.options
    if column.type == ColumnType.FORMULA and isinstance(options, FormulaOptions):
        if not options.has_valid_config:
            return set()
        try:
            names = get_parser().get_property_references(options.formula_source)
        except (FormulaError, RecursionError):
            return set()
        depends_on = set()
        for name in names:
            try:
                depends_on.add(resolve_property(name, columns, options.references).id)
            except FormulaError:
                continue
        return depends_on

    if column.type == ColumnType.ROLLUP and isinstance(options, RollupOptions):
        # The target lives in another table; only the relation column is local
        return {options.relation_column_id} if options.relation_column_id else set()

    return set()


def build_dependency_graph(columns: list[Column]) -> FormulaDependencyGraph:
    """
    Build the dependency graph of every computed column in a table.

    Columns that would close a cycle are left out of the graph and logged;
    evaluating them reports the cycle.
    """
    graph = FormulaDependencyGraph()
    for column in columns:
        if not column.is_computed:
            continue
        ok, error = graph.add_formula_column(column.id, column_dependencies(column, columns))
        if not ok:
            logger.warning(
                f"Skipping column {column.id} in dependency graph: {error}",
                extra={"column_id": column.id},
            )
    return graph
