"""
NoteBase - computed cells for note-embedded database tables.

Evaluates formula columns (a small expression language over the other
columns of a row) and rollup columns (aggregates over rows reached through
a relation column) for the table views of a block-based notes app.
"""

__version__ = "0.1.0"
__author__ = "NoteBase Team"
__license__ = "MIT"

from notebase.formula import FormulaResult, evaluate
from notebase.rollup import RollupResult, acompute_rollup, compute_rollup

__all__ = [
    "FormulaResult",
    "RollupResult",
    "evaluate",
    "compute_rollup",
    "acompute_rollup",
    "__version__",
]
