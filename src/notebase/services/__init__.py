"""Service layer modules."""

from notebase.services.computed_cells import ComputedCellService, ComputedResult

__all__ = [
    "ComputedCellService",
    "ComputedResult",
]
