"""Operations the sequencer applies to config entries."""

from gitwire.operations.base import Operation
from gitwire.operations.check import CheckOperation, compare_trees
from gitwire.operations.selection import list_files, matches_filters, select_files
from gitwire.operations.sync import SyncOperation

__all__ = [
    "Operation",
    "SyncOperation",
    "CheckOperation",
    "compare_trees",
    "list_files",
    "matches_filters",
    "select_files",
]
