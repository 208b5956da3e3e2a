"""Type definitions for borrowlist."""

from typing import Literal, TypeAlias, TypeVar

# Generic element type
T = TypeVar("T")

# State of a cell's borrow flag: free, shared readers, one exclusive writer
BorrowState: TypeAlias = Literal["unused", "reading", "writing"]
