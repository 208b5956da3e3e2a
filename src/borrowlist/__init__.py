"""borrowlist - Linked lists with explicit ownership and runtime-checked borrows."""

from borrowlist.cell import Rc, Ref, RefCell, RefMut
from borrowlist.errors import (
    BorrowError,
    BorrowListError,
    BorrowMutError,
    OwnershipError,
    ReleasedError,
)
from borrowlist.shared import IntoIter, SharedList
from borrowlist.stack import Stack
from borrowlist.types import BorrowState

__version__ = "0.0.1"

__all__ = [
    "SharedList",
    "IntoIter",
    "Stack",
    "Rc",
    "RefCell",
    "Ref",
    "RefMut",
    "BorrowListError",
    "BorrowError",
    "BorrowMutError",
    "OwnershipError",
    "ReleasedError",
    "BorrowState",
]
