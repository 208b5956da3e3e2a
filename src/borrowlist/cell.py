"""
Reference-counted handles and runtime-checked interior mutability.

``Rc`` counts its owners explicitly, so a structure can insist on being the
sole owner of an allocation before it destroys it. ``RefCell`` tracks the
readers and the writer of its value and refuses conflicting access instead of
letting two handles alias a mutation. Borrows are handed out as scoped guards
(``Ref`` and ``RefMut``) that return their claim when released.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from borrowlist.errors import BorrowError, BorrowMutError, OwnershipError, ReleasedError
from borrowlist.types import BorrowState

T = TypeVar("T")

log = logging.getLogger(__name__)

# Borrow flag: 0 when unused, N > 0 for N readers, -1 for one writer
_UNUSED = 0
_WRITING = -1


class _RcBox(Generic[T]):
    """Allocation shared by every clone of an ``Rc``."""

    __slots__ = ("value", "strong")

    def __init__(self, value: T) -> None:
        self.value = value
        self.strong = 1


class Rc(Generic[T]):
    """Shared-ownership handle with an explicit strong count."""

    __slots__ = ("_box",)

    def __init__(self, value: T) -> None:
        self._box: _RcBox[T] | None = _RcBox(value)

    @classmethod
    def _adopt(cls, box: _RcBox[T]) -> "Rc[T]":
        handle = cls.__new__(cls)
        handle._box = box
        return handle

    def _live_box(self) -> _RcBox[T]:
        if self._box is None:
            raise ReleasedError("Handle was already dropped")
        return self._box

    @property
    def value(self) -> T:
        """The shared value."""
        return self._live_box().value

    @property
    def strong_count(self) -> int:
        """Number of live handles to the allocation."""
        return self._live_box().strong

    @property
    def dropped(self) -> bool:
        return self._box is None

    def clone(self) -> "Rc[T]":
        """Return a new handle to the same allocation."""
        box = self._live_box()
        box.strong += 1
        return Rc._adopt(box)

    def drop(self) -> None:
        """Release this handle. Dropping an already dropped handle does nothing."""
        box = self._box
        if box is None:
            return
        self._box = None
        box.strong -= 1

    def ptr_eq(self, other: "Rc[Any]") -> bool:
        """Return True if both handles point at the same allocation."""
        return self._live_box() is other._live_box()

    def try_unwrap(self) -> T:
        """
        Take the value out of the allocation, consuming this handle.

        Returns:
            The value, if this handle is the only owner.

        Raises:
            OwnershipError: If other handles still own the allocation. The
                handle is left untouched.
            ReleasedError: If the handle was already dropped.
        """
        box = self._live_box()
        if box.strong != 1:
            raise OwnershipError(f"Cannot unwrap: {box.strong} owners still hold the allocation")
        self._box = None
        box.strong = 0
        return box.value


class RefCell(Generic[T]):
    """A mutable slot whose borrows are checked at runtime."""

    __slots__ = ("_value", "_flag")

    def __init__(self, value: T) -> None:
        self._value = value
        self._flag = _UNUSED

    @property
    def state(self) -> BorrowState:
        """Current borrow state of the cell."""
        if self._flag == _WRITING:
            return "writing"
        if self._flag > _UNUSED:
            return "reading"
        return "unused"

    def borrow(self, *, owner: Rc[Any] | None = None) -> "Ref[T]":
        """
        Acquire a shared borrow of the value.

        Args:
            owner: Handle the cell is reachable through. The guard keeps its
                own clone of it until released, so it counts as an owner.

        Raises:
            BorrowError: If the value is currently mutably borrowed.
        """
        if self._flag == _WRITING:
            log.debug("Shared borrow refused: cell %#x is mutably borrowed", id(self))
            raise BorrowError("Value is already mutably borrowed")
        self._flag += 1
        return Ref(self, self, "_value", owner.clone() if owner is not None else None)

    def borrow_mut(self, *, owner: Rc[Any] | None = None) -> "RefMut[T]":
        """
        Acquire an exclusive borrow of the value.

        Args:
            owner: Handle the cell is reachable through (see ``borrow``).

        Raises:
            BorrowMutError: If any borrow, shared or exclusive, is outstanding.
        """
        if self._flag != _UNUSED:
            log.debug("Exclusive borrow refused: cell %#x is %s", id(self), self.state)
            raise BorrowMutError(f"Value is already borrowed ({self.state})")
        self._flag = _WRITING
        return RefMut(self, self, "_value", owner.clone() if owner is not None else None)

    def try_borrow(self, *, owner: Rc[Any] | None = None) -> "Ref[T] | None":
        """Like ``borrow``, but return None instead of raising on conflict."""
        if self._flag == _WRITING:
            return None
        return self.borrow(owner=owner)

    def try_borrow_mut(self, *, owner: Rc[Any] | None = None) -> "RefMut[T] | None":
        """Like ``borrow_mut``, but return None instead of raising on conflict."""
        if self._flag != _UNUSED:
            return None
        return self.borrow_mut(owner=owner)

    def into_inner(self) -> T:
        """
        Return the value of a cell nobody is borrowing.

        Raises:
            BorrowMutError: If a borrow is still outstanding.
        """
        if self._flag != _UNUSED:
            raise BorrowMutError(f"Cannot take the value while it is borrowed ({self.state})")
        return self._value

    def _release_shared(self) -> None:
        self._flag -= 1

    def _release_exclusive(self) -> None:
        self._flag = _UNUSED


class _Guard(ABC, Generic[T]):
    """Common behaviour of borrow guards."""

    __slots__ = ("_cell", "_target", "_attr", "_owner", "_active")

    def __init__(
        self,
        cell: RefCell[Any],
        target: Any,
        attr: str,
        owner: Rc[Any] | None,
    ) -> None:
        self._cell = cell
        self._target = target
        self._attr = attr
        self._owner = owner
        self._active = True

    def _check_active(self) -> None:
        if not self._active:
            raise ReleasedError("Borrow guard was already released")

    @abstractmethod
    def _unclaim(self) -> None:
        """Give the borrow claim back to the cell."""

    @property
    def active(self) -> bool:
        return self._active

    def get(self) -> T:
        """Return the guarded value."""
        self._check_active()
        return getattr(self._target, self._attr)  # type: ignore[no-any-return]

    def release(self) -> None:
        """Return the borrow claim to the cell. Releasing twice does nothing."""
        if not self._active:
            return
        self._active = False
        self._unclaim()
        if self._owner is not None:
            self._owner.drop()
            self._owner = None

    def _transfer(self) -> tuple[Any, Rc[Any] | None]:
        # Hand the claim over to a projected guard without returning it
        self._check_active()
        target = getattr(self._target, self._attr)
        owner = self._owner
        self._owner = None
        self._active = False
        return target, owner

    def __enter__(self) -> "_Guard[T]":
        self._check_active()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()

    def __del__(self) -> None:
        self.release()


class Ref(_Guard[T]):
    """Shared borrow guard, read-only access to the guarded value."""

    __slots__ = ()

    def _unclaim(self) -> None:
        self._cell._release_shared()

    @property
    def value(self) -> T:
        return self.get()

    def map(self, attr: str) -> "Ref[Any]":
        """Move this claim onto one attribute of the guarded value."""
        target, owner = self._transfer()
        return Ref(self._cell, target, attr, owner)

    def __enter__(self) -> "Ref[T]":
        self._check_active()
        return self


class RefMut(_Guard[T]):
    """Exclusive borrow guard, read-write access to the guarded value."""

    __slots__ = ()

    def _unclaim(self) -> None:
        self._cell._release_exclusive()

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def set(self, new_value: T) -> None:
        """Replace the guarded value."""
        self._check_active()
        setattr(self._target, self._attr, new_value)

    def map(self, attr: str) -> "RefMut[Any]":
        """Move this claim onto one attribute of the guarded value."""
        target, owner = self._transfer()
        return RefMut(self._cell, target, attr, owner)

    def __enter__(self) -> "RefMut[T]":
        self._check_active()
        return self
