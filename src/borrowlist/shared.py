"""Doubly-linked list of shared, runtime-borrow-checked nodes."""

import logging
from contextlib import ExitStack
from typing import Generic, Iterable, TypeVar

from borrowlist.cell import Rc, Ref, RefCell, RefMut
from borrowlist.errors import BorrowListError

T = TypeVar("T")

log = logging.getLogger(__name__)


class Node(Generic[T]):
    """A node in the shared list. Neighbours are reached through ``Rc`` handles."""

    __slots__ = ("elem", "prev", "next")

    def __init__(self, elem: T) -> None:
        self.elem = elem
        self.prev: Rc[RefCell[Node[T]]] | None = None
        self.next: Rc[RefCell[Node[T]]] | None = None

    @classmethod
    def new(cls, elem: T) -> "Rc[RefCell[Node[T]]]":
        """Allocate a detached node behind a fresh handle."""
        return Rc(RefCell(cls(elem)))


def _into_elem(handle: "Rc[RefCell[Node[T]]]") -> T:
    # The list must be the sole owner of a node it is destroying
    return handle.try_unwrap().into_inner().elem


class SharedList(Generic[T]):
    """
    Doubly-linked list whose nodes are shared between their neighbours.

    Every node is owned through reference-counted handles: the list's
    ``head``/``tail`` and the ``prev``/``next`` links of adjacent nodes. Node
    fields are only touched through a runtime-checked borrow, so a caller
    holding a peek guard blocks any operation that would have to write the
    same node. Such an operation fails with ``BorrowMutError`` before the list
    is modified.
    """

    def __init__(self, iterable: Iterable[T] | None = None) -> None:
        """
        Initialize the list.

        Args:
            iterable: Optional items to push to the back, in order.
        """
        self._head: Rc[RefCell[Node[T]]] | None = None
        self._tail: Rc[RefCell[Node[T]]] | None = None
        self._size = 0
        if iterable is not None:
            for elem in iterable:
                self.push_back(elem)

    def push_front(self, elem: T) -> None:
        """Insert an element before the current head. O(1)."""
        new_head = Node.new(elem)
        old_head = self._head
        if old_head is None:
            self._tail = new_head.clone()
            self._head = new_head
        else:
            with old_head.value.borrow_mut() as old_ref:
                old_ref.value.prev = new_head.clone()
            with new_head.value.borrow_mut() as new_ref:
                new_ref.value.next = old_head
            self._head = new_head
        self._size += 1

    def push_back(self, elem: T) -> None:
        """Insert an element after the current tail. O(1)."""
        new_tail = Node.new(elem)
        old_tail = self._tail
        if old_tail is None:
            self._head = new_tail.clone()
            self._tail = new_tail
        else:
            with old_tail.value.borrow_mut() as old_ref:
                old_ref.value.next = new_tail.clone()
            with new_tail.value.borrow_mut() as new_ref:
                new_ref.value.prev = old_tail
            self._tail = new_tail
        self._size += 1

    def _unlink_front(self) -> "Rc[RefCell[Node[T]]] | None":
        """Detach the head node and return the list's last handle to it."""
        old_head = self._head
        if old_head is None:
            return None
        with ExitStack() as borrows:
            # Claim every node we are about to write before changing anything
            head = borrows.enter_context(old_head.value.borrow_mut()).value
            new_head = head.next
            if new_head is not None:
                neighbour = borrows.enter_context(new_head.value.borrow_mut()).value
                head.next = None
                if neighbour.prev is not None:
                    neighbour.prev.drop()
                neighbour.prev = None
                self._head = new_head
            else:
                if self._tail is not None:
                    self._tail.drop()
                self._tail = None
                self._head = None
        self._size -= 1
        return old_head

    def _unlink_back(self) -> "Rc[RefCell[Node[T]]] | None":
        """Detach the tail node and return the list's last handle to it."""
        old_tail = self._tail
        if old_tail is None:
            return None
        with ExitStack() as borrows:
            tail = borrows.enter_context(old_tail.value.borrow_mut()).value
            new_tail = tail.prev
            if new_tail is not None:
                neighbour = borrows.enter_context(new_tail.value.borrow_mut()).value
                tail.prev = None
                if neighbour.next is not None:
                    neighbour.next.drop()
                neighbour.next = None
                self._tail = new_tail
            else:
                if self._head is not None:
                    self._head.drop()
                self._head = None
                self._tail = None
        self._size -= 1
        return old_tail

    def pop_front(self) -> T | None:
        """
        Remove and return the first element. O(1).

        Returns:
            The element, or None if the list is empty.

        Raises:
            BorrowMutError: If a guard on an affected node is still alive. The
                list is left unchanged.
            OwnershipError: If the detached node still has another owner. The
                node is already unlinked at that point, so the list no longer
                holds it and its element is not returned.
        """
        old_head = self._unlink_front()
        if old_head is None:
            return None
        return _into_elem(old_head)

    def pop_back(self) -> T | None:
        """
        Remove and return the last element. O(1).

        Returns:
            The element, or None if the list is empty.

        Raises:
            BorrowMutError: If a guard on an affected node is still alive. The
                list is left unchanged.
            OwnershipError: If the detached node still has another owner. The
                node is already unlinked at that point, so the list no longer
                holds it and its element is not returned.
        """
        old_tail = self._unlink_back()
        if old_tail is None:
            return None
        return _into_elem(old_tail)

    def peek_front(self) -> "Ref[T] | None":
        """Return a read guard over the first element, or None if empty."""
        if self._head is None:
            return None
        return self._head.value.borrow(owner=self._head).map("elem")

    def peek_back(self) -> "Ref[T] | None":
        """Return a read guard over the last element, or None if empty."""
        if self._tail is None:
            return None
        return self._tail.value.borrow(owner=self._tail).map("elem")

    def peek_front_mut(self) -> "RefMut[T] | None":
        """
        Return a write guard over the first element, or None if empty.

        Raises:
            BorrowMutError: If another guard on the head node is still alive.
        """
        if self._head is None:
            return None
        return self._head.value.borrow_mut(owner=self._head).map("elem")

    def peek_back_mut(self) -> "RefMut[T] | None":
        """
        Return a write guard over the last element, or None if empty.

        Raises:
            BorrowMutError: If another guard on the tail node is still alive.
        """
        if self._tail is None:
            return None
        return self._tail.value.borrow_mut(owner=self._tail).map("elem")

    def into_iter(self) -> "IntoIter[T]":
        """Move every element into a consuming cursor, leaving this list empty."""
        taken: SharedList[T] = SharedList()
        taken._head, taken._tail, taken._size = self._head, self._tail, self._size
        self._head = None
        self._tail = None
        self._size = 0
        return IntoIter(taken)

    def is_empty(self) -> bool:
        return self._head is None

    def clear(self) -> None:
        """Release every node, one front pop at a time."""
        count = self._size
        while self._head is not None:
            _into_elem(self._unlink_front())  # type: ignore[arg-type]
        if count:
            log.debug("Released %d elements from %s", count, type(self).__name__)

    def __enter__(self) -> "SharedList[T]":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, *args: object) -> None:
        if exc_type is None:
            self.clear()
            return
        # Keep the exception raised in the with body; a guard may still pin a node
        try:
            self.clear()
        except BorrowListError as exc:
            log.warning("Teardown after %s left %d elements: %s", exc_type.__name__, self._size, exc)

    def __del__(self) -> None:
        self.clear()

    def __len__(self) -> int:
        """Return the number of elements in the list."""
        return self._size

    def __bool__(self) -> bool:
        """Return True if the list is non-empty."""
        return self._size > 0


class IntoIter(Generic[T]):
    """
    Consuming cursor over a list it owns.

    Advancing forward pops from the front, advancing backward pops from the
    back. Once the ends meet both directions report exhaustion.
    """

    __slots__ = ("_list",)

    def __init__(self, owned: SharedList[T]) -> None:
        self._list = owned

    def next_front(self) -> T | None:
        """Return the next element from the front, or None when exhausted."""
        return self._list.pop_front()

    def next_back(self) -> T | None:
        """Return the next element from the back, or None when exhausted."""
        return self._list.pop_back()

    def __iter__(self) -> "IntoIter[T]":
        return self

    def __next__(self) -> T:
        old_head = self._list._unlink_front()
        if old_head is None:
            raise StopIteration
        return _into_elem(old_head)

    def __len__(self) -> int:
        return len(self._list)
