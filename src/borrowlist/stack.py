"""Singly-linked stack with exclusively owned nodes."""

from typing import Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")


class _Node(Generic[T]):
    __slots__ = ("elem", "next")

    def __init__(self, elem: T, next: "_Node[T] | None") -> None:
        self.elem = elem
        self.next = next


def _drain(link: "_Node[T] | None") -> Iterator[T]:
    # Unlink each node as it is yielded so the chain never outlives the drain
    while link is not None:
        following = link.next
        link.next = None
        yield link.elem
        link = following


class Stack(Generic[T]):
    """
    LIFO stack built from a chain of nodes.

    Each node is owned by exactly one predecessor (or by the stack itself for
    the top node), so no reference counting or borrow tracking is needed.
    """

    def __init__(self, iterable: Iterable[T] | None = None) -> None:
        """
        Initialize the stack.

        Args:
            iterable: Optional items to push, in order. The last one ends on top.
        """
        self._head: _Node[T] | None = None
        self._size = 0
        if iterable is not None:
            for elem in iterable:
                self.push(elem)

    def push(self, elem: T) -> None:
        """Push an element on top of the stack. O(1)."""
        self._head = _Node(elem, self._head)
        self._size += 1

    def pop(self) -> T | None:
        """Remove and return the top element, or None if the stack is empty. O(1)."""
        node = self._head
        if node is None:
            return None
        self._head = node.next
        node.next = None
        self._size -= 1
        return node.elem

    def peek(self) -> T | None:
        """Return the top element without removing it, or None if empty."""
        return self._head.elem if self._head is not None else None

    def into_iter(self) -> Iterator[T]:
        """Move every element into an iterator, top first, leaving the stack empty."""
        chain = self._head
        self._head = None
        self._size = 0
        return _drain(chain)

    def clear(self) -> None:
        """Unlink every node one at a time so teardown never recurses."""
        link = self._head
        self._head = None
        self._size = 0
        while link is not None:
            following = link.next
            link.next = None
            link = following

    def __del__(self) -> None:
        self.clear()

    def __len__(self) -> int:
        """Return the number of elements on the stack."""
        return self._size

    def __bool__(self) -> bool:
        """Return True if the stack is non-empty."""
        return self._size > 0
