"""Tests for reference-counted handles and borrow-checked cells."""

import pytest

from borrowlist import (
    BorrowError,
    BorrowMutError,
    OwnershipError,
    Rc,
    RefCell,
    ReleasedError,
)
from borrowlist.cell import _Guard


def test_rc_creation() -> None:
    """Test a new handle is the sole owner."""
    handle = Rc("value")
    assert handle.value == "value"
    assert handle.strong_count == 1
    assert not handle.dropped


def test_rc_clone_and_drop() -> None:
    """Test cloning and dropping adjust the shared count."""
    first = Rc([1, 2])
    second = first.clone()
    assert first.ptr_eq(second)
    assert first.strong_count == 2
    assert second.value is first.value

    second.drop()
    assert second.dropped
    assert first.strong_count == 1

    # Dropping twice is a no-op
    second.drop()
    assert first.strong_count == 1


def test_rc_use_after_drop() -> None:
    """Test a dropped handle refuses access."""
    handle = Rc(1)
    handle.drop()
    with pytest.raises(ReleasedError):
        _ = handle.value
    with pytest.raises(ReleasedError):
        handle.clone()


def test_rc_ptr_eq_distinct() -> None:
    """Test separate allocations are not pointer-equal."""
    assert not Rc(1).ptr_eq(Rc(1))


def test_rc_try_unwrap_sole_owner() -> None:
    """Test unwrapping the only handle returns the value."""
    handle = Rc("payload")
    assert handle.try_unwrap() == "payload"
    assert handle.dropped


def test_rc_try_unwrap_shared() -> None:
    """Test unwrapping fails while another owner exists."""
    handle = Rc("payload")
    other = handle.clone()

    with pytest.raises(OwnershipError):
        handle.try_unwrap()

    # Handle is untouched after the failure
    assert handle.strong_count == 2
    other.drop()
    assert handle.try_unwrap() == "payload"


def test_refcell_initial_state() -> None:
    """Test a new cell is unborrowed."""
    cell = RefCell(5)
    assert cell.state == "unused"
    assert cell.into_inner() == 5


def test_multiple_readers() -> None:
    """Test any number of shared borrows may coexist."""
    cell = RefCell(5)
    first = cell.borrow()
    second = cell.borrow()
    assert cell.state == "reading"
    assert first.value == 5
    assert second.value == 5

    first.release()
    assert cell.state == "reading"
    second.release()
    assert cell.state == "unused"


def test_write_then_read() -> None:
    """Test a write guard updates the value seen by later readers."""
    cell = RefCell(5)
    with cell.borrow_mut() as guard:
        assert cell.state == "writing"
        guard.value = 6
    assert cell.state == "unused"
    with cell.borrow() as guard:
        assert guard.value == 6


def test_exclusive_borrow_conflicts_with_reader() -> None:
    """Test an exclusive borrow fails while a reader is active."""
    cell = RefCell(5)
    reader = cell.borrow()
    with pytest.raises(BorrowMutError):
        cell.borrow_mut()
    assert cell.try_borrow_mut() is None
    reader.release()
    assert cell.try_borrow_mut() is not None


def test_exclusive_borrow_conflicts_with_writer() -> None:
    """Test two exclusive borrows cannot coexist."""
    cell = RefCell(5)
    writer = cell.borrow_mut()
    with pytest.raises(BorrowMutError):
        cell.borrow_mut()
    writer.release()


def test_shared_borrow_conflicts_with_writer() -> None:
    """Test readers are refused while a writer is active."""
    cell = RefCell(5)
    writer = cell.borrow_mut()
    with pytest.raises(BorrowError):
        cell.borrow()
    assert cell.try_borrow() is None
    writer.release()
    assert cell.borrow().value == 5


def test_into_inner_while_borrowed() -> None:
    """Test the value cannot be taken out while a guard is alive."""
    cell = RefCell("x")
    guard = cell.borrow()
    with pytest.raises(BorrowMutError):
        cell.into_inner()
    guard.release()
    assert cell.into_inner() == "x"


def test_guard_released_on_exception() -> None:
    """Test leaving a with block through an exception releases the claim."""
    cell = RefCell(1)
    with pytest.raises(ValueError):
        with cell.borrow_mut():
            raise ValueError("boom")
    assert cell.state == "unused"


def test_guard_released_when_collected() -> None:
    """Test a temporary guard releases its claim once unreferenced."""
    cell = RefCell(1)
    value = cell.borrow_mut().value
    assert value == 1
    assert cell.state == "unused"


def test_guard_use_after_release() -> None:
    """Test a released guard refuses access."""
    cell = RefCell(1)
    guard = cell.borrow_mut()
    guard.release()
    guard.release()  # idempotent
    assert not guard.active
    with pytest.raises(ReleasedError):
        _ = guard.value
    with pytest.raises(ReleasedError):
        guard.value = 2
    assert cell.state == "unused"


def test_guard_holds_owner() -> None:
    """Test a guard derived with an owner keeps the allocation alive."""
    handle = Rc(RefCell("elem"))
    guard = handle.value.borrow(owner=handle)
    assert handle.strong_count == 2

    with pytest.raises(OwnershipError):
        handle.try_unwrap()

    guard.release()
    assert handle.strong_count == 1


def test_failed_borrow_does_not_clone_owner() -> None:
    """Test a refused borrow leaves the strong count unchanged."""
    handle = Rc(RefCell(0))
    writer = handle.value.borrow_mut()
    with pytest.raises(BorrowError):
        handle.value.borrow(owner=handle)
    assert handle.strong_count == 1
    writer.release()


class _Record:
    def __init__(self, elem: int) -> None:
        self.elem = elem


def test_map_projects_attribute() -> None:
    """Test mapping a guard onto an attribute keeps a single claim."""
    cell = RefCell(_Record(3))
    guard = cell.borrow_mut()
    mapped = guard.map("elem")

    assert not guard.active
    assert cell.state == "writing"
    assert mapped.value == 3

    mapped.value = 4
    mapped.release()
    assert cell.state == "unused"
    assert cell.into_inner().elem == 4


def test_map_moves_owner() -> None:
    """Test mapping transfers the owner clone instead of adding one."""
    handle = Rc(RefCell(_Record(1)))
    mapped = handle.value.borrow(owner=handle).map("elem")
    assert handle.strong_count == 2
    mapped.release()
    assert handle.strong_count == 1


def test_guard_base_is_abstract() -> None:
    """Test the guard base cannot be used without a release strategy."""
    cell = RefCell(1)
    with pytest.raises(TypeError):
        _Guard(cell, cell, "_value", None)  # type: ignore[abstract]
