"""Basic usage example for borrowlist."""

import logging

from borrowlist import BorrowMutError, SharedList, Stack


def main() -> None:
    """Demonstrate list, guard and cursor operations."""
    logging.basicConfig(level=logging.DEBUG)

    print("=== Shared List ===\n")
    tasks = SharedList[str]()
    tasks.push_back("send_email")
    tasks.push_back("process_data")
    tasks.push_front("urgent_fix")
    print(f"Size: {len(tasks)}")

    with tasks.peek_front() as front:
        print(f"Front: {front.value}")

    # Rename the last task in place
    with tasks.peek_back_mut() as back:
        back.value = "generate_report"

    # A live guard blocks any operation that would write its node
    guard = tasks.peek_front()
    try:
        tasks.pop_front()
    except BorrowMutError as exc:
        print(f"Pop refused while peeking: {exc}")
    finally:
        guard.release()

    print(f"Popped from front: {tasks.pop_front()}\n")

    print("=== Consuming Cursor ===\n")
    cursor = tasks.into_iter()
    print(f"Back: {cursor.next_back()}")
    print(f"Front: {cursor.next_front()}")
    print(f"Exhausted: {cursor.next_front() is None and cursor.next_back() is None}\n")

    print("=== Stack ===\n")
    stack = Stack(range(3))
    print(f"Drained: {list(stack.into_iter())}")


if __name__ == "__main__":
    main()
