"""
Linked-list FIFO used to hold tasks waiting for a free slot.
"""
from typing import Any, Optional


class _Node:
    __slots__ = ("value", "next")

    def __init__(self, value: Any):
        self.value = value
        self.next: Optional["_Node"] = None


class TaskBuffer:
    """
    Strict FIFO with O(1) push and pop and a live size counter.

    Not synchronized; the owning scheduler serializes all access.
    """

    def __init__(self):
        self._head: Optional[_Node] = None
        self._tail: Optional[_Node] = None
        self._size = 0

    def push(self, item: Any) -> None:
        """Append an item to the tail."""
        node = _Node(item)
        if self._head is None:
            self._head = node
        else:
            self._tail.next = node
        self._tail = node
        self._size += 1

    def pop(self) -> Optional[Any]:
        """
        Remove and return the head item.

        Returns:
            The oldest item, or None if the buffer is empty
        """
        if self._head is None:
            return None

        node = self._head
        self._head = node.next
        if self._head is None:
            self._tail = None
        self._size -= 1
        return node.value

    @property
    def size(self) -> int:
        """Number of items currently buffered."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0
