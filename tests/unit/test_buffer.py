"""Unit tests for the ordered task buffer."""

from rlqueue.queue.buffer import TaskBuffer


class TestTaskBuffer:
    """Test TaskBuffer FIFO behavior."""

    def test_new_buffer_is_empty(self):
        """Test a new buffer has no items."""
        buffer = TaskBuffer()
        assert buffer.size == 0
        assert len(buffer) == 0
        assert not buffer

    def test_pop_empty_returns_none(self):
        """Test pop on an empty buffer signals empty."""
        buffer = TaskBuffer()
        assert buffer.pop() is None
        assert buffer.size == 0

    def test_fifo_order(self):
        """Test items come out in insertion order."""
        buffer = TaskBuffer()
        for i in range(5):
            buffer.push(i)
        assert [buffer.pop() for _ in range(5)] == [0, 1, 2, 3, 4]
        assert buffer.pop() is None

    def test_size_tracks_push_and_pop(self):
        """Test size is accurate after each operation."""
        buffer = TaskBuffer()
        buffer.push("a")
        assert buffer.size == 1
        buffer.push("b")
        assert buffer.size == 2
        buffer.pop()
        assert buffer.size == 1
        buffer.pop()
        assert buffer.size == 0

    def test_reuse_after_drain(self):
        """Test the buffer works again after being emptied."""
        buffer = TaskBuffer()
        buffer.push(1)
        buffer.pop()
        buffer.push(2)
        buffer.push(3)
        assert buffer.pop() == 2
        assert buffer.pop() == 3

    def test_falsy_values_are_stored(self):
        """Test falsy items still count toward size."""
        buffer = TaskBuffer()
        buffer.push(0)
        assert buffer
        assert buffer.pop() == 0
        assert not buffer

