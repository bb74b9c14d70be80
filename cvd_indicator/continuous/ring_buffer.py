"""
Ring Buffer - Fixed-size circular buffer for the live retention window.

Keeps the N most recently pushed items with O(1) push and O(1) access.
"""

from typing import Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """
    Fixed-size circular buffer with O(1) operations.

    When full, pushing evicts the oldest item and hands it back so the
    owner can release anything keyed on it.

    Example:
        buf = RingBuffer[Bucket](maxlen=60)
        evicted = buf.push(bucket)  # None until the buffer is full
        latest = buf[-1]
        all_data = buf.to_list()  # oldest first
    """

    __slots__ = ("_buffer", "_maxlen", "_head", "_size")

    def __init__(self, maxlen: int):
        """
        Initialize ring buffer.

        Args:
            maxlen: Maximum number of elements (must be > 0)
        """
        if maxlen <= 0:
            raise ValueError("maxlen must be positive")
        self._buffer: List[Optional[T]] = [None] * maxlen
        self._maxlen = maxlen
        self._head = 0  # Next write position
        self._size = 0

    def push(self, item: T) -> Optional[T]:
        """
        Append item. O(1).

        Returns:
            The evicted oldest item if the buffer was full, else None
        """
        evicted: Optional[T] = None
        if self._size == self._maxlen:
            evicted = self._buffer[self._head]

        self._buffer[self._head] = item
        self._head = (self._head + 1) % self._maxlen
        if self._size < self._maxlen:
            self._size += 1
        return evicted

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __getitem__(self, index: int) -> T:
        """
        Get item by index. Supports negative indexing.

        buf[0] = oldest item
        buf[-1] = newest item
        """
        if self._size == 0:
            raise IndexError("buffer is empty")

        if index < 0:
            index = self._size + index

        if index < 0 or index >= self._size:
            raise IndexError(f"index {index} out of range for size {self._size}")

        start = (self._head - self._size) % self._maxlen
        item = self._buffer[(start + index) % self._maxlen]
        if item is None:
            raise IndexError("unexpected None in buffer")
        return item

    def __iter__(self) -> Iterator[T]:
        """Iterate from oldest to newest."""
        for i in range(self._size):
            yield self[i]

    @property
    def maxlen(self) -> int:
        return self._maxlen

    @property
    def is_full(self) -> bool:
        return self._size == self._maxlen

    def clear(self) -> None:
        self._buffer = [None] * self._maxlen
        self._head = 0
        self._size = 0

    def to_list(self) -> List[T]:
        """Convert to list (oldest first)."""
        return list(self)

    def newest(self) -> Optional[T]:
        return self[-1] if self._size > 0 else None

    def oldest(self) -> Optional[T]:
        return self[0] if self._size > 0 else None
