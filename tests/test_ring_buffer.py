"""
Tests for the bounded retention window.
"""

import pytest

from cvd_indicator.continuous.ring_buffer import RingBuffer


class TestRingBuffer:
    """Tests for RingBuffer"""

    def test_push_until_full_evicts_nothing(self):
        buf = RingBuffer[int](3)
        assert [buf.push(i) for i in range(3)] == [None, None, None]
        assert buf.is_full
        assert buf.to_list() == [0, 1, 2]

    def test_push_past_capacity_returns_evicted(self):
        """Each push beyond capacity hands back the oldest item"""
        buf = RingBuffer[int](3)
        evicted = [buf.push(i) for i in range(7)]

        assert evicted == [None, None, None, 0, 1, 2, 3]
        assert buf.to_list() == [4, 5, 6]

    @pytest.mark.parametrize("capacity, extra", [(1, 1), (5, 3), (60, 61)])
    def test_keeps_most_recent_in_order(self, capacity, extra):
        """After N+k pushes exactly the last N remain, oldest first"""
        buf = RingBuffer[int](capacity)
        total = capacity + extra
        for i in range(total):
            buf.push(i)

        assert len(buf) == capacity
        assert buf.to_list() == list(range(total - capacity, total))

    def test_indexing(self):
        buf = RingBuffer[str](2)
        for item in "abc":
            buf.push(item)

        assert buf[0] == "b"
        assert buf[-1] == "c"
        assert buf.oldest() == "b"
        assert buf.newest() == "c"
        with pytest.raises(IndexError):
            buf[2]

    def test_empty(self):
        buf = RingBuffer[int](2)
        assert not buf
        assert buf.newest() is None
        assert buf.oldest() is None
        with pytest.raises(IndexError):
            buf[0]

    def test_clear(self):
        buf = RingBuffer[int](2)
        buf.push(1)
        buf.push(2)
        buf.clear()
        assert len(buf) == 0
        assert buf.push(3) is None

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RingBuffer[int](0)
