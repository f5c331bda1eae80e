#tests/test_buffers.py

import pytest

from nads.buffers import BoundedBuffer


def test_newest_first_and_capped():
    buf = BoundedBuffer(capacity=50)
    for i in range(1, 61):
        buf.push(i)
        assert len(buf) == min(i, 50)
        assert buf.newest() == i
    items = buf.items()
    assert items[0] == 60
    assert items[-1] == 11


def test_items_is_a_copy():
    buf = BoundedBuffer(capacity=3)
    buf.push("a")
    snapshot = buf.items()
    snapshot.append("b")
    assert buf.items() == ["a"]


def test_empty_buffer():
    buf = BoundedBuffer(capacity=2)
    assert len(buf) == 0
    assert buf.newest() is None
    assert list(buf) == []


@pytest.mark.parametrize("capacity", [0, -1, 2.5])
def test_rejects_bad_capacity(capacity):
    with pytest.raises(ValueError):
        BoundedBuffer(capacity=capacity)
