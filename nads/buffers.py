from collections import deque
from typing import Deque, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class BoundedBuffer(Generic[T]):
    """Newest-first buffer that drops the oldest entries past ``capacity``"""

    def __init__(self, capacity: int = 50):
        if not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)

    def push(self, item: T) -> None:
        # appendleft on a full deque evicts from the right (oldest) end
        self._items.appendleft(item)

    def items(self) -> List[T]:
        """Copy of the contents, newest first"""
        return list(self._items)

    def newest(self) -> Optional[T]:
        return self._items[0] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))
