"""
Edge Priority Queue
===================

Binary min-heap of edge handles ordered by collapse error. Keys live
outside the heap (on the edges themselves) and may change at any time;
``fix`` restores the heap order for the handles whose keys changed. A
handle -> slot map locates entries without scanning.
"""

from typing import Callable, Dict, Iterable, List


class EdgeHeap:
    """
    Indexed min-heap over integer handles.

    Args:
        key: Returns the current priority of a handle. Ties are broken by
            the handle itself so pop order is deterministic.
    """

    def __init__(self, key: Callable[[int], float]):
        self._key = key
        self._heap: List[int] = []
        self._position: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, handle: int) -> bool:
        return handle in self._position

    def _less(self, i: int, j: int) -> bool:
        hi, hj = self._heap[i], self._heap[j]
        ki, kj = self._key(hi), self._key(hj)
        return ki < kj or (ki == kj and hi < hj)

    def _swap(self, i: int, j: int):
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._position[heap[i]] = i
        self._position[heap[j]] = j

    def _sift_up(self, i: int) -> bool:
        moved = False
        while i > 0:
            parent = (i - 1) // 2
            if not self._less(i, parent):
                break
            self._swap(i, parent)
            i = parent
            moved = True
        return moved

    def _sift_down(self, i: int):
        n = len(self._heap)
        while True:
            left = 2 * i + 1
            if left >= n:
                break
            smallest = left
            right = left + 1
            if right < n and self._less(right, left):
                smallest = right
            if not self._less(smallest, i):
                break
            self._swap(i, smallest)
            i = smallest

    def heapify(self, handles: Iterable[int]):
        """Replace the contents with ``handles`` and build the heap in O(n)."""
        self._heap = list(handles)
        self._position = {h: i for i, h in enumerate(self._heap)}
        if len(self._position) != len(self._heap):
            raise ValueError("Duplicate handles in heap")
        for i in reversed(range(len(self._heap) // 2)):
            self._sift_down(i)

    def push(self, handle: int):
        if handle in self._position:
            raise ValueError(f"Handle {handle} is already queued")
        self._heap.append(handle)
        self._position[handle] = len(self._heap) - 1
        self._sift_up(len(self._heap) - 1)

    def peek(self) -> int:
        if not self._heap:
            raise IndexError("peek from an empty heap")
        return self._heap[0]

    def pop(self) -> int:
        """Remove and return the handle with the lowest key."""
        if not self._heap:
            raise IndexError("pop from an empty heap")
        last = len(self._heap) - 1
        self._swap(0, last)
        handle = self._heap.pop()
        del self._position[handle]
        if self._heap:
            self._sift_down(0)
        return handle

    def fix(self, *handles: int):
        """
        Restore heap order after the keys of ``handles`` changed.

        Any number of keys may have changed since the heap was last in
        order. A single handle is sifted in place; for several, every slot
        on the path from a changed slot to the root is sifted down, deepest
        first, which is a heapify restricted to the subtrees that can be out
        of order.

        Raises:
            KeyError: if a handle is not queued
        """
        if len(handles) == 1:
            i = self._position[handles[0]]
            if not self._sift_up(i):
                self._sift_down(i)
            return

        dirty = set()
        for h in handles:
            i = self._position[h]
            while i not in dirty:
                dirty.add(i)
                if i == 0:
                    break
                i = (i - 1) // 2
        for i in sorted(dirty, reverse=True):
            self._sift_down(i)

    def update(self, handles: Iterable[int]) -> int:
        """
        Fix every handle that is still queued, ignoring the others.

        Returns:
            Number of queued handles that were re-keyed
        """
        queued = [h for h in handles if h in self._position]
        self.fix(*queued)
        return len(queued)

    def is_valid(self) -> bool:
        """Whether every slot orders after its parent."""
        return all(not self._less(i, (i - 1) // 2) for i in range(1, len(self._heap)))
