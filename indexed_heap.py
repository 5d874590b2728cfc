"""
Binary min-heap with a handle table for decrease-key addressed by cell id.

The Ordered Upwind loop needs three operations on the Considered set:
extract the smallest tentative value, lower the value of a given cell,
and test whether a cell is present. heapq offers none of the last two,
so the heap is kept explicitly together with a dict mapping each cell id
to its current slot in the heap array.

Entries are ordered by (value, cell) so that ties are broken
deterministically by the smaller cell id.
"""

from typing import Dict, List, Tuple


class IndexedMinHeap:
    """
    Min-heap over (value, cell) pairs with O(log n) push, pop and decrease_key.

    Every cell may be present at most once. After any public method returns,
    len(self) == self.n_handles and the handle of every cell points at the
    slot holding its entry.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int]] = []
        self._slot: Dict[int, int] = {}

    def __len__(self):
        return len(self._heap)

    def __bool__(self):
        return bool(self._heap)

    def __contains__(self, cell):
        return cell in self._slot

    def __iter__(self):
        """Iterate over (value, cell) pairs in heap-array order (not sorted)."""
        return iter(list(self._heap))

    @property
    def n_handles(self):
        return len(self._slot)

    def clear(self):
        self._heap.clear()
        self._slot.clear()

    def key_of(self, cell):
        """Return the current value stored for ``cell`` (KeyError if absent)."""
        return self._heap[self._slot[cell]][0]

    def push(self, cell, value):
        """
        Insert a new cell.

        Parameters:
        -----------
        cell : int
            Cell id, must not already be in the heap
        value : float
            Tentative value
        """
        if cell in self._slot:
            raise ValueError(f"Cell {cell} is already in the heap")
        self._heap.append((float(value), int(cell)))
        self._slot[int(cell)] = len(self._heap) - 1
        self._sift_up(len(self._heap) - 1)

    def top(self):
        """Return the (value, cell) pair with the smallest value."""
        if not self._heap:
            raise IndexError("top from an empty heap")
        return self._heap[0]

    def pop(self):
        """Remove and return the smallest (value, cell) pair. Its handle goes with it."""
        if not self._heap:
            raise IndexError("pop from an empty heap")
        entry = self._heap[0]
        last = self._heap.pop()
        del self._slot[entry[1]]
        if self._heap:
            self._heap[0] = last
            self._slot[last[1]] = 0
            self._sift_down(0)
        return entry

    def decrease_key(self, cell, value):
        """
        Lower the value of a cell already in the heap.

        Raises KeyError if the cell has no handle (never pushed, or already
        popped) and ValueError if the new value is larger than the current one.
        """
        slot = self._slot[cell]
        old_value = self._heap[slot][0]
        if value > old_value:
            raise ValueError(f"decrease_key would increase cell {cell}: {old_value} -> {value}")
        self._heap[slot] = (float(value), int(cell))
        self._sift_up(slot)

    # Internal heap maintenance

    def _swap(self, i, j):
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._slot[heap[i][1]] = i
        self._slot[heap[j][1]] = j

    def _sift_up(self, pos):
        heap = self._heap
        while pos > 0:
            parent = (pos - 1) >> 1
            if heap[pos] < heap[parent]:
                self._swap(pos, parent)
                pos = parent
            else:
                break

    def _sift_down(self, pos):
        heap = self._heap
        n = len(heap)
        while True:
            left = 2 * pos + 1
            if left >= n:
                break
            smallest = left
            right = left + 1
            if right < n and heap[right] < heap[left]:
                smallest = right
            if heap[smallest] < heap[pos]:
                self._swap(pos, smallest)
                pos = smallest
            else:
                break
