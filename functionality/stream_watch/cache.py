from __future__ import annotations

"""Small bounded mapping with insertion-order eviction."""

from collections import OrderedDict
from typing import Generic, Iterator, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class BoundedCache(Generic[K, V]):
	"""Keeps at most `capacity` entries, dropping the oldest inserted first.

	Reads do not refresh an entry's position; re-inserting an existing key keeps
	its original slot.
	"""

	def __init__(self, capacity: int) -> None:
		if capacity <= 0:
			raise ValueError("capacity must be positive")
		self.capacity = capacity
		self._data: OrderedDict[K, V] = OrderedDict()

	def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
		return self._data.get(key, default)

	def put(self, key: K, value: V) -> V:
		self._data[key] = value
		while len(self._data) > self.capacity:
			self._data.popitem(last=False)
		return value

	def pop(self, key: K) -> Optional[V]:
		return self._data.pop(key, None)

	def clear(self) -> None:
		self._data.clear()

	def __contains__(self, key: object) -> bool:
		return key in self._data

	def __len__(self) -> int:
		return len(self._data)

	def __iter__(self) -> Iterator[K]:
		return iter(self._data)
