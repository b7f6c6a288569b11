"""
Boundary value map received from the coordinator
"""

from typing import Dict, Iterator, Tuple

import numpy as np

from .node_index_map import NodeIndexMap


class BoundaryValueMap:
	"""
	DOF id -> value for the interface DOFs.

	Values live in one array indexed by interface position, so the DOF ids and
	the values can never drift out of step. The array is allocated once and
	overwritten in place by every read.
	"""

	def __init__(self, index_map: NodeIndexMap, components: int = 1):
		self._index_map = index_map
		self.components = int(components)
		shape = (index_map.size(),) if self.components == 1 else (index_map.size(), self.components)
		self._values = np.zeros(shape, dtype=np.float64)

	@property
	def dofs(self) -> np.ndarray:
		return self._index_map.dofs

	@property
	def values(self) -> np.ndarray:
		"""Live value buffer, aligned with `dofs`"""
		return self._values

	def __len__(self) -> int:
		return self._index_map.size()

	def __contains__(self, dof: object) -> bool:
		return dof in self._index_map

	def __getitem__(self, dof: int):
		value = self._values[self._index_map.position_of(int(dof))]
		return float(value) if self.components == 1 else value.copy()

	def __iter__(self) -> Iterator[int]:
		return (int(d) for d in self.dofs)

	def items(self) -> Iterator[Tuple[int, float]]:
		for i, dof in enumerate(self.dofs):
			yield int(dof), (float(self._values[i]) if self.components == 1 else self._values[i].copy())

	def as_dict(self) -> Dict[int, float]:
		return dict(self.items())
