"""
Interface node bookkeeping

The coordinator correlates data purely by array position. NodeIndexMap fixes
that position once: boundary DOFs in ascending id order, paired index for
index with the coordinate array passed at registration and the node ids the
coordinator returned for it. Every later read/write reuses the same order.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Union

import numpy as np

from .errors import ConfigurationError, IndexRangeError, ProtocolViolation

logger = logging.getLogger(__name__)

Coordinates = Union[Mapping[int, Iterable[float]], np.ndarray]


class NodeIndexMap:
	"""Stable bijection between boundary DOF ids and coordinator node positions"""

	def __init__(self, boundary_dofs: Iterable[int], dof_coordinates: Coordinates, dim: int):
		if dim < 1:
			raise ConfigurationError(f"Spatial dimension must be positive, got {dim}")
		dofs = np.unique(np.asarray(list(boundary_dofs), dtype=np.int64))
		if dofs.size and dofs[0] < 0:
			raise IndexRangeError(f"Negative DOF id {dofs[0]} in boundary set")
		dofs.setflags(write=False)

		self.dim = int(dim)
		self._dofs = dofs
		self._coordinates = self._gather_coordinates(dofs, dof_coordinates, self.dim)
		self._coordinates.setflags(write=False)
		self._node_ids: Optional[np.ndarray] = None
		logger.debug(f"NodeIndexMap built: {dofs.size} interface nodes, dim={self.dim}")

	@staticmethod
	def _gather_coordinates(dofs: np.ndarray, dof_coordinates: Coordinates, dim: int) -> np.ndarray:
		"""Flatten per-DOF coordinates to [x0, y0, (z0,) x1, y1, ...] in DOF order"""
		flat = np.empty(dofs.size * dim, dtype=np.float64)
		if isinstance(dof_coordinates, Mapping):
			for i, dof in enumerate(dofs):
				try:
					point = np.asarray(dof_coordinates[int(dof)], dtype=np.float64).ravel()
				except KeyError:
					raise ConfigurationError(f"No coordinates for boundary DOF {dof}") from None
				if point.size < dim:
					raise ConfigurationError(f"Coordinates of DOF {dof} have {point.size} components, expected {dim}")
				flat[i * dim:(i + 1) * dim] = point[:dim]
			return flat

		table = np.asarray(dof_coordinates, dtype=np.float64)
		if table.ndim == 1:
			table = table.reshape(-1, 1)
		if table.shape[1] < dim:
			raise ConfigurationError(f"Coordinate table has {table.shape[1]} columns, expected at least {dim}")
		if dofs.size and dofs[-1] >= table.shape[0]:
			raise IndexRangeError(f"Boundary DOF {dofs[-1]} outside coordinate table of {table.shape[0]} rows")
		flat[:] = table[dofs, :dim].ravel()
		return flat

	# -------------------- registration --------------------

	def coordinate_array(self) -> np.ndarray:
		"""Flat, read-only coordinate array to pass to the coordinator"""
		return self._coordinates

	def bind_node_ids(self, node_ids: Any) -> None:
		"""Store the coordinator's node ids, aligned with the DOF sequence"""
		if self._node_ids is not None:
			raise ConfigurationError("Node ids are already bound; the interface mesh is registered once")
		ids = np.array(node_ids, dtype=np.int64).ravel()
		if ids.size != self._dofs.size:
			raise IndexRangeError(f"Coordinator returned {ids.size} node ids for {self._dofs.size} interface nodes")
		ids.setflags(write=False)
		self._node_ids = ids

	@property
	def is_bound(self) -> bool:
		return self._node_ids is not None

	# -------------------- lookup --------------------

	def size(self) -> int:
		return int(self._dofs.size)

	def __len__(self) -> int:
		return self.size()

	def _check_position(self, i: int) -> int:
		if not 0 <= i < self._dofs.size:
			raise IndexRangeError(f"Interface position {i} outside [0, {self._dofs.size})")
		return i

	def dof_at(self, i: int) -> int:
		return int(self._dofs[self._check_position(i)])

	def node_id_at(self, i: int) -> int:
		return int(self.node_ids[self._check_position(i)])

	def position_of(self, dof: int) -> int:
		"""Inverse lookup: interface position of a boundary DOF"""
		pos = int(np.searchsorted(self._dofs, dof))
		if pos >= self._dofs.size or self._dofs[pos] != dof:
			raise KeyError(dof)
		return pos

	def __contains__(self, dof: object) -> bool:
		if isinstance(dof, bool) or not isinstance(dof, (int, np.integer)):
			return False
		try:
			self.position_of(int(dof))
		except KeyError:
			return False
		return True

	@property
	def dofs(self) -> np.ndarray:
		return self._dofs

	@property
	def node_ids(self) -> np.ndarray:
		if self._node_ids is None:
			raise ProtocolViolation("Interface mesh not registered yet; node ids are unknown")
		return self._node_ids
