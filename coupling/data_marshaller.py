"""
Data marshalling between solver vectors and coordinator arrays

Solver side: full field vectors indexed by DOF id.
Coordinator side: flat arrays in interface position order, components
interleaved per node ([v0_x, v0_y, v1_x, v1_y, ...]) like the registration
coordinates.
"""

import logging
from typing import Any

import numpy as np

from .boundary_values import BoundaryValueMap
from .errors import IndexRangeError
from .node_index_map import NodeIndexMap

logger = logging.getLogger(__name__)


class DataMarshaller:
	"""Packs/unpacks field values using the fixed NodeIndexMap ordering"""

	def __init__(self, index_map: NodeIndexMap, components: int = 1):
		if components < 1:
			raise ValueError(f"components must be >= 1, got {components}")
		self.index_map = index_map
		self.components = int(components)
		self.flat_size = index_map.size() * self.components
		# Sized once; reused for every write of the run
		self._write_buffer = np.zeros(self.flat_size, dtype=np.float64)

	def _as_field(self, source: Any) -> np.ndarray:
		"""View the source as (n_dofs, components) without copying when possible"""
		field = np.asarray(source, dtype=np.float64)
		if self.components == 1:
			if field.ndim != 1:
				raise IndexRangeError(f"Scalar field must be one-dimensional, got shape {field.shape}")
			return field.reshape(-1, 1)
		if field.ndim == 1:
			if field.size % self.components:
				raise IndexRangeError(f"Blocked vector of length {field.size} is not a multiple of {self.components} components")
			return field.reshape(-1, self.components)
		if field.ndim != 2 or field.shape[1] != self.components:
			raise IndexRangeError(f"Vector field shape {field.shape} does not match {self.components} components")
		return field

	def to_external(self, source: Any) -> np.ndarray:
		"""
		Gather the interface values of `source` into the write buffer.

		Returns the internal buffer; its contents stay valid until the next call.
		"""
		field = self._as_field(source)
		dofs = self.index_map.dofs
		if dofs.size and dofs[-1] >= field.shape[0]:
			raise IndexRangeError(f"Interface DOF {dofs[-1]} outside source vector of {field.shape[0]} entries")
		self._write_buffer[:] = field[dofs].ravel()
		return self._write_buffer

	def _check_flat(self, flat: Any) -> np.ndarray:
		data = np.asarray(flat, dtype=np.float64).ravel()
		if data.size != self.flat_size:
			raise IndexRangeError(f"Received {data.size} values, interface expects {self.flat_size}")
		return data

	def from_external(self, flat: Any, boundary_map: BoundaryValueMap) -> BoundaryValueMap:
		"""Overwrite `boundary_map` in place with coordinator data (interface DOFs only)"""
		data = self._check_flat(flat)
		if boundary_map.values.size != self.flat_size:
			raise IndexRangeError(f"Boundary map holds {boundary_map.values.size} values, interface expects {self.flat_size}")
		boundary_map.values.reshape(-1)[:] = data
		return boundary_map

	def scatter(self, flat: Any, target: np.ndarray) -> np.ndarray:
		"""Write coordinator data into a full field vector at the interface DOFs"""
		data = self._check_flat(flat)
		field = target.reshape(-1, self.components) if self.components > 1 and target.ndim == 1 else target
		dofs = self.index_map.dofs
		if dofs.size and dofs[-1] >= field.shape[0]:
			raise IndexRangeError(f"Interface DOF {dofs[-1]} outside target vector of {field.shape[0]} entries")
		if self.components == 1:
			field[dofs] = data
		else:
			field[dofs, :] = data.reshape(-1, self.components)
		return target
