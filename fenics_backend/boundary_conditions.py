"""
Boundary condition application and preparation
"""

import logging
from typing import Callable, List, Optional

import numpy as np
from dolfinx import fem

logger = logging.getLogger(__name__)


def locate_tagged_dofs(V, facet_tags, tag: int) -> np.ndarray:
	"""DOFs on the facets carrying `tag`, ascending."""
	fdim = V.mesh.topology.dim - 1
	facets = facet_tags.find(tag)
	if facets.size == 0:
		logger.warning(f"No facets tagged {tag}; boundary is empty")
	dofs = fem.locate_dofs_topological(V, fdim, facets)
	return np.sort(np.asarray(dofs, dtype=np.int32))


def prescribed_value_bc(V, facet_tags, tag: int, value_function: Callable) -> fem.DirichletBC:
	"""Dirichlet BC interpolating `value_function` on the facets tagged `tag`."""
	dofs = locate_tagged_dofs(V, facet_tags, tag)
	u_bc = fem.Function(V)
	u_bc.interpolate(value_function)
	logger.debug(f"Dirichlet BC on tag {tag}: {dofs.size} DOFs")
	return fem.dirichletbc(u_bc, dofs)


class CouplingConstraint:
	"""
	Dirichlet BC fed from a BoundaryValueMap.

	The DOF set is fixed by the first map applied; later maps only update the
	values of the same DOFs.
	"""

	def __init__(self, V):
		self.V = V
		self._values = fem.Function(V)
		self._dofs: Optional[np.ndarray] = None
		self._bc: Optional[fem.DirichletBC] = None

	def update(self, boundary_map) -> fem.DirichletBC:
		dofs = np.asarray(boundary_map.dofs, dtype=np.int32)
		if self._dofs is None:
			self._dofs = dofs
			self._bc = fem.dirichletbc(self._values, self._dofs)
			logger.debug(f"Coupling constraint created on {dofs.size} DOFs")
		elif not np.array_equal(self._dofs, dofs):
			raise RuntimeError("Coupling boundary DOF set changed between steps")
		self._values.x.array[self._dofs] = boundary_map.values
		return self._bc

	@property
	def bcs(self) -> List[fem.DirichletBC]:
		return [self._bc] if self._bc is not None else []
