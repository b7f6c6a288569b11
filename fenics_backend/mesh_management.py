"""
Mesh creation and boundary tagging
"""

import logging
import numpy as np
from typing import Tuple
from mpi4py import MPI
from dolfinx import mesh as dmesh

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARY_ID = 0


def create_square_mesh(refinements: int, comm=MPI.COMM_SELF, lower: float = -1.0, upper: float = 1.0):
	"""
	Quadrilateral mesh of [lower, upper]^2 equivalent to a hypercube refined
	`refinements` times (2**refinements cells per direction).
	"""
	n = 2 ** int(refinements)
	domain = dmesh.create_rectangle(
		comm,
		[np.array([lower, lower]), np.array([upper, upper])],
		[n, n],
		cell_type=dmesh.CellType.quadrilateral,
	)
	tdim = domain.topology.dim
	logger.info(f"Number of active cells: {domain.topology.index_map(tdim).size_global}")
	return domain


def tag_interface_boundary(domain, interface_id: int, interface_x: float = 1.0, default_id: int = DEFAULT_BOUNDARY_ID):
	"""
	Tag all exterior facets: those on the plane x = interface_x get
	`interface_id`, the rest `default_id`.

	Returns: facet MeshTags
	"""
	if interface_id == default_id:
		raise ValueError(f"Interface boundary id {interface_id} collides with the default boundary id")
	tdim = domain.topology.dim
	fdim = tdim - 1
	domain.topology.create_connectivity(fdim, tdim)

	boundary_facets = dmesh.locate_entities_boundary(domain, fdim, lambda x: np.full(x.shape[1], True))
	interface_facets = dmesh.locate_entities_boundary(domain, fdim, lambda x: np.isclose(x[0], interface_x))
	values = np.where(np.isin(boundary_facets, interface_facets), interface_id, default_id).astype(np.int32)

	order = np.argsort(boundary_facets)
	facet_tags = dmesh.meshtags(domain, fdim, boundary_facets[order].astype(np.int32), values[order])
	logger.debug(f"Tagged {interface_facets.size} interface facets (id {interface_id}) of {boundary_facets.size} boundary facets")
	return facet_tags


def build_mesh(settings, comm=MPI.COMM_SELF) -> Tuple[object, object]:
	"""Mesh + facet tags from the solver settings."""
	domain = create_square_mesh(int(settings.get("refinements", 4)), comm)
	facet_tags = tag_interface_boundary(domain, int(settings.get("interface_boundary_id", 1)))
	return domain, facet_tags
