"""
Solver settings helpers (PETSc options, function spaces)
"""

import logging
from typing import Dict, Any, Optional, Tuple
from mpi4py import MPI
import basix.ufl
from dolfinx import fem

logger = logging.getLogger(__name__)


def extract_fe_metadata(settings: Dict[str, Any], default_family: str = "Lagrange", default_degree: int = 1) -> Tuple[str, int]:
	"""Return (family, degree) for FE spaces with sane fallbacks."""
	family = (settings.get("family", default_family) or default_family).strip()
	try:
		degree = int(settings.get("degree", default_degree))
	except (TypeError, ValueError):
		degree = default_degree
	return family, degree


def ensure_single_process_comm(comm: Optional[MPI.Comm], context: str = "") -> None:
	"""Raise if communicator has more than one rank; the coupling mesh is not decomposed."""
	if comm is None or not hasattr(comm, "Get_size"):
		return
	size = comm.Get_size()
	if size > 1:
		label = f"{context} " if context else ""
		msg = f"{label}communicator has {size} processes but the coupled solver is single-process."
		logger.error(f"CRITICAL: {msg}")
		raise RuntimeError(msg)


def prepare_petsc_solver_options(settings: Dict[str, Any], default_prefix: str) -> Tuple[Dict[str, Any], str]:
	"""Build PETSc option dict + prefix from the solver settings."""
	prefix = str(settings.get("petsc_options_prefix", default_prefix))
	petsc_opts = {
		"ksp_type": settings.get("ksp_type", "cg"),
		"pc_type": settings.get("pc_type", "none"),
		"ksp_rtol": settings.get("ksp_rtol", 1e-12),
		"ksp_max_it": settings.get("ksp_max_it", 1000),
	}
	if "pc_factor_mat_solver_type" in settings:
		petsc_opts["pc_factor_mat_solver_type"] = settings["pc_factor_mat_solver_type"]
	logger.debug(f"PETSc options [{prefix}]: {petsc_opts}")
	return petsc_opts, prefix


def build_scalar_function_space(settings: Dict[str, Any], mesh):
	"""Build scalar function space from settings."""
	family, degree = extract_fe_metadata(settings)
	element = basix.ufl.element(family, mesh.basix_cell(), degree)
	return fem.functionspace(mesh, element)
