"""
Laplace solver core - the PDE side of the coupled run

Solves -div(grad u) = f on [-1, 1]^2 with u = |p|^2 on the outer boundary and
u = coupling data on the interface boundary (x = 1). Exposes the narrow
interface the coupling adapter consumes.
"""

import os
# Set before importing PETSc/DOLFINx to keep the solve single-threaded
os.environ.setdefault("OMP_NUM_THREADS", "1")

import logging
import numpy as np
from typing import Dict, Any, Optional
from mpi4py import MPI
from dolfinx import fem
from dolfinx.fem.petsc import LinearProblem
import ufl

from .boundary_conditions import CouplingConstraint, locate_tagged_dofs, prescribed_value_bc
from .config_helpers import build_scalar_function_space, ensure_single_process_comm, prepare_petsc_solver_options
from .expressions import boundary_values, right_hand_side
from .mesh_management import DEFAULT_BOUNDARY_ID, build_mesh
from .result_output import SolutionWriter

logger = logging.getLogger(__name__)


class LaplaceSolver:
	"""FEniCS-based Laplace problem with one coupling boundary"""

	def __init__(self, settings: Dict[str, Any], comm=MPI.COMM_SELF):
		self.settings = settings
		self.comm = comm
		self.domain = None
		self.facet_tags = None
		self.V = None
		self.solution = None
		self.time = 0.0
		self._outer_bc = None
		self._coupling = None
		self._forms = None
		self._writer: Optional[SolutionWriter] = None
		ensure_single_process_comm(comm, "Laplace solver")

	@property
	def gdim(self) -> int:
		return int(self.domain.geometry.dim) if self.domain is not None else 2

	def setup(self) -> None:
		"""Mesh, function space, forms and the fixed outer boundary condition"""
		self.domain, self.facet_tags = build_mesh(self.settings, self.comm)
		self.V = build_scalar_function_space(self.settings, self.domain)
		self.solution = fem.Function(self.V, name="solution")
		logger.info(f"Number of degrees of freedom: {self.V.dofmap.index_map.size_global}")

		u = ufl.TrialFunction(self.V)
		v = ufl.TestFunction(self.V)
		f = fem.Function(self.V)
		f.interpolate(right_hand_side)
		self._forms = (ufl.inner(ufl.grad(u), ufl.grad(v)) * ufl.dx, f * v * ufl.dx)

		self._outer_bc = prescribed_value_bc(self.V, self.facet_tags, DEFAULT_BOUNDARY_ID, boundary_values)
		self._coupling = CouplingConstraint(self.V)

		if self.settings.get("write_results", True):
			self._writer = SolutionWriter(self.comm, self.settings.get("output_dir", "output"))

	def _require_setup(self) -> None:
		if self.V is None:
			raise RuntimeError("LaplaceSolver.setup() has not been called")

	# -------------------- coupling collaborator interface --------------------

	def extract_boundary_dofs(self, tag: int) -> np.ndarray:
		self._require_setup()
		return locate_tagged_dofs(self.V, self.facet_tags, int(tag))

	def dof_coordinates(self) -> np.ndarray:
		"""Row d holds the coordinates of DOF d"""
		self._require_setup()
		return self.V.tabulate_dof_coordinates()[:, :self.gdim]

	def current_field_vector(self) -> np.ndarray:
		self._require_setup()
		view = self.solution.x.array.view()
		view.setflags(write=False)
		return view

	def apply_boundary_constraints(self, boundary_map) -> None:
		self._require_setup()
		self._coupling.update(boundary_map)

	# -------------------- solve --------------------

	def assemble_and_solve(self) -> fem.Function:
		self._require_setup()
		a, L = self._forms
		# Coupling BC last: it wins on DOFs shared with the outer boundary
		bcs = [self._outer_bc] + self._coupling.bcs
		petsc_opts, prefix = prepare_petsc_solver_options(self.settings, default_prefix="laplace_")

		# --- solve (handle API diffs across dolfinx versions) ---
		try:
			problem = LinearProblem(a, L, bcs=bcs, u=self.solution, petsc_options=petsc_opts, petsc_options_prefix=prefix)
		except TypeError:
			problem = LinearProblem(a, L, bcs=bcs, u=self.solution, petsc_options=petsc_opts)

		try:
			problem.solve()
		except Exception as solve_error:
			logger.error(f"[laplace] Linear solve failed: {solve_error} (bcs={len(bcs)}, options={petsc_opts})")
			raise

		iterations = problem.solver.getIterationNumber()
		reason = problem.solver.getConvergedReason()
		if reason < 0:
			raise RuntimeError(f"Linear solver diverged after {iterations} iterations (PETSc reason {reason})")
		logger.info(f"{iterations} CG iterations needed to obtain convergence.")
		return self.solution

	def output_results(self, step: int, dt: float = 1.0) -> None:
		self.time = step * dt
		if self._writer is not None:
			self._writer.write(self.solution, self.time)

	def close(self) -> None:
		if self._writer is not None:
			self._writer.close()
			self._writer = None
