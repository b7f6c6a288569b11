from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
import pytest

from coupling import CouplingGateway, CouplingParameters

MESH_ID = 7


class FakeSession:
	"""In-memory stand-in for a preCICE v2 `Interface`"""

	def __init__(
		self,
		dimensions: int = 2,
		mesh_name: str = "original-mesh",
		data_names: Iterable[str] = ("boundary-data", "dummy"),
		initial_data_required: bool = False,
		read_available: bool = True,
		windows: int = 3,
		loopback: bool = False,
		read_source: Optional[Callable[[np.ndarray], np.ndarray]] = None,
		fail_on: Optional[str] = None,
	):
		self.dimensions = dimensions
		self.mesh_name = mesh_name
		self.data_ids: Dict[str, int] = {name: 10 + i for i, name in enumerate(data_names)}
		self.initial_data_required = initial_data_required
		self.read_available = read_available
		self.remaining_windows = windows
		self.loopback = loopback
		self.read_source = read_source or (lambda ids: ids.astype(float) * 0.5)
		self.fail_on = fail_on

		self.calls: List[str] = []
		self.positions: Optional[np.ndarray] = None
		self.writes: List[tuple] = []
		self.last_written: Optional[np.ndarray] = None

	def _log(self, name: str) -> None:
		self.calls.append(name)
		if name == self.fail_on:
			raise RuntimeError(f"peer disconnected during {name}")

	def count(self, name: str) -> int:
		return self.calls.count(name)

	def get_dimensions(self):
		self._log("get_dimensions")
		return self.dimensions

	def get_mesh_id(self, name):
		self._log("get_mesh_id")
		if name != self.mesh_name:
			raise ValueError(f"unknown mesh {name}")
		return MESH_ID

	def set_mesh_vertices(self, mesh_id, positions):
		self._log("set_mesh_vertices")
		self.positions = np.array(positions)
		return np.arange(100, 100 + self.positions.shape[0])

	def has_data(self, name, mesh_id):
		self._log("has_data")
		return name in self.data_ids

	def get_data_id(self, name, mesh_id):
		self._log("get_data_id")
		return self.data_ids[name]

	def initialize(self):
		self._log("initialize")
		return 1.0

	def is_action_required(self, action):
		self._log("is_action_required")
		return self.initial_data_required and action == "write-initial-data"

	def mark_action_fulfilled(self, action):
		self._log("mark_action_fulfilled")

	def initialize_data(self):
		self._log("initialize_data")

	def is_read_data_available(self):
		self._log("is_read_data_available")
		return self.read_available

	def is_write_data_required(self, dt):
		self._log("is_write_data_required")
		return True

	def _write(self, name, data_id, ids, values):
		self._log(name)
		self.writes.append((data_id, np.array(ids), np.array(values)))
		self.last_written = np.array(values, dtype=float)

	def write_block_scalar_data(self, data_id, ids, values):
		self._write("write_block_scalar_data", data_id, ids, values)

	def write_block_vector_data(self, data_id, ids, values):
		self._write("write_block_vector_data", data_id, ids, values)

	def _read(self, ids, components):
		ids = np.asarray(ids)
		if self.loopback and self.last_written is not None:
			return self.last_written.copy()
		values = self.read_source(ids)
		return values if components == 1 else np.repeat(values[:, None], components, axis=1)

	def read_block_scalar_data(self, data_id, ids):
		self._log("read_block_scalar_data")
		return self._read(ids, 1)

	def read_block_vector_data(self, data_id, ids):
		self._log("read_block_vector_data")
		return self._read(ids, self.dimensions)

	def advance(self, dt):
		self._log("advance")
		self.remaining_windows -= 1
		return 1.0

	def is_coupling_ongoing(self):
		self._log("is_coupling_ongoing")
		return self.remaining_windows > 0

	def finalize(self):
		self._log("finalize")


class FakeSolver:
	"""Numpy PDE-solver collaborator with one tagged boundary"""

	gdim = 2

	def __init__(self, n_dofs: int = 12, boundary: Optional[Dict[int, List[int]]] = None):
		self.field = np.arange(n_dofs, dtype=float) * 10.0
		self.boundary = boundary if boundary is not None else {1: [9, 3, 5, 1, 7]}
		self.coordinates = {d: (0.1 * d, 0.2 * d) for d in range(n_dofs)}
		self.constraints: List[dict] = []
		self.solves = 0

	def extract_boundary_dofs(self, tag):
		return list(self.boundary[tag])

	def dof_coordinates(self):
		return self.coordinates

	def current_field_vector(self):
		return self.field

	def apply_boundary_constraints(self, boundary_map):
		self.constraints.append(boundary_map.as_dict())

	def assemble_and_solve(self):
		self.solves += 1
		self.field += 1.0


@pytest.fixture
def session():
	return FakeSession()


@pytest.fixture
def gateway(session):
	return CouplingGateway(session, "original-mesh")


@pytest.fixture
def parameters():
	return CouplingParameters()


@pytest.fixture
def solver():
	return FakeSolver()
