"""
Coupling gateway - stateful client of one coordinator session

The session object follows the preCICE v2 Python API (`precice.Interface`).
The gateway adds what the raw interface leaves to the caller: a strictly
forward state machine, direction checks on dataset handles, and translation
of session failures into CoordinatorFailure.
"""

import logging
from enum import Enum
from typing import Any, Optional

import numpy as np

from .errors import ConfigurationError, CoordinatorFailure, CouplingError, ProtocolViolation
from .parameters import CouplingDataSet, CouplingParameters, DataDirection
from .runtime import ParallelContext

logger = logging.getLogger(__name__)

# preCICE v2 constant returned by precice.action_write_initial_data()
WRITE_INITIAL_DATA_ACTION = "write-initial-data"


class GatewayState(str, Enum):
	UNINITIALIZED = "uninitialized"
	MESH_REGISTERED = "mesh_registered"
	SESSION_ACTIVE = "session_active"
	FINALIZED = "finalized"


class CouplingGateway:
	"""Thin, stateful wrapper over a coordinator session"""

	def __init__(self, session: Any, mesh_name: str, write_initial_action: str = WRITE_INITIAL_DATA_ACTION):
		self.session = session
		self.mesh_name = mesh_name
		self.write_initial_action = write_initial_action
		self.state = GatewayState.UNINITIALIZED
		self.max_time_step: Optional[float] = None
		self._mesh_id: Optional[int] = None
		self._resolved = {DataDirection.READ: set(), DataDirection.WRITE: set()}
		self._data_initialized = False
		self._coupling_ongoing = False

	@classmethod
	def from_parameters(cls, parameters: CouplingParameters, context: ParallelContext) -> "CouplingGateway":
		"""Open a preCICE session for this participant"""
		import precice

		logger.info(
			f"Creating preCICE interface: participant='{parameters.participant_name}', "
			f"config='{parameters.config_file}', rank={context.rank}, size={context.size}"
		)
		try:
			session = precice.Interface(parameters.participant_name, parameters.config_file, context.rank, context.size)
		except Exception as exc:
			raise CoordinatorFailure(f"Could not create preCICE interface for '{parameters.participant_name}': {exc}") from exc
		return cls(session, parameters.mesh_name, write_initial_action=precice.action_write_initial_data())

	# -------------------- internals --------------------

	def _call(self, method: str, *args):
		"""Invoke a session method; anything it raises is a coordinator failure"""
		try:
			return getattr(self.session, method)(*args)
		except CouplingError:
			raise
		except Exception as exc:
			logger.error(f"Coordinator call '{method}' failed: {exc}")
			raise CoordinatorFailure(f"Coordinator call '{method}' failed: {exc}") from exc

	def _require_state(self, operation: str, *allowed: GatewayState) -> None:
		if self.state not in allowed:
			names = ", ".join(s.value for s in allowed)
			raise ProtocolViolation(f"{operation}() called in state '{self.state.value}', allowed: {names}")

	def _require_active(self, operation: str) -> None:
		self._require_state(operation, GatewayState.SESSION_ACTIVE)

	def _require_window(self, operation: str) -> None:
		self._require_active(operation)
		if not self._coupling_ongoing:
			raise ProtocolViolation(f"{operation}() after the coupling window closed")

	def _require_handle(self, dataset: CouplingDataSet, direction: DataDirection) -> int:
		if dataset.direction != direction or dataset.handle not in self._resolved[direction]:
			raise ProtocolViolation(f"Dataset '{dataset.name}' is not resolved for {direction.value}")
		return dataset.handle

	@property
	def mesh_id(self) -> int:
		if self._mesh_id is None:
			self._mesh_id = int(self._call("get_mesh_id", self.mesh_name))
		return self._mesh_id

	# -------------------- setup --------------------

	def dimensions(self) -> int:
		return int(self._call("get_dimensions"))

	def register_mesh(self, coordinates: Any, dim: int) -> np.ndarray:
		"""Pass the interface node coordinates; returns the coordinator's node ids"""
		if self.state != GatewayState.UNINITIALIZED:
			raise ConfigurationError(f"Mesh '{self.mesh_name}' is already registered (state '{self.state.value}')")
		session_dim = self.dimensions()
		if dim != session_dim:
			raise ConfigurationError(f"Mesh dimension {dim} does not match coordinator dimension {session_dim}")
		flat = np.asarray(coordinates, dtype=np.float64).ravel()
		if flat.size % dim:
			raise ConfigurationError(f"Coordinate array of length {flat.size} is not a multiple of dim={dim}")
		positions = flat.reshape(-1, dim)
		node_ids = np.asarray(self._call("set_mesh_vertices", self.mesh_id, positions), dtype=np.int64).ravel()
		self.state = GatewayState.MESH_REGISTERED
		logger.info(f"Registered {positions.shape[0]} interface nodes on mesh '{self.mesh_name}'")
		return node_ids

	def has_dataset(self, name: str) -> bool:
		return bool(self._call("has_data", name, self.mesh_id))

	def resolve_dataset(self, name: str, direction: DataDirection, components: int = 1) -> CouplingDataSet:
		"""Look up the handle of a data stream; unknown names yield an unresolved dataset"""
		self._require_state("resolve_dataset", GatewayState.UNINITIALIZED, GatewayState.MESH_REGISTERED)
		direction = DataDirection(direction)
		if not self.has_dataset(name):
			logger.info(f"Data '{name}' not configured on mesh '{self.mesh_name}'; {direction.value} disabled")
			return CouplingDataSet(name=name, direction=direction, components=components)
		handle = int(self._call("get_data_id", name, self.mesh_id))
		self._resolved[direction].add(handle)
		logger.debug(f"Resolved {direction.value} data '{name}' -> handle {handle}")
		return CouplingDataSet(name=name, direction=direction, handle=handle, components=components)

	def start_session(self) -> float:
		"""Enter the coupling window; returns the coordinator's maximum time step"""
		if self.state == GatewayState.UNINITIALIZED:
			raise ProtocolViolation("start_session() requires a registered mesh")
		self._require_state("start_session", GatewayState.MESH_REGISTERED)
		self.max_time_step = float(self._call("initialize"))
		self.state = GatewayState.SESSION_ACTIVE
		self._coupling_ongoing = bool(self._call("is_coupling_ongoing"))
		logger.info(f"Coupling session started, max time step {self.max_time_step}")
		return self.max_time_step

	# -------------------- initial data --------------------

	def is_initial_data_required(self) -> bool:
		self._require_active("is_initial_data_required")
		return bool(self._call("is_action_required", self.write_initial_action))

	def write_initial(self, dataset: CouplingDataSet, node_ids: Any, values: Any) -> None:
		if self._data_initialized:
			raise ProtocolViolation("write_initial() after data initialization")
		self._require_window("write_initial")
		self.write_data(dataset, node_ids, values)

	def mark_initial_data_fulfilled(self) -> None:
		self._require_active("mark_initial_data_fulfilled")
		self._call("mark_action_fulfilled", self.write_initial_action)

	def initialize_data(self) -> None:
		self._require_active("initialize_data")
		if self._data_initialized:
			raise ProtocolViolation("initialize_data() called twice")
		self._call("initialize_data")
		self._data_initialized = True

	# -------------------- exchange --------------------

	def is_read_data_available(self) -> bool:
		self._require_active("is_read_data_available")
		return bool(self._call("is_read_data_available"))

	def is_write_data_required(self, dt: float) -> bool:
		self._require_window("is_write_data_required")
		return bool(self._call("is_write_data_required", dt))

	def is_coupling_ongoing(self) -> bool:
		if self.state != GatewayState.SESSION_ACTIVE:
			return False
		return self._coupling_ongoing

	def write_data(self, dataset: CouplingDataSet, node_ids: Any, values: Any) -> None:
		self._require_window("write_data")
		handle = self._require_handle(dataset, DataDirection.WRITE)
		if dataset.components == 1:
			self._call("write_block_scalar_data", handle, node_ids, values)
		else:
			self._call("write_block_vector_data", handle, node_ids, np.asarray(values).reshape(-1, dataset.components))

	def read_data(self, dataset: CouplingDataSet, node_ids: Any) -> np.ndarray:
		self._require_active("read_data")
		handle = self._require_handle(dataset, DataDirection.READ)
		method = "read_block_scalar_data" if dataset.components == 1 else "read_block_vector_data"
		return np.asarray(self._call(method, handle, node_ids), dtype=np.float64).ravel()

	def advance(self, dt: float) -> bool:
		"""Commit the step and synchronize with the peers (blocks)"""
		self._require_window("advance")
		# preCICE v2 rejects steps longer than the remaining window
		if self.max_time_step is not None and dt > self.max_time_step * (1.0 + 1e-12):
			raise ProtocolViolation(f"Time step {dt} exceeds the coordinator maximum {self.max_time_step}")
		self.max_time_step = float(self._call("advance", dt))
		self._coupling_ongoing = bool(self._call("is_coupling_ongoing"))
		return self._coupling_ongoing

	# -------------------- teardown --------------------

	def finalize_session(self) -> None:
		if self.state != GatewayState.SESSION_ACTIVE:
			if self.state != GatewayState.FINALIZED:
				logger.debug("finalize_session(): session never started, nothing to release")
			return
		self.state = GatewayState.FINALIZED
		self._call("finalize")
		logger.info("Coupling session finalized")
