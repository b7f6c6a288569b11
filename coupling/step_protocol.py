"""
Step protocol - the initialize-then-loop lifecycle driven by the PDE solver

	protocol = StepProtocol(solver, gateway, parameters)
	boundary_map = protocol.initialize(interface_id, solver.current_field_vector())
	while continuing:
		solver.apply_boundary_constraints(boundary_map)
		...solve...
		continuing = protocol.advance(solver.current_field_vector(), dt)
	protocol.finalize()

`run_coupled_loop` implements exactly this loop.
"""

import logging
from typing import Any, Callable, Optional

from .boundary_values import BoundaryValueMap
from .data_marshaller import DataMarshaller
from .errors import ProtocolViolation
from .gateway import CouplingGateway
from .node_index_map import NodeIndexMap
from .parameters import CouplingDataSet, CouplingParameters, DataDirection

logger = logging.getLogger(__name__)


class StepProtocol:
	"""Orchestrates index map, marshaller and gateway for one coupling boundary"""

	def __init__(self, solver: Any, gateway: CouplingGateway, parameters: CouplingParameters, components: int = 1):
		self.solver = solver
		self.gateway = gateway
		self.parameters = parameters
		self.components = int(components)

		self.index_map: Optional[NodeIndexMap] = None
		self.marshaller: Optional[DataMarshaller] = None
		self.boundary_map: Optional[BoundaryValueMap] = None
		self.read_dataset: Optional[CouplingDataSet] = None
		self.write_dataset: Optional[CouplingDataSet] = None

	@property
	def is_initialized(self) -> bool:
		return self.boundary_map is not None

	def _require_initialized(self, operation: str) -> None:
		if not self.is_initialized:
			raise ProtocolViolation(f"{operation}() before initialize()")

	def initialize(self, boundary_tag: Any, outgoing_field: Any) -> BoundaryValueMap:
		"""
		Register the interface, start the session and perform the initial exchange.

		Returns the BoundaryValueMap that every later read overwrites in place.
		"""
		if self.is_initialized:
			raise ProtocolViolation("initialize() called twice")

		dim = int(self.solver.gdim)
		boundary_dofs = self.solver.extract_boundary_dofs(boundary_tag)
		self.index_map = NodeIndexMap(boundary_dofs, self.solver.dof_coordinates(), dim)
		logger.info(f"Number of coupling nodes: {self.index_map.size()}")

		node_ids = self.gateway.register_mesh(self.index_map.coordinate_array(), dim)
		self.index_map.bind_node_ids(node_ids)
		self.marshaller = DataMarshaller(self.index_map, self.components)
		self.boundary_map = BoundaryValueMap(self.index_map, self.components)

		self.read_dataset = self.gateway.resolve_dataset(self.parameters.read_data_name, DataDirection.READ, self.components)
		self.write_dataset = self.gateway.resolve_dataset(self.parameters.write_data_name, DataDirection.WRITE, self.components)

		self.gateway.start_session()

		if self.gateway.is_initial_data_required() and self.write_dataset.is_resolved and self.gateway.is_coupling_ongoing():
			logger.debug("Writing initial data")
			values = self.marshaller.to_external(outgoing_field)
			self.gateway.write_initial(self.write_dataset, self.index_map.node_ids, values)
			self.gateway.mark_initial_data_fulfilled()

		# Required even when no initial data was written: the coordinator
		# still has to initialize its exchange buffers.
		self.gateway.initialize_data()

		self._read_if_available()
		return self.boundary_map

	def advance(self, outgoing_field: Any, dt: float) -> bool:
		"""Write (if due), advance the coordinator, read (if available); returns continuing"""
		self._require_initialized("advance")
		if not self.gateway.is_coupling_ongoing():
			raise ProtocolViolation("advance() after the coupling window closed")

		if self.write_dataset.is_resolved and self.gateway.is_write_data_required(dt):
			values = self.marshaller.to_external(outgoing_field)
			self.gateway.write_data(self.write_dataset, self.index_map.node_ids, values)

		continuing = self.gateway.advance(dt)
		self._read_if_available()
		return continuing

	def _read_if_available(self) -> bool:
		if not self.read_dataset.is_resolved or not self.gateway.is_read_data_available():
			return False
		flat = self.gateway.read_data(self.read_dataset, self.index_map.node_ids)
		self.marshaller.from_external(flat, self.boundary_map)
		return True

	def scatter_boundary_values(self, target):
		"""Copy the latest read data into a full field vector"""
		self._require_initialized("scatter_boundary_values")
		return self.marshaller.scatter(self.boundary_map.values, target)

	def is_coupling_ongoing(self) -> bool:
		return self.gateway.is_coupling_ongoing()

	def finalize(self) -> None:
		self.gateway.finalize_session()

	def __enter__(self) -> "StepProtocol":
		return self

	def __exit__(self, exc_type, exc, tb) -> None:
		self.finalize()


def run_coupled_loop(
	solver: Any,
	protocol: StepProtocol,
	boundary_tag: Any,
	dt: float,
	on_step: Optional[Callable[[int], None]] = None,
) -> int:
	"""
	Drive the solver through the coupled run.

	Each iteration applies the latest boundary data, solves, optionally reports
	the step, then advances the coupling. Returns the number of solves.
	"""
	boundary_map = protocol.initialize(boundary_tag, solver.current_field_vector())
	continuing = protocol.is_coupling_ongoing()
	step = 0
	while continuing:
		solver.apply_boundary_constraints(boundary_map)
		solver.assemble_and_solve()
		step += 1
		if on_step is not None:
			on_step(step)
		continuing = protocol.advance(solver.current_field_vector(), dt)
	logger.info(f"Coupling window closed after {step} time steps")
	return step
