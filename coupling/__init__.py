"""
Coupling adapter
Couples a mesh-based PDE solver to a co-simulation coordinator (preCICE)
"""

from .boundary_values import BoundaryValueMap
from .data_marshaller import DataMarshaller
from .errors import (
	ConfigurationError,
	CoordinatorFailure,
	CouplingError,
	IndexRangeError,
	ProtocolViolation,
)
from .gateway import CouplingGateway, GatewayState
from .node_index_map import NodeIndexMap
from .parameters import CouplingDataSet, CouplingParameters, DataDirection
from .runtime import ParallelContext
from .step_protocol import StepProtocol, run_coupled_loop

__all__ = [
	'BoundaryValueMap',
	'DataMarshaller',
	'CouplingError',
	'ConfigurationError',
	'CoordinatorFailure',
	'IndexRangeError',
	'ProtocolViolation',
	'CouplingGateway',
	'GatewayState',
	'NodeIndexMap',
	'CouplingDataSet',
	'CouplingParameters',
	'DataDirection',
	'ParallelContext',
	'StepProtocol',
	'run_coupled_loop',
]
