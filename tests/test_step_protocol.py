import numpy as np
import pytest

from conftest import FakeSession, FakeSolver
from coupling import (
	ConfigurationError,
	CouplingGateway,
	CouplingParameters,
	GatewayState,
	ProtocolViolation,
	StepProtocol,
	run_coupled_loop,
)


def _protocol(solver=None, **session_kwargs):
	session = FakeSession(**session_kwargs)
	solver = solver or FakeSolver()
	gateway = CouplingGateway(session, "original-mesh")
	return StepProtocol(solver, gateway, CouplingParameters()), session, solver


def test_initialize_registers_interface_and_reads_initial_data() -> None:
	protocol, session, solver = _protocol()

	boundary_map = protocol.initialize(1, solver.current_field_vector())

	assert protocol.index_map.size() == 5
	np.testing.assert_allclose(session.positions[:, 0], [0.1, 0.3, 0.5, 0.7, 0.9])
	assert boundary_map.dofs.tolist() == [1, 3, 5, 7, 9]
	assert boundary_map.values.tolist() == [50.0, 50.5, 51.0, 51.5, 52.0]
	assert protocol.gateway.state == GatewayState.SESSION_ACTIVE


def test_no_initial_data_and_no_write_handle_still_initializes_data_once() -> None:
	protocol, session, solver = _protocol(data_names=("boundary-data",), initial_data_required=False)

	protocol.initialize(1, solver.current_field_vector())

	assert session.count("initialize_data") == 1
	assert session.count("write_block_scalar_data") == 0
	assert session.count("mark_action_fulfilled") == 0


def test_initial_data_written_before_data_initialization() -> None:
	protocol, session, solver = _protocol(initial_data_required=True)

	protocol.initialize(1, solver.current_field_vector())

	write = session.calls.index("write_block_scalar_data")
	fulfilled = session.calls.index("mark_action_fulfilled")
	initialized = session.calls.index("initialize_data")
	assert write < fulfilled < initialized
	assert session.writes[0][2].tolist() == [10.0, 30.0, 50.0, 70.0, 90.0]
	assert session.writes[0][1].tolist() == [100, 101, 102, 103, 104]


def test_initial_data_required_without_write_handle_skips_write() -> None:
	protocol, session, solver = _protocol(data_names=("boundary-data",), initial_data_required=True)

	protocol.initialize(1, solver.current_field_vector())

	assert session.count("write_block_scalar_data") == 0
	assert session.count("initialize_data") == 1


def test_advance_writes_then_advances_then_reads() -> None:
	protocol, session, solver = _protocol()
	protocol.initialize(1, solver.current_field_vector())
	start = len(session.calls)

	assert protocol.advance(solver.current_field_vector(), 1.0) is True

	calls = session.calls[start:]
	assert calls.index("write_block_scalar_data") < calls.index("advance") < calls.index("read_block_scalar_data")


def test_without_write_dataset_advance_never_writes() -> None:
	protocol, session, solver = _protocol(data_names=("boundary-data",))
	protocol.initialize(1, solver.current_field_vector())

	protocol.advance(solver.current_field_vector(), 1.0)
	protocol.advance(solver.current_field_vector(), 1.0)

	assert session.count("write_block_scalar_data") == 0
	assert session.count("is_write_data_required") == 0


def test_without_read_dataset_boundary_map_is_untouched() -> None:
	protocol, session, solver = _protocol(data_names=("dummy",))
	boundary_map = protocol.initialize(1, solver.current_field_vector())
	before = boundary_map.values.copy()

	protocol.advance(solver.current_field_vector(), 1.0)

	np.testing.assert_array_equal(boundary_map.values, before)
	assert session.count("read_block_scalar_data") == 0


def test_unavailable_read_data_leaves_map_unchanged() -> None:
	protocol, session, solver = _protocol(read_available=False)
	boundary_map = protocol.initialize(1, solver.current_field_vector())

	protocol.advance(solver.current_field_vector(), 1.0)

	assert np.all(boundary_map.values == 0.0)


def test_boundary_map_is_reused_across_steps() -> None:
	protocol, session, solver = _protocol(windows=5)
	boundary_map = protocol.initialize(1, solver.current_field_vector())
	values = boundary_map.values

	for _ in range(3):
		protocol.advance(solver.current_field_vector(), 1.0)

	assert protocol.boundary_map is boundary_map
	assert boundary_map.values is values


def test_loopback_coordinator_reproduces_written_field() -> None:
	protocol, session, solver = _protocol(loopback=True)
	boundary_map = protocol.initialize(1, solver.current_field_vector())
	solver.field[:] = np.linspace(-1.0, 1.0, solver.field.size)

	protocol.advance(solver.current_field_vector(), 1.0)

	for dof, value in boundary_map.items():
		assert value == solver.field[dof]


def test_window_closed_on_first_advance_means_one_solve() -> None:
	protocol, session, solver = _protocol(windows=1)

	steps = run_coupled_loop(solver, protocol, 1, 1.0)

	assert steps == 1
	assert solver.solves == 1
	assert session.count("advance") == 1


def test_loop_applies_latest_boundary_data_before_each_solve() -> None:
	reads = iter(range(100))
	protocol, session, solver = _protocol(windows=3, read_source=lambda ids: np.full(ids.size, float(next(reads))))
	seen = []

	steps = run_coupled_loop(solver, protocol, 1, 1.0, on_step=seen.append)

	assert steps == 3
	assert seen == [1, 2, 3]
	assert [c[1] for c in solver.constraints] == [0.0, 1.0, 2.0]


def test_advance_before_initialize_is_a_violation() -> None:
	protocol, session, solver = _protocol()

	with pytest.raises(ProtocolViolation):
		protocol.advance(solver.current_field_vector(), 1.0)


def test_initialize_twice_is_a_violation() -> None:
	protocol, session, solver = _protocol()
	protocol.initialize(1, solver.current_field_vector())

	with pytest.raises(ProtocolViolation):
		protocol.initialize(1, solver.current_field_vector())


def test_solver_dimension_must_match_coordinator() -> None:
	protocol, session, solver = _protocol(dimensions=3)

	with pytest.raises(ConfigurationError):
		protocol.initialize(1, solver.current_field_vector())
	assert session.count("initialize") == 0


def test_context_manager_finalizes_session() -> None:
	protocol, session, solver = _protocol()

	with protocol:
		protocol.initialize(1, solver.current_field_vector())

	assert session.count("finalize") == 1


def test_scatter_boundary_values_into_full_vector() -> None:
	protocol, session, solver = _protocol()
	protocol.initialize(1, solver.current_field_vector())
	target = np.zeros(12)

	protocol.scatter_boundary_values(target)

	assert target[[1, 3, 5, 7, 9]].tolist() == [50.0, 50.5, 51.0, 51.5, 52.0]
	assert target[0] == 0.0


def test_advance_after_window_closed_sends_nothing() -> None:
	protocol, session, solver = _protocol(windows=1)
	protocol.initialize(1, solver.current_field_vector())
	assert protocol.advance(solver.current_field_vector(), 1.0) is False

	with pytest.raises(ProtocolViolation):
		protocol.advance(solver.current_field_vector(), 1.0)
	assert session.count("write_block_scalar_data") == 1
	assert session.count("advance") == 1


def test_no_initial_write_when_session_starts_closed() -> None:
	protocol, session, solver = _protocol(windows=0, initial_data_required=True)

	assert run_coupled_loop(solver, protocol, 1, 1.0) == 0
	assert session.count("write_block_scalar_data") == 0
	assert session.count("initialize_data") == 1
