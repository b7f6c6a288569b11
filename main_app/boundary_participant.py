"""
Companion participant: prescribes a time-dependent profile on the interface

Provides its own point mesh on x = 1 and writes the profile as the Laplace
solver's read data. It drives the same StepProtocol as the solver side, with
a profile object standing in for the PDE solver.
"""

import argparse
import sys
from typing import Dict, List, Optional

import numpy as np

from config.config_manager import ConfigManager
from config.logging_config import configure_logging, get_logger
from coupling import CouplingError, CouplingGateway, ParallelContext, StepProtocol, run_coupled_loop

logger = get_logger(__name__)


def fancy_profile(y: np.ndarray, t: float) -> np.ndarray:
	"""|p|^2 on x = 1, modulated in y and time"""
	return (1.0 + y ** 2) * (1.0 + 0.5 * np.sin(np.pi * y) * np.sin(0.5 * np.pi * t))


class BoundaryProfile:
	"""Point set on the interface with one scalar value per point"""

	gdim = 2

	def __init__(self, n_points: int, dt: float = 1.0, x: float = 1.0, lower: float = -1.0, upper: float = 1.0):
		if n_points < 2:
			raise ValueError(f"Need at least two interface points, got {n_points}")
		y = np.linspace(lower, upper, n_points)
		self.points = np.column_stack([np.full(n_points, x), y])
		self.dt = dt
		self.time = 0.0
		self.values = fancy_profile(y, self.time)
		self.received: Optional[np.ndarray] = None

	def extract_boundary_dofs(self, tag=None) -> np.ndarray:
		return np.arange(self.points.shape[0])

	def dof_coordinates(self) -> np.ndarray:
		return self.points

	def current_field_vector(self) -> np.ndarray:
		return self.values

	def apply_boundary_constraints(self, boundary_map) -> None:
		self.received = boundary_map.values.copy()

	def assemble_and_solve(self) -> np.ndarray:
		"""Nothing to solve; move the profile to the next time level"""
		self.time += self.dt
		self.values[:] = fancy_profile(self.points[:, 1], self.time)
		logger.debug(f"Profile at t={self.time}: min={self.values.min():.4f}, max={self.values.max():.4f}")
		return self.values


def run(config_path: str) -> int:
	config = ConfigManager(config_path)
	section: Dict = config.get("boundary_participant", {}) or {}
	parameters = config.get_coupling_parameters("boundary_participant")
	dt = float(section.get("time_step", 1.0))

	profile = BoundaryProfile(int(section.get("n_points", 17)), dt)

	context = ParallelContext.from_comm_world()
	context.require_serial("fancy-boundary")
	gateway = CouplingGateway.from_parameters(parameters, context)
	with StepProtocol(profile, gateway, parameters) as protocol:
		return run_coupled_loop(profile, protocol, None, dt)


def main(argv: Optional[List[str]] = None) -> int:
	parser = argparse.ArgumentParser(description="Time-dependent boundary data participant")
	parser.add_argument("--config", default="config/config.json", help="JSON run configuration")
	parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO)")
	args = parser.parse_args(argv)

	configure_logging(args.log_level, participant="fancy-boundary")
	try:
		steps = run(args.config)
	except CouplingError as e:
		logger.error(f"Coupled run aborted: {type(e).__name__}: {e}")
		return 1
	logger.info(f"Boundary participant finished after {steps} steps")
	return 0


if __name__ == "__main__":
	sys.exit(main())
