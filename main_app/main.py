"""
Main application entry point for the coupled Laplace participant
"""

import argparse
import sys
from typing import List, Optional

from config.config_manager import ConfigManager
from config.logging_config import configure_logging, get_logger
from coupling import CouplingError, CouplingGateway, ParallelContext, StepProtocol, run_coupled_loop

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Laplace solver coupled through preCICE")
	parser.add_argument("--config", default="config/config.json", help="JSON run configuration")
	parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO)")
	parser.add_argument("--no-output", action="store_true", help="Do not write VTK results")
	return parser


def run(config_path: str, write_results: bool = True) -> int:
	"""Set up solver and adapter, drive the coupled loop; returns the number of steps"""
	from fenics_backend import FENICS_AVAILABLE, LaplaceSolver
	if not FENICS_AVAILABLE:
		raise RuntimeError("FEniCS backend not available; install the 'fenics' extra")

	config = ConfigManager(config_path)
	parameters = config.get_coupling_parameters()
	settings = config.get_solver_settings(None if write_results else {"write_results": False})
	dt = float(settings["time_step"])

	context = ParallelContext.from_comm_world()
	context.require_serial("coupled-laplace")
	solver = LaplaceSolver(settings, comm=context.comm)
	solver.setup()

	logger.info(f"Solving problem in {solver.gdim} space dimensions.")
	gateway = CouplingGateway.from_parameters(parameters, context)
	try:
		with StepProtocol(solver, gateway, parameters) as protocol:
			steps = run_coupled_loop(
				solver,
				protocol,
				settings["interface_boundary_id"],
				dt,
				on_step=lambda step: solver.output_results(step, dt),
			)
	finally:
		solver.close()
	return steps


def main(argv: Optional[List[str]] = None) -> int:
	args = build_parser().parse_args(argv)
	configure_logging(args.log_level, participant="laplace-solver")
	try:
		run(args.config, write_results=not args.no_output)
	except CouplingError as e:
		logger.error(f"Coupled run aborted: {type(e).__name__}: {e}")
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
