"""
Parallel runtime handle

Created once at program start and handed to whatever needs the rank/size of
this process, instead of querying a process-wide MPI singleton everywhere.
"""

import logging
from typing import Any, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ParallelContext:
	"""Rank, size and communicator of the running process"""

	def __init__(self, rank: int = 0, size: int = 1, comm: Optional[Any] = None):
		if size < 1 or not 0 <= rank < size:
			raise ValueError(f"Invalid parallel layout: rank={rank}, size={size}")
		self.rank = rank
		self.size = size
		self.comm = comm

	@classmethod
	def from_comm_world(cls) -> "ParallelContext":
		"""Initialize MPI (if needed) and wrap MPI.COMM_WORLD"""
		from mpi4py import MPI

		if not MPI.Is_initialized():
			MPI.Init()
			logger.debug("MPI initialized by ParallelContext")
		comm = MPI.COMM_WORLD
		context = cls(rank=comm.Get_rank(), size=comm.Get_size(), comm=comm)
		logger.info(f"MPI.COMM_WORLD: size={context.size}, rank={context.rank}")
		return context

	def require_serial(self, component: str) -> None:
		"""The coupling mesh is not decomposed, so every component runs on one rank"""
		if self.size > 1:
			raise ConfigurationError(f"{component} is single-process, but {self.size} MPI ranks were started")

	def __repr__(self) -> str:
		return f"ParallelContext(rank={self.rank}, size={self.size})"
