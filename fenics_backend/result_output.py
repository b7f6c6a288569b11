"""
Result output (VTK time series)
"""

import logging
from pathlib import Path
from typing import Optional

from dolfinx import io

logger = logging.getLogger(__name__)


class SolutionWriter:
	"""Appends the solution of every coupled step to one .pvd series"""

	def __init__(self, comm, output_dir: str, basename: str = "solution"):
		self.path = Path(output_dir) / f"{basename}.pvd"
		self.path.parent.mkdir(parents=True, exist_ok=True)
		self._file: Optional[io.VTKFile] = io.VTKFile(comm, str(self.path), "w")
		logger.debug(f"Writing results to {self.path}")

	def write(self, function, t: float) -> None:
		if self._file is None:
			raise RuntimeError(f"Result file {self.path} already closed")
		self._file.write_function(function, t)

	def close(self) -> None:
		if self._file is not None:
			self._file.close()
			self._file = None
			logger.info(f"Results written to {self.path}")
