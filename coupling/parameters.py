"""
Coupling parameters data model
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DataDirection(str, Enum):
	"""Direction of a coupling data stream, seen from this participant"""
	READ = "read"
	WRITE = "write"


class CouplingParameters(BaseModel):
	"""Static coupling configuration of one participant"""
	participant_name: str = "laplace-solver"
	config_file: str = "precice-config.xml"
	mesh_name: str = "original-mesh"
	write_data_name: str = "dummy"
	read_data_name: str = "boundary-data"

	model_config = {"frozen": True}


class CouplingDataSet(BaseModel):
	"""Named data stream; a missing handle means it is not configured for this run"""
	name: str
	direction: DataDirection
	handle: Optional[int] = None
	components: int = Field(default=1, ge=1)

	model_config = {"frozen": True}

	@property
	def is_resolved(self) -> bool:
		return self.handle is not None
