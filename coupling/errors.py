"""
Coupling error types

None of these are recoverable: a coupled run that raises one of them is over.
"""


class CouplingError(RuntimeError):
	"""Base class for all coupling adapter failures"""


class ConfigurationError(CouplingError):
	"""Static setup is inconsistent (dimension mismatch, double registration, ...)"""


class ProtocolViolation(CouplingError):
	"""A coordinator call was made outside of its valid window"""


class IndexRangeError(CouplingError, IndexError):
	"""Marshalling buffers and the node index map disagree in size or range"""


class CoordinatorFailure(CouplingError):
	"""The coordination session reported an unrecoverable state"""
