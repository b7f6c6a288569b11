"""
FEniCS Backend Module
Laplace solver collaborator of the coupling adapter
"""

import logging

try:
	from .solver_core import LaplaceSolver
	FENICS_AVAILABLE = True
except ImportError as e:
	logging.warning(f"FEniCS backend components not available: {e}")
	LaplaceSolver = None
	FENICS_AVAILABLE = False

__all__ = ['LaplaceSolver', 'FENICS_AVAILABLE']
