"""
Value functions of the Laplace problem

Plain callables in dolfinx interpolation form: `x` has shape (3, n_points),
unused coordinates are zero.
"""

import numpy as np


def right_hand_side(x: np.ndarray) -> np.ndarray:
	"""f(p) = sum_i 4 p_i^4"""
	return 4.0 * np.sum(x ** 4, axis=0)


def boundary_values(x: np.ndarray) -> np.ndarray:
	"""g(p) = |p|^2"""
	return np.sum(x ** 2, axis=0)
