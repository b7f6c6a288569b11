import logging
import os
from typing import Optional


def configure_logging(level: Optional[str] = None, participant: Optional[str] = None) -> None:
	"""Configure root logging with a consistent, concise format.

	Level precedence: function arg > ENV LOG_LEVEL > INFO.
	Coupled participants usually share one terminal, so the participant name
	is prefixed to every record when given.
	"""
	level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
	log_level = getattr(logging, level_name, None)
	if not isinstance(log_level, int):
		log_level = logging.INFO

	prefix = f"[{participant}] " if participant else ""
	logging.basicConfig(
		level=log_level,
		format=f"%(asctime)s %(levelname)s {prefix}%(name)s: %(message)s",
		force=True,
	)


def get_logger(name: str) -> logging.Logger:
	"""Get a module logger."""
	return logging.getLogger(name)
