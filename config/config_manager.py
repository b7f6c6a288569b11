"""
Central Configuration Manager
Single source of truth for the coupled run configuration
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from pydantic import ValidationError

from coupling.errors import ConfigurationError
from coupling.parameters import CouplingParameters

logger = logging.getLogger(__name__)

DEFAULT_SOLVER_SETTINGS: Dict[str, Any] = {
	"refinements": 4,
	"degree": 1,
	"interface_boundary_id": 1,
	"time_step": 1.0,
	"ksp_type": "cg",
	"pc_type": "none",
	"ksp_rtol": 1e-12,
	"ksp_max_it": 1000,
	"output_dir": "output",
	"write_results": True,
}


class ConfigManager:
	"""Loads the JSON run configuration and hands out typed sections"""

	def __init__(self, config_file: str = "config/config.json"):
		# Make path absolute relative to project root
		if not Path(config_file).is_absolute():
			current_dir = Path(__file__).parent
			project_root = current_dir.parent if current_dir.name == "config" else current_dir
			candidate = Path(config_file)
			self.config_file = candidate.resolve() if candidate.exists() else project_root / config_file
		else:
			self.config_file = Path(config_file)

		self._config = self._load_config()

	# -------------------- IO --------------------

	def _load_config(self) -> Dict[str, Any]:
		"""Load configuration from JSON file"""
		if self.config_file.exists():
			with open(self.config_file, 'r') as f:
				try:
					config = json.load(f)
				except json.JSONDecodeError as e:
					raise ConfigurationError(f"Config file {self.config_file} is not valid JSON: {e}") from e
			logger.info(f"Loaded config from {self.config_file}")
			return config
		logger.error(f"Config file {self.config_file} not found - configuration file is required")
		raise FileNotFoundError(f"Configuration file {self.config_file} is required but not found")

	def save_config(self) -> bool:
		"""Save configuration to JSON file"""
		with open(self.config_file, 'w') as f:
			json.dump(self._config, f, indent=2)
			logger.info(f"Saved config to {self.config_file}")
			return True

	# -------------------- Safe getters/setters --------------------

	def get(self, key: str, default: Any = None) -> Any:
		"""Get configuration value by key (supports dot notation)"""
		value = self._config
		for k in key.split('.'):
			if not isinstance(value, dict) or k not in value:
				return default
			value = value[k]
		return value

	def set(self, key: str, value: Any, persist: bool = False) -> bool:
		"""Set configuration value by key (supports dot notation)"""
		keys = key.split('.')
		config = self._config
		for k in keys[:-1]:
			if k not in config or not isinstance(config[k], dict):
				config[k] = {}
			config = config[k]
		config[keys[-1]] = value
		return self.save_config() if persist else True

	# -------------------- Typed sections --------------------

	def _resolve_relative(self, path: str) -> str:
		"""Paths inside the config are relative to the config file, not the cwd"""
		p = Path(path)
		return str(p if p.is_absolute() else self.config_file.parent / p)

	def get_coupling_parameters(self, section: str = "coupling") -> CouplingParameters:
		"""Build the static coupling record from a config section"""
		raw = dict(self.get(section, {}) or {})
		if "config_file" in raw:
			raw["config_file"] = self._resolve_relative(raw["config_file"])
		try:
			params = CouplingParameters(**raw)
		except ValidationError as e:
			raise ConfigurationError(f"Invalid '{section}' section in {self.config_file}: {e}") from e
		logger.debug(f"Coupling parameters [{section}]: {params}")
		return params

	def get_solver_settings(self, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
		"""Solver section merged over defaults"""
		settings = {**DEFAULT_SOLVER_SETTINGS, **(self.get("solver", {}) or {}), **(overrides or {})}
		settings["output_dir"] = self._resolve_relative(settings["output_dir"])
		return settings
