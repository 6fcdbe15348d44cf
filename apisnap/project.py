"""Resolution of the enclosing project and its root import path."""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel

from .config import SnapConfig, load_config
from .errors import ExternalResolutionError
from .logging import get_logger

logger = get_logger("project")

PYPROJECT = "pyproject.toml"


class Project(BaseModel):
	root: str
	module: str
	config: SnapConfig


def find_project_root(start: str) -> Path:
	"""Return the nearest directory at or above ``start`` holding a pyproject.toml."""
	current = Path(start).resolve()
	for candidate in (current, *current.parents):
		if (candidate / PYPROJECT).is_file():
			return candidate
	raise ExternalResolutionError(f"no {PYPROJECT} found at or above {current}")


def normalize_module(name: str) -> str:
	"""Turn a distribution name into its conventional import name."""
	return re.sub(r"[-_.]+", "_", name).lower()


def _read_pyproject(path: Path) -> Dict[str, Any]:
	try:
		with open(path, "rb") as fh:
			return tomllib.load(fh)
	except (OSError, tomllib.TOMLDecodeError) as exc:
		raise ExternalResolutionError(f"cannot read {path}: {exc}") from exc


def load_project(start: str | None = None) -> Project:
	root = find_project_root(start or os.getcwd())
	data = _read_pyproject(root / PYPROJECT)
	config = load_config(data.get("tool", {}).get("apisnap"))

	module = config.module
	if not module:
		name = data.get("project", {}).get("name")
		if not isinstance(name, str) or not name:
			raise ExternalResolutionError(
				f"{root / PYPROJECT}: set [project] name or [tool.apisnap] module"
			)
		module = normalize_module(name)

	logger.debug("project root %s, module %s", root, module)
	return Project(root=str(root), module=module, config=config)


__all__ = ["Project", "find_project_root", "load_project", "normalize_module"]
