"""Configuration loading for apisnap ([tool.apisnap] in pyproject.toml)."""

from __future__ import annotations

from typing import Any, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ConfigError


def _hyphenate(name: str) -> str:
	return name.replace("_", "-")


class SnapConfig(BaseModel):
	"""Settings read from the [tool.apisnap] table."""

	model_config = ConfigDict(extra="forbid", alias_generator=_hyphenate, populate_by_name=True)

	module: Optional[str] = None
	output_dir: str = "_apicompat"
	filename: str = "apicompat.py"
	internal_segments: List[str] = ["internal", "vendor"]
	on_duplicate: Literal["error", "last"] = "error"


def load_config(data: Optional[Mapping[str, Any]]) -> SnapConfig:
	"""Validate a [tool.apisnap] mapping, using defaults when it is absent."""
	if data is None:
		return SnapConfig()
	if not isinstance(data, Mapping):
		raise ConfigError("[tool.apisnap] must be a table")
	try:
		return SnapConfig.model_validate(dict(data))
	except ValidationError as exc:
		problems = "; ".join(
			f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
		)
		raise ConfigError(f"invalid [tool.apisnap] table: {problems}") from exc


__all__ = ["SnapConfig", "load_config"]
