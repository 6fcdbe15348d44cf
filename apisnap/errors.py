"""Error taxonomy for snapshot generation.

Every error is fatal to the run: a partial snapshot is worse than none because
later comparisons assume the snapshot is complete.
"""

from __future__ import annotations

from typing import Optional


class ApiSnapError(RuntimeError):
	"""Base class for every failure raised by apisnap."""

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message
		self.declaration: Optional[str] = None

	def __str__(self) -> str:
		if self.declaration:
			return f"{self.declaration}: {self.message}"
		return self.message


class UnsupportedTypeError(ApiSnapError):
	"""A type in an exported signature has no portable snapshot reference."""


class UnimplementedTypeShapeError(ApiSnapError):
	"""The converter met a type shape outside its closed variant set."""


class ExternalResolutionError(ApiSnapError):
	"""Locating the project, loading sources or resolving a name failed."""


class OutputIOError(ApiSnapError):
	"""Writing a snapshot artifact failed."""


class DuplicateDeclarationError(ApiSnapError):
	"""Two declarations in one package produced the same snapshot name."""


class ConfigError(ApiSnapError):
	"""Raised when the [tool.apisnap] table cannot be parsed."""


__all__ = [
	"ApiSnapError",
	"ConfigError",
	"DuplicateDeclarationError",
	"ExternalResolutionError",
	"OutputIOError",
	"UnimplementedTypeShapeError",
	"UnsupportedTypeError",
]
