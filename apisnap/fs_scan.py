from __future__ import annotations

import os
from typing import Iterable, List, Sequence, Tuple

from .errors import ExternalResolutionError
from .logging import get_logger

logger = get_logger("fs_scan")

IGNORED_DIRS = {".git", "node_modules", "dist", "build", "__pycache__", ".venv", "venv", ".tox"}

RECURSIVE_SUFFIX = "..."


def to_module_name(file_path: str) -> str:
	"""Return the import path of a source file by walking up its package directories."""
	directory, filename = os.path.split(os.path.abspath(file_path))
	stem = os.path.splitext(filename)[0]
	parts: List[str] = [] if stem == "__init__" else [stem]
	while os.path.isfile(os.path.join(directory, "__init__.py")):
		directory, name = os.path.split(directory)
		if not name:
			break
		parts.append(name)
	return ".".join(reversed(parts))


def split_pattern(pattern: str) -> Tuple[str, bool]:
	"""Split a package pattern into a path and whether it recurses."""
	if pattern == RECURSIVE_SUFFIX:
		return ".", True
	if pattern.endswith("/" + RECURSIVE_SUFFIX):
		return pattern[: -len(RECURSIVE_SUFFIX) - 1] or "/", True
	return pattern, False


def iter_python_files(directory: str, recursive: bool, exclude: Sequence[str] = ()) -> Iterable[str]:
	excluded = {os.path.realpath(p) for p in exclude}
	for dirpath, dirnames, filenames in os.walk(directory):
		dirnames[:] = sorted(
			d
			for d in dirnames
			if d not in IGNORED_DIRS and os.path.realpath(os.path.join(dirpath, d)) not in excluded
		)
		for filename in sorted(filenames):
			if filename.endswith(".py"):
				yield os.path.join(dirpath, filename)
		if not recursive:
			break


def expand_patterns(base: str, patterns: Sequence[str], exclude: Sequence[str] = ()) -> List[str]:
	"""Return the sorted, de-duplicated source files matched by ``patterns``.

	Directories listed in ``exclude`` are never descended into.
	"""
	files = set()
	for pattern in patterns:
		path, recursive = split_pattern(pattern)
		path = os.path.normpath(os.path.join(base, path))
		if os.path.isfile(path):
			if not path.endswith(".py"):
				raise ExternalResolutionError(f"pattern {pattern!r} is not a python source file")
			files.add(path)
		elif os.path.isdir(path):
			matched = list(iter_python_files(path, recursive, exclude))
			if not matched:
				logger.warning("pattern %r matched no python files", pattern)
			files.update(matched)
		else:
			raise ExternalResolutionError(f"pattern {pattern!r}: no such file or directory: {path}")
	return sorted(files)
