from __future__ import annotations

import logging
import textwrap
from pathlib import Path
from typing import Mapping

import pytest

from apisnap.ast_parse import parse_python_module
from apisnap.model import LoadedPackage
from apisnap.project import Project, load_project


class ProjectBuilder:
	"""Writes a throwaway project with a pyproject.toml into tmp_path."""

	def __init__(self, tmp_path: Path) -> None:
		self.root = tmp_path / "proj"
		self.root.mkdir()

	def pyproject(self, name: str = "p", tool: str = "") -> None:
		text = f'[project]\nname = "{name}"\nversion = "0.0.0"\n'
		if tool:
			text += "\n[tool.apisnap]\n" + textwrap.dedent(tool).lstrip("\n")
		(self.root / "pyproject.toml").write_text(text, encoding="utf-8")

	def write(self, files: Mapping[str, str]) -> None:
		for relative, content in files.items():
			path = self.root / relative
			path.parent.mkdir(parents=True, exist_ok=True)
			path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

	def project(self) -> Project:
		return load_project(str(self.root))


@pytest.fixture
def builder(tmp_path: Path) -> ProjectBuilder:
	b = ProjectBuilder(tmp_path)
	b.pyproject()
	return b


def make_package(source: str, module: str = "p") -> LoadedPackage:
	"""Parse ``source`` as the __init__ module of ``module``."""
	path = module.replace(".", "/") + "/__init__.py"
	return parse_python_module(module, path, textwrap.dedent(source).lstrip("\n"))


@pytest.fixture
def package_from():
	return make_package


@pytest.fixture(autouse=True)
def _reset_logging():
	yield
	logger = logging.getLogger("apisnap")
	for handler in list(logger.handlers):
		logger.removeHandler(handler)
		handler.close()
	logger.propagate = True
	logger.setLevel(logging.NOTSET)
