from __future__ import annotations

import pytest

from apisnap.config import SnapConfig, load_config
from apisnap.errors import ConfigError, ExternalResolutionError
from apisnap.project import load_project, normalize_module


def test_module_comes_from_project_name(builder):
	builder.pyproject(name="My-Lib.Core")
	(builder.root / "src" / "deep").mkdir(parents=True)
	project = builder.project()
	assert project.module == "my_lib_core"

	nested = load_project(str(builder.root / "src" / "deep"))
	assert nested.root == project.root


def test_tool_table_overrides_module_and_paths(builder):
	builder.pyproject(
		tool="""
		module = "p.api"
		output-dir = "tests/apicompat"
		internal_segments = ["compat"]
		on-duplicate = "last"
		"""
	)
	project = builder.project()
	assert project.module == "p.api"
	assert project.config.output_dir == "tests/apicompat"
	assert project.config.internal_segments == ["compat"]
	assert project.config.on_duplicate == "last"
	assert project.config.filename == "apicompat.py"


def test_missing_project_name_fails(builder):
	(builder.root / "pyproject.toml").write_text("[tool.other]\nx = 1\n", encoding="utf-8")
	with pytest.raises(ExternalResolutionError, match="set \\[project\\] name"):
		builder.project()


def test_invalid_pyproject_fails(builder):
	(builder.root / "pyproject.toml").write_text("[project\n", encoding="utf-8")
	with pytest.raises(ExternalResolutionError, match="cannot read"):
		builder.project()


def test_normalize_module():
	assert normalize_module("Foo-Bar_baz.qux") == "foo_bar_baz_qux"


def test_load_config_defaults():
	assert load_config(None) == SnapConfig()


@pytest.mark.parametrize(
	"data, message",
	[
		({"unknown": 1}, "unknown"),
		({"on-duplicate": "merge"}, "on-duplicate"),
		({"internal-segments": "vendor"}, "internal-segments"),
	],
)
def test_load_config_rejects_bad_values(data, message):
	with pytest.raises(ConfigError, match=message):
		load_config(data)


def test_load_config_requires_table():
	with pytest.raises(ConfigError, match="must be a table"):
		load_config(["module"])
