from __future__ import annotations

import importlib
import importlib.util
import sys
import typing

import pytest

from apisnap.driver import is_internal_package, load_packages, run, select
from apisnap.errors import ExternalResolutionError, OutputIOError, UnsupportedTypeError
from apisnap.model import LoadedPackage

FILES = {
	"src/p/__init__.py": """
		from .util import Split


		def Add(a: int, b: int) -> int:
			return a + b
		""",
	"src/p/util.py": """
		class Splitter:
			def Run(self, s: str) -> list[str]:
				return [s]


		def Split(s: str, *seps: str) -> list[str]:
			return [s]


		def Pair() -> tuple[int, Exception]:
			return 0, Exception()


		def _helper() -> None:
			pass
		""",
	"src/p/__main__.py": """
		def Main() -> None:
			pass
		""",
	"src/p/_impl.py": """
		class _Hidden:
			pass


		def Build(h: _Hidden) -> None:
			pass
		""",
	"scripts/tool.py": """
		def Tool() -> None:
			pass
		""",
}


EXTRA_FILES = {
	"src/p/config.py": """
		class Config:
			class Mode:
				pass


		def Start(mode: Config.Mode) -> None:
			pass
		""",
	"src/p/names.py": """
		from typing import List, Tuple


		def list(prefix: str) -> List[str]:
			return [prefix]


		def tuple() -> Tuple[int, Exception]:
			return 0, Exception()
		""",
	"src/p/streams.py": """
		from typing import AsyncIterator


		async def Stream() -> AsyncIterator:
			yield 1
		""",
}


def _pkg(import_path):
	return LoadedPackage(import_path=import_path, name=import_path.rsplit(".", 1)[-1], path=import_path)


def test_select_filters_and_sorts():
	paths = ["p.z", "p", "p.__main__", "p._impl", "p.internal.x", "p.vendor", "other", "pkgextra", "p.a", "p.sub"]
	selected = select([_pkg(p) for p in paths], "p", ["internal", "vendor"])
	assert [p.import_path for p in selected] == ["p", "p.a", "p.sub", "p.z"]


def test_select_rejects_duplicate_modules():
	with pytest.raises(ExternalResolutionError, match="found at both"):
		select([_pkg("p.m"), _pkg("p.m")], "p")


@pytest.mark.parametrize(
	"path, internal",
	[
		("p.internal.x", True),
		("p.vendor", True),
		("p._private", True),
		("p.internals", False),
		("p.sub", False),
	],
)
def test_is_internal_package(path, internal):
	assert is_internal_package(path, ["internal", "vendor"]) is internal


def test_run_writes_one_snapshot_per_package(builder):
	builder.write(FILES)
	seen = []
	snapshots = run(builder.project(), base=str(builder.root), on_package=seen.append)

	assert seen == ["p", "p.util"]
	assert [s.package for s in snapshots] == ["p", "p.util"]

	root_snapshot = (builder.root / "_apicompat" / "apicompat.py").read_text(encoding="utf-8")
	assert "Add: _typing.Callable[[int, int], int] = _p.Add" in root_snapshot
	assert "Split" not in root_snapshot

	util = (builder.root / "_apicompat" / "util" / "apicompat.py").read_text(encoding="utf-8")
	lines = util.splitlines()
	assert "import p.util as _p_util" in lines
	assert lines[-2:] == [
		"Pair: _typing.Callable[[], tuple[int, Exception]] = _p_util.Pair",
		"Split: _typing.Callable[[str, *tuple[str, ...]], list[str]] = _p_util.Split",
	]
	assert "Run" not in util
	assert "_helper" not in util


def test_rerun_is_byte_identical(builder):
	builder.write(FILES)
	target = builder.root / "_apicompat" / "util" / "apicompat.py"
	run(builder.project(), base=str(builder.root), on_package=lambda _: None)
	first = target.read_bytes()
	run(builder.project(), base=str(builder.root), on_package=lambda _: None)
	assert target.read_bytes() == first


def test_dry_run_writes_nothing(builder):
	builder.write(FILES)
	snapshots = run(builder.project(), base=str(builder.root), write=False, on_package=lambda _: None)
	assert len(snapshots) == 2
	assert not (builder.root / "_apicompat").exists()


def test_directory_pattern_is_not_recursive(builder):
	builder.write(FILES)
	seen = []
	run(builder.project(), ["src/p"], base=str(builder.root), write=False, on_package=seen.append)
	assert seen == ["p", "p.util"]

	seen.clear()
	run(builder.project(), ["src"], base=str(builder.root), write=False, on_package=seen.append)
	assert seen == []


def test_unexported_type_aborts_without_artifact(builder):
	builder.write(FILES)
	builder.write(
		{
			"src/p/bad.py": """
				class _Secret:
					pass


				def Leak(s: _Secret) -> None:
					pass
				""",
		}
	)
	seen = []
	with pytest.raises(UnsupportedTypeError, match="p.bad.Leak"):
		run(builder.project(), base=str(builder.root), on_package=seen.append)
	assert seen == ["p", "p.bad"]
	assert not (builder.root / "_apicompat" / "bad").exists()
	assert not (builder.root / "_apicompat" / "util").exists()


def test_unwritable_output_is_reported(builder):
	builder.pyproject(tool='output-dir = "out"\n')
	builder.write(FILES)
	(builder.root / "out").write_text("not a directory", encoding="utf-8")
	with pytest.raises(OutputIOError, match="cannot write"):
		run(builder.project(), base=str(builder.root), on_package=lambda _: None)


def test_load_packages_skips_excluded_directories(builder):
	builder.write(FILES)
	builder.write({"_apicompat/apicompat.py": "X = 1\n", "_apicompat/util/apicompat.py": "X = 1\n"})
	loaded = load_packages(str(builder.root), ["./..."], [str(builder.root / "_apicompat")])
	assert "apicompat" not in [p.import_path for p in loaded]
	assert [p.import_path for p in loaded] == ["p", "p.__main__", "p._impl", "p.util", "tool"]


@pytest.fixture
def importable(builder, monkeypatch):
	monkeypatch.syspath_prepend(str(builder.root / "src"))
	yield
	for name in [m for m in sys.modules if m == "p" or m.startswith("p.")]:
		del sys.modules[name]


def _load_snapshot(path):
	spec = importlib.util.spec_from_file_location("apicompat_under_test", path)
	module = importlib.util.module_from_spec(spec)
	spec.loader.exec_module(module)
	return module


def test_snapshots_import_and_alias_the_real_functions(builder, importable):
	builder.write(FILES)
	builder.write(EXTRA_FILES)
	snapshots = run(builder.project(), base=str(builder.root), on_package=lambda _: None)
	assert [s.package for s in snapshots] == ["p", "p.config", "p.names", "p.streams", "p.util"]

	for snapshot in snapshots:
		module = _load_snapshot(builder.root / snapshot.output_path)
		real = importlib.import_module(snapshot.package)
		assert snapshot.entries
		for entry in snapshot.entries:
			assert getattr(module, entry.name) is getattr(real, entry.name)


def test_snapshot_annotations_evaluate_against_the_real_package(builder, importable):
	builder.write(FILES)
	builder.write(EXTRA_FILES)
	run(builder.project(), base=str(builder.root), on_package=lambda _: None)
	out = builder.root / "_apicompat"

	config = importlib.import_module("p.config")
	hints = typing.get_type_hints(_load_snapshot(out / "config" / "apicompat.py"))
	assert hints == {"Start": typing.Callable[[config.Config.Mode], None]}

	hints = typing.get_type_hints(_load_snapshot(out / "names" / "apicompat.py"))
	assert hints == {
		"list": typing.Callable[[str], list[str]],
		"tuple": typing.Callable[[], tuple[int, Exception]],
	}

	hints = typing.get_type_hints(_load_snapshot(out / "streams" / "apicompat.py"))
	assert hints == {"Stream": typing.Callable[[], typing.AsyncIterator]}


def test_attribute_of_imported_name_aborts(builder):
	builder.write(
		{
			"src/p/__init__.py": """
				from .config import Config


				def Start(mode: Config.Mode) -> None:
					pass
				""",
		}
	)
	with pytest.raises(UnsupportedTypeError, match="p.Start"):
		run(builder.project(), base=str(builder.root), on_package=lambda _: None)
	assert not (builder.root / "_apicompat").exists()
