from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Iterable, Set

from .config import SnapConfig
from .errors import DuplicateDeclarationError
from .model import Declaration, LoadedPackage, PackageSnapshot, SnapshotEntry
from .render import ImportTable, declaration_modules, render_binding, render_module


def output_path(package: str, module: str, config: SnapConfig) -> str:
	"""Return the artifact path for ``package``, relative to the project root."""
	suffix = package[len(module):] if package.startswith(module) else package
	parts = [p for p in suffix.split(".") if p]
	return PurePosixPath(config.output_dir, *parts, config.filename).as_posix()


def assemble(
	package: LoadedPackage,
	declarations: Iterable[Declaration],
	module: str,
	config: SnapConfig,
) -> PackageSnapshot:
	by_name: Dict[str, Declaration] = {}
	for decl in declarations:
		if decl.name in by_name and config.on_duplicate == "error":
			raise DuplicateDeclarationError(
				f"{package.import_path}: {decl.name} is declared more than once"
			)
		by_name[decl.name] = decl

	names = sorted(by_name)
	# Every entry is a module-level name of the snapshot and may shadow a builtin.
	shadowed = set(names)
	modules: Set[str] = set()
	for name in names:
		modules |= declaration_modules(by_name[name], shadowed)
	table = ImportTable(modules, shadowed)

	entries = [
		SnapshotEntry(name=name, declaration=by_name[name], rendered=render_binding(by_name[name], table))
		for name in names
	]
	return PackageSnapshot(
		package=package.import_path,
		package_name=package.name,
		output_path=output_path(package.import_path, module, config),
		entries=entries,
		source=render_module(package.name, package.import_path, table, entries),
	)
