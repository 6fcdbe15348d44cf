from __future__ import annotations

import os
from typing import Callable, Dict, List, Optional, Sequence

from .assemble import assemble
from .ast_parse import load_python_module
from .errors import ExternalResolutionError, OutputIOError
from .extract import extract
from .fs_scan import expand_patterns, to_module_name
from .logging import get_logger
from .model import Declaration, LoadedPackage, PackageSnapshot
from .project import Project

logger = get_logger("driver")

DEFAULT_PATTERNS = ["./..."]

ENTRY_POINT = "__main__"


def is_internal_package(import_path: str, markers: Sequence[str]) -> bool:
	for segment in import_path.split("."):
		if segment.startswith("_") or segment in markers:
			return True
	return False


def in_module(import_path: str, module: str) -> bool:
	return import_path == module or import_path.startswith(module + ".")


def is_eligible(package: LoadedPackage, module: str, markers: Sequence[str]) -> bool:
	if not in_module(package.import_path, module):
		return False
	if package.name == ENTRY_POINT:
		return False
	return not is_internal_package(package.import_path, markers)


def select(packages: Sequence[LoadedPackage], module: str, markers: Sequence[str] = ()) -> List[LoadedPackage]:
	"""Return the packages eligible for snapshotting in ascending import-path order."""
	eligible: Dict[str, LoadedPackage] = {}
	for package in packages:
		if not is_eligible(package, module, markers):
			continue
		if package.import_path in eligible:
			raise ExternalResolutionError(
				f"module {package.import_path} found at both {eligible[package.import_path].path} and {package.path}"
			)
		eligible[package.import_path] = package
	return [eligible[path] for path in sorted(eligible)]


def load_packages(base: str, patterns: Sequence[str], exclude: Sequence[str] = ()) -> List[LoadedPackage]:
	packages: List[LoadedPackage] = []
	for path in expand_patterns(base, patterns, exclude):
		module_name = to_module_name(path)
		logger.debug("loading %s from %s", module_name, path)
		packages.append(load_python_module(module_name, path))
	return sorted(packages, key=lambda p: (p.import_path, p.path))


def process(project: Project, package: LoadedPackage) -> PackageSnapshot:
	declarations: List[Declaration] = []
	for decl in package.declarations:
		extracted = extract(package, decl)
		if extracted is not None:
			declarations.append(extracted)
	return assemble(package, declarations, project.module, project.config)


def write_snapshot(root: str, snapshot: PackageSnapshot) -> str:
	target = os.path.join(root, *snapshot.output_path.split("/"))
	try:
		os.makedirs(os.path.dirname(target), exist_ok=True)
		with open(target, "w", encoding="utf-8", newline="\n") as fh:
			fh.write(snapshot.source)
	except OSError as exc:
		raise OutputIOError(f"cannot write {target}: {exc}") from exc
	logger.info("wrote %s (%d entries)", snapshot.output_path, len(snapshot.entries))
	return target


def run(
	project: Project,
	patterns: Optional[Sequence[str]] = None,
	base: Optional[str] = None,
	write: bool = True,
	on_package: Callable[[str], None] = print,
) -> List[PackageSnapshot]:
	"""Snapshot every eligible package matched by ``patterns``.

	All packages are loaded before any is processed. The first error aborts the
	run; snapshots already written stay on disk.
	"""
	exclude = [os.path.join(project.root, project.config.output_dir)]
	packages = load_packages(base or os.getcwd(), patterns or DEFAULT_PATTERNS, exclude)
	snapshots: List[PackageSnapshot] = []
	for package in select(packages, project.module, project.config.internal_segments):
		on_package(package.import_path)
		snapshot = process(project, package)
		if write:
			write_snapshot(project.root, snapshot)
		snapshots.append(snapshot)
	return snapshots
