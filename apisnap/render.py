"""Rendering of canonical types and snapshot modules as Python source."""

from __future__ import annotations

from typing import AbstractSet, Dict, Iterable, List, Sequence, Set

from .model import (
	CanonAny,
	CanonCallable,
	CanonDict,
	CanonicalType,
	CanonIdent,
	CanonList,
	CanonOptional,
	CanonQualified,
	Declaration,
	SnapshotEntry,
)

TYPING = "typing"
BUILTINS = "builtins"

HEADER = "# Code generated by apisnap. DO NOT EDIT."


class ImportTable:
	"""Deterministic module aliases for one generated unit.

	Aliases start with an underscore so they never collide with the exported
	names bound by the snapshot. Builtin names listed in ``shadowed`` are
	bound by the snapshot itself and render through the ``builtins`` alias.
	"""

	def __init__(self, modules: Iterable[str], shadowed: AbstractSet[str] = frozenset()):
		self.aliases: Dict[str, str] = {}
		self.shadowed = frozenset(shadowed)
		taken: Set[str] = set()
		for module in sorted(set(modules)):
			alias = "_" + module.replace(".", "_")
			candidate = alias
			suffix = 2
			while candidate in taken:
				candidate = f"{alias}_{suffix}"
				suffix += 1
			taken.add(candidate)
			self.aliases[module] = candidate

	def alias(self, module: str) -> str:
		return self.aliases[module]

	def builtin(self, name: str) -> str:
		if name in self.shadowed:
			return f"{self.alias(BUILTINS)}.{name}"
		return name

	def lines(self) -> List[str]:
		return [f"import {module} as {alias}" for module, alias in self.aliases.items()]


def _collect(canon: CanonicalType, modules: Set[str], names: Set[str]) -> None:
	# Gather the modules and builtin names a rendered type refers to.
	if isinstance(canon, CanonIdent):
		if canon.name != "None":
			names.add(canon.name)
	elif isinstance(canon, CanonQualified):
		modules.add(canon.module)
	elif isinstance(canon, CanonAny):
		modules.add(TYPING)
	elif isinstance(canon, CanonOptional):
		modules.add(TYPING)
		_collect(canon.elem, modules, names)
	elif isinstance(canon, CanonList):
		names.add("list")
		_collect(canon.elem, modules, names)
	elif isinstance(canon, CanonDict):
		names.add("dict")
		_collect(canon.key, modules, names)
		_collect(canon.value, modules, names)
	elif isinstance(canon, CanonCallable):
		modules.add(TYPING)
		_collect_signature(canon.params, canon.variadic, canon.results, modules, names)


def _collect_signature(
	params: Sequence[CanonicalType],
	variadic: bool,
	results: Sequence[CanonicalType],
	modules: Set[str],
	names: Set[str],
) -> None:
	if variadic or len(results) > 1:
		names.add("tuple")
	for item in list(params) + list(results):
		_collect(item, modules, names)


def declaration_modules(decl: Declaration, shadowed: AbstractSet[str] = frozenset()) -> Set[str]:
	"""Return the modules a binding of ``decl`` needs imported.

	``builtins`` is needed only when the signature uses one of the
	``shadowed`` names.
	"""
	modules = {TYPING, decl.package}
	names: Set[str] = set()
	_collect_signature(decl.params, decl.variadic, decl.results, modules, names)
	if names & shadowed:
		modules.add(BUILTINS)
	return modules


def _callable(
	params: Sequence[CanonicalType], variadic: bool, result: str, table: ImportTable
) -> str:
	rendered = [render_type(p, table) for p in params]
	if variadic and rendered:
		rendered[-1] = f"*{table.builtin('tuple')}[{rendered[-1]}, ...]"
	return f"{table.alias(TYPING)}.Callable[[{', '.join(rendered)}], {result}]"


def _result(results: Sequence[CanonicalType], table: ImportTable) -> str:
	if not results:
		return "None"
	if len(results) == 1:
		return render_type(results[0], table)
	return f"{table.builtin('tuple')}[{', '.join(render_type(r, table) for r in results)}]"


def render_type(canon: CanonicalType, table: ImportTable) -> str:
	if isinstance(canon, CanonIdent):
		return canon.name if canon.name == "None" else table.builtin(canon.name)
	if isinstance(canon, CanonQualified):
		return f"{table.alias(canon.module)}.{canon.name}"
	if isinstance(canon, CanonOptional):
		return f"{table.alias(TYPING)}.Optional[{render_type(canon.elem, table)}]"
	if isinstance(canon, CanonList):
		return f"{table.builtin('list')}[{render_type(canon.elem, table)}]"
	if isinstance(canon, CanonDict):
		key = render_type(canon.key, table)
		return f"{table.builtin('dict')}[{key}, {render_type(canon.value, table)}]"
	if isinstance(canon, CanonCallable):
		return _callable(canon.params, canon.variadic, _result(canon.results, table), table)
	if isinstance(canon, CanonAny):
		return f"{table.alias(TYPING)}.Any"
	raise TypeError(f"unknown canonical type: {canon!r}")


def render_signature(decl: Declaration, table: ImportTable) -> str:
	result = _result(decl.results, table)
	# Async generators are called synchronously and return their iterator.
	if decl.is_async and not decl.is_generator:
		any_ = f"{table.alias(TYPING)}.Any"
		result = f"{table.alias(TYPING)}.Coroutine[{any_}, {any_}, {result}]"
	return _callable(decl.params, decl.variadic, result, table)


def render_binding(decl: Declaration, table: ImportTable) -> str:
	"""Bind the declaration's name to the real function under its reconstructed type."""
	signature = render_signature(decl, table)
	return f"{decl.name}: {signature} = {table.alias(decl.package)}.{decl.name}"


def render_module(
	package_name: str, package: str, table: ImportTable, entries: Sequence[SnapshotEntry]
) -> str:
	lines = [
		HEADER,
		f'"""API snapshot of package {package_name} ({package})."""',
		"",
		"from __future__ import annotations",
	]
	if entries:
		lines.append("")
		lines.extend(table.lines())
		lines.append("")
		lines.extend(entry.rendered for entry in entries)
	return "\n".join(lines) + "\n"


__all__ = [
	"ImportTable",
	"declaration_modules",
	"render_binding",
	"render_module",
	"render_signature",
	"render_type",
]
