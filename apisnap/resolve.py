"""Static resolution of annotation expressions into type nodes.

Annotations are resolved against the module's own scope table (imports,
classes, functions, assignments) and then the builtins namespace. Shapes
outside the supported set come back as ``OpaqueType`` so the converter can
reject them.
"""

from __future__ import annotations

import ast
import builtins
from typing import Dict, List, Optional

from .errors import ExternalResolutionError, UnsupportedTypeError
from .model import (
	EmptyInterfaceType,
	FunctionType,
	LoadedPackage,
	MapType,
	NamedType,
	NonEmptyInterfaceType,
	OpaqueType,
	PointerType,
	PrimitiveType,
	SliceType,
	TypeNode,
)

PRIMITIVES = frozenset({"bool", "bytearray", "bytes", "complex", "float", "int", "object", "str"})

ANNOTATED_ORIGINS = frozenset({"typing.Annotated", "typing_extensions.Annotated"})
ANY_ORIGINS = frozenset({"typing.Any", "typing_extensions.Any"})
CALLABLE_ORIGINS = frozenset(
	{"typing.Callable", "collections.abc.Callable", "typing_extensions.Callable"}
)
DICT_ORIGINS = frozenset({"builtins.dict", "typing.Dict"})
LIST_ORIGINS = frozenset({"builtins.list", "typing.List"})
OPTIONAL_ORIGINS = frozenset({"typing.Optional", "typing_extensions.Optional"})
TUPLE_ORIGINS = frozenset({"builtins.tuple", "typing.Tuple"})
TYPEDDICT_ORIGINS = frozenset({"typing.TypedDict", "typing_extensions.TypedDict"})
UNION_ORIGINS = frozenset({"typing.Union", "typing_extensions.Union"})
TYPEVAR_ORIGINS = frozenset(
	{
		"typing.TypeVar",
		"typing.ParamSpec",
		"typing.TypeVarTuple",
		"typing_extensions.TypeVar",
		"typing_extensions.ParamSpec",
		"typing_extensions.TypeVarTuple",
	}
)


def qualify(expr: ast.expr, scope: Dict[str, str]) -> Optional[str]:
	"""Return the dotted origin of a name or attribute chain.

	``None`` is returned when the expression is not a dotted name or its root
	name is bound neither in ``scope`` nor in builtins.
	"""
	if isinstance(expr, ast.Name):
		if expr.id in scope:
			return scope[expr.id]
		if hasattr(builtins, expr.id):
			return f"builtins.{expr.id}"
		return None
	if isinstance(expr, ast.Attribute):
		base = qualify(expr.value, scope)
		return f"{base}.{expr.attr}" if base else None
	return None


def parse_annotation(text: str) -> ast.expr:
	return ast.parse(text.strip(), mode="eval").body


def split_results(expr: Optional[ast.expr], scope: Dict[str, str]) -> List[Optional[ast.expr]]:
	"""Split a return annotation into its result items.

	``None`` yields no results, a fixed ``tuple[A, B, ...]`` of two or more
	items yields one result per item, and a missing annotation yields a single
	unknown result. Anything else is a single result.
	"""
	if expr is None:
		return [None]
	if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
		try:
			inner = parse_annotation(expr.value)
		except SyntaxError:
			return [expr]
		items = split_results(inner, scope)
		return [expr] if items == [inner] else items
	if isinstance(expr, ast.Constant) and expr.value is None:
		return []
	if isinstance(expr, ast.Subscript) and qualify(expr.value, scope) in TUPLE_ORIGINS:
		args = _subscript_args(expr)
		fixed = not any(isinstance(a, ast.Constant) and a.value is Ellipsis for a in args)
		if fixed and len(args) >= 2:
			return list(args)
	return [expr]


def type_of(package: LoadedPackage, annotation: Optional[str]) -> TypeNode:
	"""Resolve one annotation of ``package`` into a type node.

	A missing annotation is the implicit ``Any``.
	"""
	if annotation is None:
		return EmptyInterfaceType()
	return _resolve(_parse(package, annotation), package)


def _parse(package: LoadedPackage, text: str) -> ast.expr:
	try:
		return parse_annotation(text)
	except SyntaxError as exc:
		raise ExternalResolutionError(
			f"{package.import_path}: cannot parse annotation {text!r}: {exc.msg}"
		) from exc


def _subscript_args(expr: ast.Subscript) -> List[ast.expr]:
	if isinstance(expr.slice, ast.Tuple):
		return list(expr.slice.elts)
	return [expr.slice]


def _origin(expr: ast.expr, package: LoadedPackage) -> str:
	origin = qualify(expr, package.scope)
	if origin is None:
		raise ExternalResolutionError(
			f"{package.import_path}: cannot resolve name {ast.unparse(expr)!r}"
		)
	return origin


def _resolve(expr: ast.expr, package: LoadedPackage) -> TypeNode:
	if isinstance(expr, ast.Constant):
		if expr.value is None:
			return PrimitiveType(name="None")
		if isinstance(expr.value, str):
			return _resolve(_parse(package, expr.value), package)
		return OpaqueType(description=ast.unparse(expr))
	if isinstance(expr, (ast.Name, ast.Attribute)):
		origin = _origin(expr, package)
		if origin in ANY_ORIGINS:
			return EmptyInterfaceType()
		if isinstance(expr, ast.Attribute):
			return _member(expr, origin, package)
		return _named(origin, package)
	if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
		return _union(_flatten_union(expr), expr, package)
	if isinstance(expr, ast.Subscript) and isinstance(expr.value, (ast.Name, ast.Attribute)):
		return _subscript(expr, package)
	return OpaqueType(description=ast.unparse(expr))


def _named(origin: str, package: LoadedPackage) -> TypeNode:
	module, _, name = origin.rpartition(".")
	if module == "builtins":
		if name in PRIMITIVES:
			return PrimitiveType(name=name)
		return NamedType(package="", name=name, exported=True)
	if not module:
		return OpaqueType(description=f"module {origin} used as a type")
	if module == package.import_path and name in package.type_vars:
		return OpaqueType(description=f"type variable {name}")
	return NamedType(package=module, name=name, exported=not name.startswith("_"))


def _member(expr: ast.Attribute, origin: str, package: LoadedPackage) -> TypeNode:
	# An attribute chain names a module path only when rooted at an `import`.
	root = expr.value
	while isinstance(root, ast.Attribute):
		root = root.value
	if not isinstance(root, ast.Name):
		return OpaqueType(description=ast.unparse(expr))
	if root.id in package.modules:
		return _named(origin, package)
	if root.id in package.classes:
		path = ast.unparse(expr)
		exported = not any(part.startswith("_") for part in path.split("."))
		return NamedType(package=package.import_path, name=path, exported=exported)
	raise UnsupportedTypeError(
		f"cannot tell whether {root.id!r} in {ast.unparse(expr)!r} is a module or a class"
	)


def _subscript(expr: ast.Subscript, package: LoadedPackage) -> TypeNode:
	origin = _origin(expr.value, package)
	args = _subscript_args(expr)

	if origin in LIST_ORIGINS and len(args) == 1:
		return SliceType(elem=_resolve(args[0], package))
	if origin in DICT_ORIGINS and len(args) == 2:
		return MapType(key=_resolve(args[0], package), value=_resolve(args[1], package))
	if origin in OPTIONAL_ORIGINS and len(args) == 1:
		return PointerType(elem=_resolve(args[0], package))
	if origin in UNION_ORIGINS:
		return _union(args, expr, package)
	if origin in ANNOTATED_ORIGINS and args:
		return _resolve(args[0], package)
	if origin in CALLABLE_ORIGINS and len(args) == 2 and isinstance(args[0], ast.List):
		return _callable(args[0].elts, args[1], expr, package)
	if origin in TYPEDDICT_ORIGINS and len(args) == 1 and isinstance(args[0], ast.Dict):
		members = [ast.unparse(k) for k in args[0].keys if k is not None]
		if members:
			return NonEmptyInterfaceType(members=members)
	return OpaqueType(description=ast.unparse(expr))


def _flatten_union(expr: ast.expr) -> List[ast.expr]:
	if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
		return _flatten_union(expr.left) + _flatten_union(expr.right)
	return [expr]


def _union(members: List[ast.expr], expr: ast.expr, package: LoadedPackage) -> TypeNode:
	# Only the two-member "T or None" form has a canonical rendering.
	others = [m for m in members if not (isinstance(m, ast.Constant) and m.value is None)]
	if len(members) == 2 and len(others) == 1:
		return PointerType(elem=_resolve(others[0], package))
	return OpaqueType(description=ast.unparse(expr))


def _callable(
	params: List[ast.expr], returns: ast.expr, expr: ast.expr, package: LoadedPackage
) -> TypeNode:
	resolved: List[TypeNode] = []
	variadic = False
	for index, param in enumerate(params):
		if isinstance(param, ast.Starred):
			elem = _variadic_elem(param.value, package)
			if elem is None or index != len(params) - 1:
				return OpaqueType(description=ast.unparse(expr))
			resolved.append(_resolve(elem, package))
			variadic = True
			continue
		resolved.append(_resolve(param, package))

	results = [_resolve(item, package) for item in split_results(returns, package.scope) if item is not None]
	return FunctionType(params=resolved, results=results, variadic=variadic)


def _variadic_elem(expr: ast.expr, package: LoadedPackage) -> Optional[ast.expr]:
	# *tuple[T, ...]
	if not isinstance(expr, ast.Subscript) or qualify(expr.value, package.scope) not in TUPLE_ORIGINS:
		return None
	args = _subscript_args(expr)
	if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
		return args[0]
	return None


__all__ = ["PRIMITIVES", "TYPEVAR_ORIGINS", "parse_annotation", "qualify", "split_results", "type_of"]
