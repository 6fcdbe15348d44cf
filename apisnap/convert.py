"""Conversion of resolved type nodes into canonical, re-emittable types."""

from __future__ import annotations

from .errors import UnimplementedTypeShapeError, UnsupportedTypeError
from .model import (
	CanonAny,
	CanonCallable,
	CanonDict,
	CanonicalType,
	CanonIdent,
	CanonList,
	CanonOptional,
	CanonQualified,
	EmptyInterfaceType,
	FunctionType,
	MapType,
	NamedType,
	NonEmptyInterfaceType,
	OpaqueType,
	PointerType,
	PrimitiveType,
	SliceType,
	TypeNode,
)


def describe(node: TypeNode) -> str:
	if isinstance(node, NamedType):
		return f"{node.package}.{node.name}" if node.package else node.name
	if isinstance(node, OpaqueType):
		return node.description
	return node.kind


def convert(node: TypeNode) -> CanonicalType:
	"""Map a type node to its canonical form.

	Raises UnsupportedTypeError for types an external consumer could not name,
	and UnimplementedTypeShapeError for shapes outside the supported set.
	"""
	if isinstance(node, PrimitiveType):
		return CanonIdent(name=node.name)
	if isinstance(node, NamedType):
		if not node.package:
			return CanonIdent(name=node.name)
		if not node.exported:
			raise UnsupportedTypeError(f"cannot use unexported type: {describe(node)}")
		return CanonQualified(module=node.package, name=node.name)
	if isinstance(node, PointerType):
		return CanonOptional(elem=convert(node.elem))
	if isinstance(node, SliceType):
		return CanonList(elem=convert(node.elem))
	if isinstance(node, MapType):
		return CanonDict(key=convert(node.key), value=convert(node.value))
	if isinstance(node, FunctionType):
		params = [convert(p) for p in node.params]
		results = [convert(r) for r in node.results]
		return CanonCallable(params=params, results=results, variadic=node.variadic)
	if isinstance(node, EmptyInterfaceType):
		return CanonAny()
	if isinstance(node, NonEmptyInterfaceType):
		raise UnsupportedTypeError("anonymous interfaces are unsupported")
	if isinstance(node, OpaqueType):
		raise UnimplementedTypeShapeError(f"unimplemented type shape: {node.description}")
	raise UnimplementedTypeShapeError(f"unimplemented type node: {node!r}")


__all__ = ["convert", "describe"]
