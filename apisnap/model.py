from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# Resolved static types, as produced by the annotation resolver.


class PrimitiveType(BaseModel):
	kind: Literal["primitive"] = "primitive"
	name: str


class NamedType(BaseModel):
	kind: Literal["named"] = "named"
	package: str = ""
	name: str
	exported: bool = True


class PointerType(BaseModel):
	kind: Literal["pointer"] = "pointer"
	elem: TypeNode


class SliceType(BaseModel):
	kind: Literal["slice"] = "slice"
	elem: TypeNode


class MapType(BaseModel):
	kind: Literal["map"] = "map"
	key: TypeNode
	value: TypeNode


class FunctionType(BaseModel):
	kind: Literal["function"] = "function"
	params: List[TypeNode] = []
	results: List[TypeNode] = []
	variadic: bool = False


class EmptyInterfaceType(BaseModel):
	kind: Literal["empty_interface"] = "empty_interface"


class NonEmptyInterfaceType(BaseModel):
	kind: Literal["interface"] = "interface"
	members: List[str] = []


class OpaqueType(BaseModel):
	kind: Literal["opaque"] = "opaque"
	description: str


TypeNode = Annotated[
	Union[
		PrimitiveType,
		NamedType,
		PointerType,
		SliceType,
		MapType,
		FunctionType,
		EmptyInterfaceType,
		NonEmptyInterfaceType,
		OpaqueType,
	],
	Field(discriminator="kind"),
]


# Canonical, re-emittable types.


class CanonIdent(BaseModel):
	kind: Literal["ident"] = "ident"
	name: str


class CanonQualified(BaseModel):
	kind: Literal["qualified"] = "qualified"
	module: str
	name: str


class CanonOptional(BaseModel):
	kind: Literal["optional"] = "optional"
	elem: CanonicalType


class CanonList(BaseModel):
	kind: Literal["list"] = "list"
	elem: CanonicalType


class CanonDict(BaseModel):
	kind: Literal["dict"] = "dict"
	key: CanonicalType
	value: CanonicalType


class CanonCallable(BaseModel):
	kind: Literal["callable"] = "callable"
	params: List[CanonicalType] = []
	results: List[CanonicalType] = []
	variadic: bool = False


class CanonAny(BaseModel):
	kind: Literal["any"] = "any"


CanonicalType = Annotated[
	Union[CanonIdent, CanonQualified, CanonOptional, CanonList, CanonDict, CanonCallable, CanonAny],
	Field(discriminator="kind"),
]


# Syntax-level view of a loaded module.


class FieldSpec(BaseModel):
	names: List[str] = []
	annotation: Optional[str] = None
	variadic: bool = False


class FunctionDecl(BaseModel):
	name: str
	lineno: int = 0
	receiver: Optional[str] = None
	exported: bool = True
	is_async: bool = False
	is_generator: bool = False
	decorators: List[str] = []
	params: List[FieldSpec] = []
	results: List[FieldSpec] = []
	keyword_only: List[FieldSpec] = []
	var_keyword: Optional[FieldSpec] = None


class ModuleScope(BaseModel):
	bindings: Dict[str, str] = {}
	type_vars: List[str] = []
	modules: List[str] = []
	classes: List[str] = []


class LoadedPackage(BaseModel):
	import_path: str
	name: str
	path: str
	declarations: List[FunctionDecl] = []
	scope: Dict[str, str] = {}
	type_vars: List[str] = []
	modules: List[str] = []
	classes: List[str] = []
	exports: Optional[List[str]] = None


# Snapshot output.


class Declaration(BaseModel):
	name: str
	package: str
	params: List[CanonicalType] = []
	variadic: bool = False
	results: List[CanonicalType] = []
	is_async: bool = False
	is_generator: bool = False


class SnapshotEntry(BaseModel):
	name: str
	declaration: Declaration
	rendered: str = ""


class PackageSnapshot(BaseModel):
	package: str
	package_name: str
	output_path: str
	entries: List[SnapshotEntry] = []
	source: str = ""


for _model in (PointerType, SliceType, MapType, FunctionType, CanonOptional, CanonList, CanonDict, CanonCallable, Declaration):
	_model.model_rebuild()
