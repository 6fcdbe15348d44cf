from __future__ import annotations

from typing import List, Optional, Sequence

from .convert import convert
from .errors import ApiSnapError, UnsupportedTypeError
from .logging import get_logger
from .model import CanonicalType, Declaration, FieldSpec, FunctionDecl, LoadedPackage
from .resolve import type_of

logger = get_logger("extract")

OVERLOAD_DECORATORS = {"overload", "typing.overload", "typing_extensions.overload"}


def _expand(package: LoadedPackage, field: FieldSpec) -> List[CanonicalType]:
	# A field binding no names is a single unnamed slot.
	canonical = convert(type_of(package, field.annotation))
	return [canonical] * max(len(field.names), 1)


def _results(package: LoadedPackage, fields: Sequence[FieldSpec]) -> List[CanonicalType]:
	if len(fields) == 1:
		return [convert(type_of(package, fields[0].annotation))]
	results: List[CanonicalType] = []
	for field in fields:
		results.extend(_expand(package, field))
	return results


def _build(package: LoadedPackage, decl: FunctionDecl) -> Declaration:
	if OVERLOAD_DECORATORS.intersection(decl.decorators):
		raise UnsupportedTypeError("overloaded functions are unsupported")
	if decl.keyword_only:
		names = ", ".join(n for f in decl.keyword_only for n in f.names)
		raise UnsupportedTypeError(f"keyword-only parameters are unsupported: {names}")
	if decl.var_keyword is not None:
		raise UnsupportedTypeError("variadic keyword parameters are unsupported")

	params: List[CanonicalType] = []
	variadic = False
	for field in decl.params:
		params.extend(_expand(package, field))
		variadic = field.variadic

	return Declaration(
		name=decl.name,
		package=package.import_path,
		params=params,
		variadic=variadic,
		results=_results(package, decl.results),
		is_async=decl.is_async,
		is_generator=decl.is_generator,
	)


def extract(package: LoadedPackage, decl: FunctionDecl) -> Optional[Declaration]:
	"""Build the canonical signature of one top-level function.

	Methods and unexported functions yield ``None``. Conversion failures are
	re-raised with the declaration's qualified name attached.
	"""
	if decl.receiver is not None or not decl.exported:
		logger.debug("skipping %s.%s", package.import_path, decl.name)
		return None

	try:
		return _build(package, decl)
	except ApiSnapError as exc:
		exc.declaration = f"{package.import_path}.{decl.name} (line {decl.lineno})"
		raise


__all__ = ["extract"]
