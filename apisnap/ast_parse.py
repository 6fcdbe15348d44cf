from __future__ import annotations

import ast
import os
from typing import Dict, List, Optional, Tuple

from .errors import ExternalResolutionError
from .logging import get_logger
from .model import FieldSpec, FunctionDecl, LoadedPackage, ModuleScope
from .resolve import TYPEVAR_ORIGINS, qualify, split_results

logger = get_logger("ast_parse")

_TYPE_ALIAS = getattr(ast, "TypeAlias", ())


def _get_decorator_names(node: ast.AST) -> List[str]:
	decorators: List[str] = []
	for deco in getattr(node, "decorator_list", []) or []:
		if isinstance(deco, ast.Name):
			decorators.append(deco.id)
		elif isinstance(deco, ast.Attribute):
			# Collect dotted attribute like module.decorator
			parts: List[str] = []
			cursor = deco
			while isinstance(cursor, ast.Attribute):
				parts.append(cursor.attr)
				cursor = cursor.value  # type: ignore[assignment]
			if isinstance(cursor, ast.Name):
				parts.append(cursor.id)
			decorators.append(".".join(reversed(parts)))
		else:
			decorators.append(ast.unparse(deco))
	return decorators


def _annotation(expr: Optional[ast.expr]) -> Optional[str]:
	return ast.unparse(expr) if expr is not None else None


def _relative_base(module_name: str, is_package: bool, level: int, target: Optional[str]) -> str:
	parts = module_name.split(".")
	if not is_package:
		parts = parts[:-1]
	if level > 1:
		parts = parts[: len(parts) - (level - 1)]
	if target:
		parts.append(target)
	return ".".join(parts)


def _nested_bodies(node: ast.stmt) -> List[List[ast.stmt]]:
	# Imports under `if TYPE_CHECKING:` or `try:` still bind module-level names.
	if isinstance(node, ast.If):
		return [node.body, node.orelse]
	try_types = tuple(t for t in (ast.Try, getattr(ast, "TryStar", None)) if t is not None)
	if isinstance(node, try_types):
		bodies = [node.body, node.orelse, node.finalbody]  # type: ignore[attr-defined]
		bodies.extend(h.body for h in node.handlers)  # type: ignore[attr-defined]
		return bodies
	return []


def collect_scope(body: List[ast.stmt], module_name: str, is_package: bool) -> ModuleScope:
	"""Map every module-level binding to its dotted origin.

	Names bound by ``import`` statements and by class definitions are tracked
	separately so attribute chains can be told apart.
	"""
	scope: Dict[str, str] = {}
	kinds: Dict[str, str] = {}
	candidates: List[Tuple[str, ast.expr]] = []
	pending = [body]
	while pending:
		for node in pending.pop(0):
			if isinstance(node, ast.Import):
				for alias in node.names:
					if alias.asname:
						scope[alias.asname] = alias.name
						kinds[alias.asname] = "module"
					else:
						top = alias.name.split(".")[0]
						scope[top] = top
						kinds[top] = "module"
			elif isinstance(node, ast.ImportFrom):
				if node.level:
					base = _relative_base(module_name, is_package, node.level, node.module)
				else:
					base = node.module or ""
				for alias in node.names:
					if alias.name == "*":
						logger.debug("%s: ignoring star import from %s", module_name, base)
						continue
					bound = alias.asname or alias.name
					scope[bound] = f"{base}.{alias.name}" if base else alias.name
					kinds[bound] = "imported"
			elif isinstance(node, ast.ClassDef):
				scope[node.name] = f"{module_name}.{node.name}"
				kinds[node.name] = "class"
			elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
				scope[node.name] = f"{module_name}.{node.name}"
				kinds[node.name] = "other"
			elif isinstance(node, ast.Assign):
				for target in node.targets:
					if isinstance(target, ast.Name):
						scope[target.id] = f"{module_name}.{target.id}"
						kinds[target.id] = "other"
						if isinstance(node.value, ast.Call):
							candidates.append((target.id, node.value.func))
			elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
				scope[node.target.id] = f"{module_name}.{node.target.id}"
				kinds[node.target.id] = "other"
			elif isinstance(node, _TYPE_ALIAS):
				name = node.name.id  # type: ignore[attr-defined]
				scope[name] = f"{module_name}.{name}"
				kinds[name] = "other"
			else:
				pending.extend(_nested_bodies(node))

	type_vars = sorted(name for name, func in candidates if qualify(func, scope) in TYPEVAR_ORIGINS)
	return ModuleScope(
		bindings=scope,
		type_vars=type_vars,
		modules=sorted(n for n, k in kinds.items() if k == "module"),
		classes=sorted(n for n, k in kinds.items() if k == "class"),
	)


def _string_items(value: ast.expr) -> Optional[List[str]]:
	if not isinstance(value, (ast.List, ast.Tuple)):
		return None
	return [e.value for e in value.elts if isinstance(e, ast.Constant) and isinstance(e.value, str)]


def _extract_all(tree: ast.Module) -> Optional[List[str]]:
	# Literal `__all__ = [...]`, `__all__: list[str] = [...]`, then `+=` and `.extend(...)`.
	exports: Optional[List[str]] = None
	for node in tree.body:
		if isinstance(node, ast.Assign):
			if any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
				exports = _string_items(node.value)
		elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
			if node.target.id == "__all__" and node.value is not None:
				exports = _string_items(node.value)
		elif isinstance(node, ast.AugAssign) and isinstance(node.target, ast.Name):
			if node.target.id == "__all__" and isinstance(node.op, ast.Add) and exports is not None:
				exports.extend(_string_items(node.value) or [])
		elif isinstance(node, ast.Expr) and isinstance(node.value, ast.Call):
			func = node.value.func
			if (
				exports is not None
				and isinstance(func, ast.Attribute)
				and isinstance(func.value, ast.Name)
				and func.value.id == "__all__"
				and func.attr == "extend"
				and len(node.value.args) == 1
			):
				exports.extend(_string_items(node.value.args[0]) or [])
	return exports


def _is_generator(node: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
	pending: List[ast.AST] = list(node.body)
	while pending:
		child = pending.pop()
		if isinstance(child, (ast.Yield, ast.YieldFrom)):
			return True
		# Nested scopes own their yields.
		if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.Lambda)):
			continue
		pending.extend(ast.iter_child_nodes(child))
	return False


def _function_decl(
	node: ast.FunctionDef | ast.AsyncFunctionDef,
	scope: Dict[str, str],
	exports: Optional[List[str]],
	receiver: Optional[str] = None,
) -> FunctionDecl:
	args = node.args
	params = [
		FieldSpec(names=[a.arg], annotation=_annotation(a.annotation))
		for a in args.posonlyargs + args.args
	]
	if args.vararg is not None:
		params.append(
			FieldSpec(names=[args.vararg.arg], annotation=_annotation(args.vararg.annotation), variadic=True)
		)
	keyword_only = [FieldSpec(names=[a.arg], annotation=_annotation(a.annotation)) for a in args.kwonlyargs]
	var_keyword = None
	if args.kwarg is not None:
		var_keyword = FieldSpec(names=[args.kwarg.arg], annotation=_annotation(args.kwarg.annotation))

	results = [FieldSpec(annotation=_annotation(item)) for item in split_results(node.returns, scope)]

	exported = not node.name.startswith("_") and (exports is None or node.name in exports)
	return FunctionDecl(
		name=node.name,
		lineno=node.lineno,
		receiver=receiver,
		exported=exported,
		is_async=isinstance(node, ast.AsyncFunctionDef),
		is_generator=_is_generator(node),
		decorators=_get_decorator_names(node),
		params=params,
		results=results,
		keyword_only=keyword_only,
		var_keyword=var_keyword,
	)


def parse_python_module(module_name: str, path: str, text: str) -> LoadedPackage:
	try:
		tree = ast.parse(text, filename=path)
	except SyntaxError as exc:
		raise ExternalResolutionError(f"{path}:{exc.lineno}: {exc.msg}") from exc

	is_package = os.path.basename(path) == "__init__.py"
	scope = collect_scope(tree.body, module_name, is_package)
	exports = _extract_all(tree)

	declarations: List[FunctionDecl] = []
	for node in tree.body:
		if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
			declarations.append(_function_decl(node, scope.bindings, exports))
		elif isinstance(node, ast.ClassDef):
			for sub in node.body:
				if isinstance(sub, (ast.FunctionDef, ast.AsyncFunctionDef)):
					declarations.append(_function_decl(sub, scope.bindings, exports, receiver=node.name))

	return LoadedPackage(
		import_path=module_name,
		name=module_name.rsplit(".", 1)[-1],
		path=path,
		declarations=declarations,
		scope=scope.bindings,
		type_vars=scope.type_vars,
		modules=scope.modules,
		classes=scope.classes,
		exports=exports,
	)


def load_python_module(module_name: str, path: str) -> LoadedPackage:
	try:
		with open(path, "r", encoding="utf-8") as fh:
			text = fh.read()
	except (OSError, UnicodeDecodeError) as exc:
		raise ExternalResolutionError(f"cannot read {path}: {exc}") from exc
	return parse_python_module(module_name, path, text)
