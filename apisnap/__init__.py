"""Snapshot the exported function surface of Python packages.

Modules:
- fs_scan.py: Pattern expansion and module-name discovery.
- ast_parse.py: Module parsing into declarations and a scope table.
- resolve.py: Static resolution of annotations into type nodes.
- convert.py: Conversion of type nodes into canonical types.
- extract.py: Canonical signatures for exported top-level functions.
- assemble.py / render.py: Deterministic snapshot modules per package.
- driver.py: Package selection and the end-to-end run.
- project.py / config.py: Project root, module path and [tool.apisnap] settings.
- model.py: Data structures shared by every stage.
"""

__all__ = [
	"assemble",
	"ast_parse",
	"config",
	"convert",
	"driver",
	"errors",
	"extract",
	"fs_scan",
	"model",
	"project",
	"render",
	"resolve",
]
