from __future__ import annotations

import os
from typing import List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from apisnap.driver import DEFAULT_PATTERNS, run
from apisnap.errors import ApiSnapError, ConfigError, ExternalResolutionError
from apisnap.logging import get_logger
from apisnap.model import PackageSnapshot
from apisnap.project import load_project


app = FastAPI(title="apisnap")

logger = get_logger("api")


class SnapshotRequest(BaseModel):
	root_path: str
	patterns: List[str] = DEFAULT_PATTERNS
	write: bool = False


class SnapshotResponse(BaseModel):
	module: str
	snapshots: List[PackageSnapshot]


@app.post("/snapshot", response_model=SnapshotResponse)
def snapshot(req: SnapshotRequest) -> SnapshotResponse:
	root = os.path.abspath(req.root_path)
	if not os.path.isdir(root):
		raise HTTPException(status_code=400, detail=f"Invalid root_path: {root}")

	try:
		project = load_project(root)
		snapshots = run(
			project,
			req.patterns,
			base=root,
			write=req.write,
			on_package=lambda path: logger.info("processing %s", path),
		)
	except (ConfigError, ExternalResolutionError) as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	except ApiSnapError as exc:
		raise HTTPException(status_code=422, detail=str(exc)) from exc

	return SnapshotResponse(module=project.module, snapshots=snapshots)


def create_app() -> FastAPI:
	return app
