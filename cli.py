from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from apisnap.driver import DEFAULT_PATTERNS, run
from apisnap.errors import ApiSnapError
from apisnap.logging import configure_logging
from apisnap.project import load_project


def cmd_generate(args: argparse.Namespace) -> int:
	configure_logging(verbose=args.verbose, log_file=args.log_file)
	cwd = os.getcwd()
	project = load_project(cwd)
	run(project, args.patterns or DEFAULT_PATTERNS, base=cwd)
	return 0


def cmd_serve(args: argparse.Namespace) -> int:
	configure_logging(verbose=args.verbose)
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
	return 0


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="apisnap")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pg = sub.add_parser("generate", help="Write an API snapshot for every matched package")
	pg.add_argument("patterns", nargs="*", help="Package patterns (default: ./...)")
	pg.add_argument("-v", "--verbose", action="store_true")
	pg.add_argument("--log-file", type=Path, help="Also write log records to this file")
	pg.set_defaults(func=cmd_generate)

	ps = sub.add_parser("serve", help="Run FastAPI server")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=8000)
	ps.add_argument("--reload", action="store_true")
	ps.add_argument("-v", "--verbose", action="store_true")
	ps.set_defaults(func=cmd_serve)
	return parser


def main(argv: Optional[List[str]] = None) -> int:
	args = _build_parser().parse_args(argv)
	try:
		return args.func(args)
	except ApiSnapError as exc:
		print(f"apisnap: error: {exc}", file=sys.stderr)
		return 1


if __name__ == "__main__":
	sys.exit(main())
