from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import EngineConfig, load_config
from .errors import MustcUserError
from .loader import Engine, FilesystemLoader
from .version import tool_version

_yaml = YAML(typ="safe")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mustc",
        description="Mustache template compiler",
        add_help=True,
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("template", type=Path, help="template file")
        sp.add_argument("--config", type=Path, help="engine config (YAML)")

    sp_render = sub.add_parser("render", help="render a template to stdout")
    add_common(sp_render)
    sp_render.add_argument("--data", type=Path, help="data file (YAML or JSON)")
    sp_render.add_argument(
        "--partials",
        type=Path,
        help="partials directory (defaults to partials_dir from the config, else the template's directory)",
    )

    sp_dump = sub.add_parser("dump", help="print the compiled instruction listing")
    add_common(sp_dump)

    return p


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root = logging.getLogger("mustc")
    root.handlers[:] = [handler]
    root.setLevel(level)


def _read_text(path: Path, what: str) -> str:
    if not path.is_file():
        raise ValueError(f"{what} not found: {path}")
    return path.read_text(encoding="utf-8")


def _load_data(path: Optional[Path]) -> Any:
    """Data files are YAML; JSON documents parse as YAML too."""
    if path is None:
        return {}
    try:
        return _yaml.load(_read_text(path, "Data file"))
    except YAMLError as e:
        raise ValueError(f"Failed to parse data file {path}: {e}")


def _engine(ns: argparse.Namespace) -> Engine:
    cfg = load_config(ns.config) if ns.config else EngineConfig()
    partials_dir = getattr(ns, "partials", None)
    if partials_dir is None and cfg.partials_dir is None:
        partials_dir = ns.template.parent
    partials = FilesystemLoader(partials_dir, cfg.partials_extension) if partials_dir is not None else None
    return Engine(cfg, partials)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging(ns.verbose)

    try:
        engine = _engine(ns)
        source = _read_text(ns.template, "Template")
        program = engine.compile(source, name=ns.template.name)

        if ns.cmd == "render":
            data = _load_data(ns.data)
            sys.stdout.write(program.render(engine.new_context(data)))
            return 0

        if ns.cmd == "dump":
            sys.stdout.write(program.describe() + "\n")
            return 0

    except MustcUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
