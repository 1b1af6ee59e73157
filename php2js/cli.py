"""Command-line driver: transpile PHP files or directory trees to ES modules."""

from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from .backend.utilities import UtilityManager, UtilityRegistry
from .errors import TranspileError
from .options import Options
from .transpiler import transpile

logger = logging.getLogger(__name__)

LOG_LEVELS: list[str] = ["debug", "info", "warning", "error"]

_TRUE = ("true", "yes", "1", "on")
_FALSE = ("false", "no", "0", "off")

USAGE: str = """\
php2js [OPTIONS] [SRC] [DST]

Options:
  --src PATH              Source .php file or directory (or positional SRC)
  --dst PATH              Destination file or directory (default: alongside)
  --recurse [BOOL]        Recurse into subdirectories (default: true)
  --no-recurse            Do not recurse into subdirectories
  --stats                 Print a processed/written/errors summary
  --log-level LEVEL       debug, info, warning, error (default: info)
  --format                Run prettier (via npx) on written files, if available
  --interface-style S     abstract-class, comment, jsdoc, empty-class
  --utility-style S       inline, module, none
  --utility-module NAME   Helper module name for the module style (default: php-utils)
  --unset-style S         delete, comment
  --define-style S        const, export-const, comment
  -h, --help              Show this help message
"""

_VALUE_FLAGS: dict[str, str] = {
    "--src": "src",
    "--dst": "dst",
    "--log-level": "log_level",
    "--interface-style": "interface_style",
    "--utility-style": "utility_style",
    "--utility-module": "utility_module",
    "--unset-style": "unset_style",
    "--define-style": "define_style",
}


@dataclass
class Args:
    src: str | None = None
    dst: str | None = None
    recurse: bool = True
    stats: bool = False
    log_level: str = "info"
    format: bool = False
    interface_style: str = "abstract-class"
    utility_style: str = "inline"
    utility_module: str = "php-utils"
    unset_style: str = "comment"
    define_style: str = "const"

    def options(self) -> Options:
        return Options(
            interface_style=self.interface_style,
            utility_style=self.utility_style,
            utility_module=self.utility_module,
            unset_style=self.unset_style,
            define_style=self.define_style,
        )


@dataclass
class Stats:
    processed: int = 0
    written: int = 0
    errors: int = 0


def _usage_error(msg: str) -> None:
    print("error: " + msg, file=sys.stderr)
    print(USAGE, end="", file=sys.stderr)
    sys.exit(2)


def parse_args(argv: list[str]) -> Args:
    """Parse command-line arguments; exits with status 2 on usage errors."""
    args = Args()
    positional: list[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg in _VALUE_FLAGS:
            if i + 1 >= len(argv):
                _usage_error(arg + " requires an argument")
            setattr(args, _VALUE_FLAGS[arg], argv[i + 1])
            i += 2
        elif arg == "--recurse":
            args.recurse = True
            i += 1
            if i < len(argv) and argv[i].lower() in _TRUE + _FALSE:
                args.recurse = argv[i].lower() in _TRUE
                i += 1
        elif arg.startswith("--recurse="):
            value = arg.split("=", 1)[1].lower()
            if value not in _TRUE + _FALSE:
                _usage_error("invalid --recurse value '" + value + "'")
            args.recurse = value in _TRUE
            i += 1
        elif arg == "--no-recurse":
            args.recurse = False
            i += 1
        elif arg == "--stats":
            args.stats = True
            i += 1
        elif arg == "--format":
            args.format = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            _usage_error("unknown flag '" + arg + "'")
        else:
            positional.append(arg)
            i += 1
    if positional and args.src is None:
        args.src = positional.pop(0)
    if positional and args.dst is None:
        args.dst = positional.pop(0)
    if positional:
        _usage_error("unexpected argument '" + positional[0] + "'")
    if args.src is None:
        _usage_error("no source given")
    if args.log_level.lower() not in LOG_LEVELS:
        _usage_error("unknown log level '" + args.log_level + "'")
    return args


def discover(src: Path, dst: Path | None, recurse: bool) -> list[tuple[Path, Path]]:
    """Pair each PHP source with its output path, keeping relative layout."""
    if src.is_file():
        if dst is None:
            return [(src, src.with_suffix(".js"))]
        if dst.suffix == ".js":
            return [(src, dst)]
        return [(src, dst / src.with_suffix(".js").name)]
    pattern = "**/*.php" if recurse else "*.php"
    root = dst if dst is not None else src
    jobs: list[tuple[Path, Path]] = []
    for path in sorted(src.glob(pattern)):
        if path.is_file():
            jobs.append((path, root / path.relative_to(src).with_suffix(".js")))
    return jobs


def format_output(path: Path) -> None:
    """Apply prettier (optional, no-fail)."""
    try:
        subprocess.run(["npx", "--no-install", "prettier", "--write", str(path)], capture_output=True, timeout=30)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("formatter unavailable for %s", path)


def transpile_file(php_path: Path, js_path: Path, options: Options, registry: UtilityRegistry) -> bool:
    """Transpile one file. Returns True if output was written."""
    try:
        source = php_path.read_text(encoding="utf-8")
    except (OSError, ValueError) as e:
        print("error: cannot read '" + str(php_path) + "': " + str(e), file=sys.stderr)
        return False
    try:
        code = transpile(source, options, filename=str(php_path), registry=registry)
    except TranspileError as e:
        print("error: " + str(e), file=sys.stderr)
        return False
    try:
        js_path.parent.mkdir(parents=True, exist_ok=True)
        js_path.write_text(code, encoding="utf-8")
    except OSError as e:
        print("error: cannot write '" + str(js_path) + "': " + str(e), file=sys.stderr)
        return False
    logger.info("wrote %s", js_path)
    return True


def run(args: Args) -> int:
    src = Path(args.src)
    if not src.exists():
        print("error: source not found '" + args.src + "'", file=sys.stderr)
        return 1
    dst = Path(args.dst) if args.dst is not None else None
    options = args.options()
    registry = UtilityRegistry()
    stats = Stats()
    jobs = discover(src, dst, args.recurse)
    if not jobs:
        logger.warning("no .php files under %s", src)
    for php_path, js_path in jobs:
        stats.processed += 1
        if transpile_file(php_path, js_path, options, registry):
            stats.written += 1
            if args.format:
                format_output(js_path)
        else:
            stats.errors += 1
    if options.utility_style == "module" and len(registry) > 0:
        module_dir = jobs[0][1].parent if src.is_file() else (dst if dst is not None else src)
        manager = UtilityManager(options.utility_style, options.utility_module, registry)
        path = manager.ensure_utility_module(module_dir)
        if path is not None and args.format:
            format_output(path)
    if args.stats:
        print(
            "processed: "
            + str(stats.processed)
            + ", written: "
            + str(stats.written)
            + ", errors: "
            + str(stats.errors),
            file=sys.stderr,
        )
    if stats.errors > 0:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
