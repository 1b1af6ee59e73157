"""CLI tests for the php2js entry point.

Test cases live in cli/*.tests files. Format:

    === test name
    args: --stats src out
    file: src/index.php
    <?php echo 'hi';
    file: src/lib/util.php
    <?php function f() {}
    ---
    exit: 0
    stderr-contains: processed: 2
    file-contains: out/index.js: console.log('hi');
    file-missing: src/index.js
    ---

Special directives in the input section:
    args:   CLI arguments (first line, required)
    file:   starts a source file; the lines up to the next `file:` are its
            content. Without any `file:` the body is written to input.php.

Every test runs in a fresh temporary directory holding its files.

Assertion directives in the expected section:
    exit:             exact exit code
    stderr-contains:  stderr must contain substring
    stderr-empty:     stderr must be empty
    stdout-contains:  stdout must contain substring
    file-contains:    `path: text`, the written file must contain text
    file-missing:     the path must not exist
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

CLI_DIR = Path(__file__).parent / "cli"
ROOT_DIR = Path(__file__).parent.parent


def parse_cli_test_file(path: Path) -> list[tuple[str, dict]]:
    """Parse a .tests file into (name, spec) tuples.

    Each spec dict has keys: args, files, assertions.
    """
    lines = path.read_text().split("\n")
    result: list[tuple[str, dict]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            spec = _parse_spec(input_lines, expected_lines)
            result.append((test_name, spec))
        else:
            i += 1
    return result


def _parse_spec(input_lines: list[str], expected_lines: list[str]) -> dict:
    """Parse input + expected lines into a test spec dict."""
    spec: dict = {
        "args": [],
        "files": {},
        "assertions": [],
    }
    body_start = 0
    if input_lines and input_lines[0].startswith("args:"):
        args_str = input_lines[0][5:].strip()
        spec["args"] = args_str.split() if args_str else []
        body_start = 1

    current: str | None = None
    body: list[str] = []
    for line in input_lines[body_start:]:
        if line.startswith("file:"):
            if current is not None:
                spec["files"][current] = "\n".join(body) + "\n"
            current = line[5:].strip()
            body = []
        else:
            body.append(line)
    if current is not None:
        spec["files"][current] = "\n".join(body) + "\n"
    elif any(line.strip() for line in body):
        spec["files"]["input.php"] = "\n".join(body) + "\n"

    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith("exit:"):
            spec["assertions"].append(("exit", int(line[5:].strip())))
        elif line.startswith("stderr-contains:"):
            spec["assertions"].append(("stderr-contains", line[16:].strip()))
        elif line.startswith("stderr-empty:"):
            spec["assertions"].append(("stderr-empty", None))
        elif line.startswith("stdout-contains:"):
            spec["assertions"].append(("stdout-contains", line[16:].strip()))
        elif line.startswith("file-contains:"):
            target, _, text = line[14:].strip().partition(": ")
            spec["assertions"].append(("file-contains", (target, text.strip())))
        elif line.startswith("file-missing:"):
            spec["assertions"].append(("file-missing", line[13:].strip()))
    return spec


def discover_cli_tests() -> list[tuple[str, dict]]:
    """Find all CLI tests across .tests files."""
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        tests = parse_cli_test_file(test_file)
        for name, spec in tests:
            test_id = f"{test_file.stem}/{name}"
            results.append((test_id, spec))
    return results


def run_cli(spec: dict, workdir: Path) -> subprocess.CompletedProcess[bytes]:
    """Write the spec's files under workdir and run php2js there."""
    for name, content in spec["files"].items():
        path = workdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    env = dict(os.environ)
    env["PYTHONPATH"] = str(ROOT_DIR) + os.pathsep + env.get("PYTHONPATH", "")
    cmd = [sys.executable, "-m", "php2js", *spec["args"]]
    return subprocess.run(cmd, capture_output=True, cwd=workdir, env=env)


def check_assertions(
    result: subprocess.CompletedProcess[bytes], assertions: list[tuple], workdir: Path
) -> None:
    """Check all assertions against a CLI result."""
    for kind, value in assertions:
        if kind == "exit":
            assert result.returncode == value, (
                f"expected exit {value}, got {result.returncode}"
                f"\nstderr: {result.stderr.decode(errors='replace')}"
            )
        elif kind == "stderr-contains":
            actual = result.stderr.decode(errors="replace")
            assert value in actual, (
                f"expected stderr to contain {value!r}, got {actual!r}"
            )
        elif kind == "stderr-empty":
            assert result.stderr == b"", f"expected empty stderr, got {result.stderr!r}"
        elif kind == "stdout-contains":
            actual = result.stdout.decode(errors="replace")
            assert value in actual, (
                f"expected stdout to contain {value!r}, got {actual!r}"
            )
        elif kind == "file-contains":
            target, text = value
            path = workdir / target
            assert path.exists(), (
                f"expected {target} to be written"
                f"\nstderr: {result.stderr.decode(errors='replace')}"
            )
            content = path.read_text()
            assert text in content, f"expected {target} to contain {text!r}, got:\n{content}"
        elif kind == "file-missing":
            assert not (workdir / value).exists(), f"expected {value} not to exist"


def pytest_generate_tests(metafunc):
    """Parametrize test_cli over all .tests files."""
    if "cli_spec" in metafunc.fixturenames:
        tests = discover_cli_tests()
        params = [pytest.param(spec, id=test_id) for test_id, spec in tests]
        metafunc.parametrize("cli_spec", params)


def test_cli(cli_spec: dict, tmp_path: Path) -> None:
    """Run a single CLI test case from .tests file."""
    result = run_cli(cli_spec, tmp_path)
    check_assertions(result, cli_spec["assertions"], tmp_path)
