"""Pytest configuration for the php2js codegen suite."""

from pathlib import Path

import pytest

from php2js import Options, transpile

CODEGEN_DIR = Path(__file__).parent / "codegen"


def parse_codegen_file(path: Path) -> list[tuple[str, str, dict[str, list[str]]]]:
    """Parse .tests file into (name, php, {section: [text, ...]}) tuples.

    Sections follow the input as `--- output`, `--- absent` or
    `--- options`, and a bare `---` closes the test. A section may repeat;
    each `--- output` block is matched on its own.
    """
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, dict[str, list[str]]]] = []
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
            sections: dict[str, list[str]] = {}
            while i < len(lines) and lines[i].startswith("--- "):
                section = lines[i][4:].strip()
                i += 1
                section_lines: list[str] = []
                while i < len(lines) and not lines[i].startswith("---"):
                    section_lines.append(lines[i])
                    i += 1
                sections.setdefault(section, []).append("\n".join(section_lines))
            if i < len(lines) and lines[i] == "---":
                i += 1
            result.append((test_name, "\n".join(input_lines), sections))
        else:
            i += 1
    return result


def parse_options(text: str) -> Options:
    """`key=value` lines -> Options; dashes in keys map to underscores."""
    values: dict[str, str] = {}
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition("=")
        values[key.strip().replace("-", "_")] = value.strip()
    return Options(**values)


def discover_codegen_tests() -> list[tuple[str, str, dict[str, list[str]]]]:
    """Find codegen tests, returns (test_id, php, sections)."""
    results = []
    for test_file in sorted(CODEGEN_DIR.glob("*.tests")):
        for name, php, sections in parse_codegen_file(test_file):
            if "output" not in sections and "absent" not in sections:
                pytest.fail(f"{test_file.name}:{name} has no '--- output' or '--- absent' block")
            results.append((f"{test_file.stem}/{name}", php, sections))
    return results


def pytest_generate_tests(metafunc):
    """Parametrize codegen tests over all .tests files."""
    if "codegen_input" in metafunc.fixturenames and "codegen_sections" in metafunc.fixturenames:
        params = [
            pytest.param(php, sections, id=test_id)
            for test_id, php, sections in discover_codegen_tests()
        ]
        metafunc.parametrize("codegen_input,codegen_sections", params)


@pytest.fixture
def transpiled_output(codegen_input: str, codegen_sections: dict[str, list[str]]) -> str:
    """Transpile the test's PHP input under the test's options."""
    options = parse_options("\n".join(codegen_sections.get("options", [])))
    return transpile(codegen_input, options)
