"""Tests for helper-function strategies and the shared helper module."""

import threading

from php2js.backend.utilities import HELPERS, UtilityManager, UtilityRegistry, render_module


# ── Call rendering ──


def test_inline_call_and_definitions():
    manager = UtilityManager("inline")
    assert manager.call("empty", ["x"]) == "__empty(x)"
    assert manager.call("empty", ["y"]) == "__empty(y)"
    assert manager.used == ["empty"]
    defs = manager.inline_definitions()
    assert defs[0] == "function __empty(val) {"
    assert defs.count("function __empty(val) {") == 1
    assert manager.module_import() is None


def test_module_call_and_import():
    manager = UtilityManager("module", "php-utils")
    assert manager.call("in_array", ["a", "b"]) == "php_utils.in_array(a, b)"
    assert manager.module_import() == "import * as php_utils from './php-utils.js';"
    assert manager.inline_definitions() == []


def test_module_without_use_has_no_import():
    assert UtilityManager("module").module_import() is None


def test_none_style_fallbacks():
    manager = UtilityManager("none")
    assert manager.call("empty", ["x"]) == "!x"
    assert manager.call("empty", ["a + b"]) == "!(a + b)"
    assert manager.call("isset", ["x"]) == "(x !== undefined && x !== null)"
    assert manager.call("array_key_exists", ["'k'", "m"]) == "('k' in m)"
    assert manager.call("in_array", ["x", "xs"]) == "Object.values(xs).includes(x)"
    assert manager.call("is_array", ["v"]) == "(Array.isArray(v) || (v !== null && typeof v === 'object'))"
    assert manager.used == []
    assert manager.inline_definitions() == []


def test_unknown_style_falls_back():
    assert UtilityManager("bundle").style == "inline"


def test_register_unknown_helper_ignored():
    manager = UtilityManager()
    manager.register_function("str_contains")
    assert manager.used == []


def test_module_filename():
    assert UtilityManager("module", "helpers").module_filename == "helpers.js"
    assert UtilityManager("module", "helpers.js").module_filename == "helpers.js"


# ── Registry ──


def test_commit_publishes_to_registry():
    registry = UtilityRegistry()
    manager = UtilityManager("module", registry=registry)
    manager.call("is_array", ["v"])
    assert "is_array" not in registry
    manager.commit()
    assert registry.names() == frozenset({"is_array"})
    assert len(registry) == 1


def test_registry_concurrent_registration():
    registry = UtilityRegistry()
    names = list(HELPERS)

    def worker(i):
        for _ in range(100):
            registry.register(names[i % len(names)])

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert registry.names() == frozenset(names)


# ── Helper module ──


def test_render_module_layout():
    text = render_module(["in_array", "empty"])
    assert text.startswith("//\n// PHP Utility Functions Module\n")
    assert text.index("export function empty(val) {") < text.index("export function in_array(")
    assert text.endswith("export default {\n    empty,\n    in_array,\n};\n")


def test_generate_all_helpers(tmp_path):
    manager = UtilityManager("module")
    path = manager.generate_utility_module(tmp_path, None)
    assert path == tmp_path / "php-utils.js"
    text = path.read_text()
    for name in HELPERS:
        assert f"export function {name}(" in text


def test_generate_selected_helpers(tmp_path):
    manager = UtilityManager("module")
    text = manager.generate_utility_module(tmp_path, ["isset"]).read_text()
    assert "export function isset(...vars) {" in text
    assert "export function empty(" not in text


def test_ensure_merges_and_never_drops(tmp_path):
    UtilityManager("module").generate_utility_module(tmp_path, ["empty"])
    registry = UtilityRegistry(["in_array"])
    manager = UtilityManager("module", registry=registry)
    path = manager.ensure_utility_module(tmp_path)
    text = path.read_text()
    assert "export function empty(val) {" in text
    assert "export function in_array(" in text


def test_ensure_is_idempotent(tmp_path):
    manager = UtilityManager("module", registry=UtilityRegistry(["is_array"]))
    first = manager.ensure_utility_module(tmp_path).read_text()
    second = manager.ensure_utility_module(tmp_path).read_text()
    assert first == second


def test_ensure_skipped_for_other_styles(tmp_path):
    assert UtilityManager("inline").ensure_utility_module(tmp_path) is None
    assert list(tmp_path.iterdir()) == []
