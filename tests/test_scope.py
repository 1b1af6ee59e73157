"""Tests for backend scope tracking."""

from php2js.backend.scope import Scope, ScopeTracker


def test_module_is_top_level():
    tracker = ScopeTracker()
    assert tracker.scope is Scope.NONE
    assert tracker.is_top_level()


def test_conditional_blocks_export():
    tracker = ScopeTracker()
    with tracker.conditional():
        assert not tracker.is_top_level()
        with tracker.conditional():
            assert tracker.conditional_depth == 2
    assert tracker.conditional_depth == 0
    assert tracker.is_top_level()


def test_namespace_blocks_export():
    tracker = ScopeTracker()
    with tracker.enter(Scope.NAMESPACE):
        assert not tracker.is_top_level()
        assert tracker.is_module_level()
    assert tracker.scope is Scope.NONE


def test_function_resets_and_restores_depth():
    tracker = ScopeTracker()
    with tracker.conditional():
        with tracker.enter(Scope.FUNCTION):
            assert tracker.conditional_depth == 0
            assert not tracker.is_top_level()
        assert tracker.conditional_depth == 1
        assert tracker.scope is Scope.NONE


def test_namespace_keeps_depth():
    tracker = ScopeTracker()
    with tracker.conditional():
        with tracker.enter(Scope.NAMESPACE):
            assert tracker.conditional_depth == 1
            assert not tracker.is_module_level()


def test_restored_after_exception():
    tracker = ScopeTracker()
    try:
        with tracker.enter(Scope.CLASS_METHOD):
            with tracker.conditional():
                raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert tracker.scope is Scope.NONE
    assert tracker.conditional_depth == 0
