"""公開 API 穩定性測試。"""

from __future__ import annotations

import reduxmachine


def test_all_exports_are_importable():
    for name in reduxmachine.__all__:
        assert hasattr(reduxmachine, name), name


def test_registry_imports_from_top_level():
    from reduxmachine import ActionRegistry, VoidActionBuilder

    registry = ActionRegistry()
    push = VoidActionBuilder("push")
    registry.bind(push, lambda state, action: state)

    assert "push" in registry
    assert len(registry) == 1
    assert list(registry) == ["push"]
    assert registry.freeze()["push"] is registry.get("push")
    assert registry.get("missing") is None
