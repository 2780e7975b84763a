"""Per-panel lock registry."""

import uuid

import pytest

from hiring_pipeline.services.panel_locks import PanelLockRegistry

pytestmark = pytest.mark.unit


def test_one_lock_per_panel():
    registry = PanelLockRegistry()
    first, second = uuid.uuid4(), uuid.uuid4()

    assert registry.lock_for(first) is registry.lock_for(first)
    assert registry.lock_for(first) is not registry.lock_for(second)


def test_discard_forgets_the_panel():
    registry = PanelLockRegistry()
    panel_id = uuid.uuid4()
    lock = registry.lock_for(panel_id)

    registry.discard(panel_id)
    registry.discard(panel_id)

    assert panel_id not in registry
    assert registry.lock_for(panel_id) is not lock
