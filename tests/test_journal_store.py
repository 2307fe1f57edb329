from __future__ import annotations

from datetime import date

import pytest

from momentum_exit.journal.store import JournalStore


def test_append_and_load_recent(tmp_path: object) -> None:
    store = JournalStore(tmp_path)
    store.append("exit_check_start", {"trade_count": 2})
    store.append("order", {"trade_id": "t1"})
    store.append("exit_check_end", {"status": "exits_triggered"})

    events = store.load_recent(2)
    assert [e["event_type"] for e in events] == ["order", "exit_check_end"]
    assert store.load_recent(0) == []
    assert store.load_recent(5, event_type="order")[0]["payload"] == {"trade_id": "t1"}


def test_pending_exit_trade_ids(tmp_path: object) -> None:
    store = JournalStore(tmp_path)
    store.append("exit_signal", {"trade_id": "t0"})
    store.append("order", {"trade_id": "t1"})
    store.append("order", {"trade_id": 42})
    assert store.pending_exit_trade_ids() == {"t1", "42"}
    assert store.pending_exit_trade_ids(date(2000, 1, 1)) == set()


def test_unsupported_event_type_rejected(tmp_path: object) -> None:
    store = JournalStore(tmp_path)
    with pytest.raises(ValueError, match="unsupported_event_type"):
        store.append("candidate", {})
