import json
import sys
from pathlib import Path

import pytest

from jobmirror import main
from jobmirror.config.settings import Settings
from jobmirror.exceptions import UpstreamError
from jobmirror.schema import SyncResult

# ── Settings ───────────────────────────────────────────────────────────────────

def test_settings_read_prefixed_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("JOBMIRROR_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JOBMIRROR_PAGE_SIZE", "50")

    s = Settings(_env_file=None)

    assert s.page_size == 50
    assert s.database_path == tmp_path / "jobs.db"


def test_explicit_db_path_wins(tmp_path):
    s = Settings(_env_file=None, data_dir=tmp_path, db_path=tmp_path / "other.db")

    assert s.database_path == tmp_path / "other.db"
    assert Settings(_env_file=None, data_dir=Path("x")).database_path == Path("x") / "jobs.db"


def test_sync_interval_is_at_least_one_minute():
    assert Settings(_env_file=None, sync_interval_minutes=0).sync_interval_minutes == 1


# ── CLI ────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("argv,command,watch,interval", [
    (["sync"], "sync", False, None),
    (["sync", "--watch", "--interval", "5"], "sync", True, 5),
    (["status"], "status", None, None),
])
def test_parse_args(monkeypatch, argv, command, watch, interval):
    monkeypatch.setattr(sys, "argv", ["jobmirror", *argv])

    args = main.parse_args()

    assert args.command == command
    assert getattr(args, "watch", None) == watch
    assert getattr(args, "interval", None) == interval


async def test_sync_main_prints_result(monkeypatch, capsys, store):
    async def fake_sync_once(_store):
        return SyncResult(fetched=3, new=1, updated=1, expired=0)

    monkeypatch.setattr(main, "build_store", lambda: store)
    monkeypatch.setattr(main, "sync_once", fake_sync_once)

    await main.sync_main()

    out = json.loads(capsys.readouterr().out)
    assert (out["fetched"], out["new"], out["updated"], out["expired"]) == (3, 1, 1, 0)
    assert out["at"].endswith("Z")
    assert out["ms"] >= 0


async def test_sync_main_raises_outside_watch_mode(monkeypatch, store):
    async def failing_sync_once(_store):
        raise UpstreamError("alljobs fetch failed: 502")

    monkeypatch.setattr(main, "build_store", lambda: store)
    monkeypatch.setattr(main, "sync_once", failing_sync_once)

    with pytest.raises(UpstreamError):
        await main.sync_main()


def test_status_prints_store_info(monkeypatch, capsys, store):
    monkeypatch.setattr(main, "build_store", lambda: store)

    main.status_main()

    info = json.loads(capsys.readouterr().out)
    assert info["total_jobs"] == 0
    assert info["last_run"] is None
