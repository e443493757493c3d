from __future__ import annotations

from datetime import timedelta

import pytest

from greentrace.domain.model import RecordKind, RecordStatus
from greentrace.domain.record_cache import CacheStatus
from greentrace.ui import cli

from tests.helpers.records import ACCOUNT, make_record, minted


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda **_: None)


def test_records_command_prints_records_and_counts(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    async def fake_load(account: str, **kwargs: object) -> list[object]:
        captured.update(account=account, **kwargs)
        return [minted("2", "7", title="Wind credits"), make_record("1", minutes_ago=5)]

    monkeypatch.setattr(cli, "load_records", fake_load)

    cli.main(["records", "--account", ACCOUNT])

    assert captured == {
        "account": ACCOUNT,
        "kind": RecordKind.MINT,
        "force": False,
        "listen": None,
    }
    out = capsys.readouterr().out
    assert "Wind credits" in out
    assert "#7" in out
    assert "2 total: 1 pending, 0 approved, 0 rejected, 1 minted, 0 exchanged" in out


def test_records_command_passes_flags(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    async def fake_load(account: str, **kwargs: object) -> list[object]:
        captured.update(kwargs)
        return [
            make_record("1", kind=RecordKind.EXCHANGE, status=RecordStatus.APPROVED),
            make_record("2", kind=RecordKind.EXCHANGE, title="Still pending"),
        ]

    monkeypatch.setattr(cli, "load_records", fake_load)

    cli.main(
        [
            "records",
            "--account",
            ACCOUNT,
            "--kind",
            "exchange",
            "--force",
            "--listen",
            "2.5",
            "--status",
            "approved",
        ]
    )

    assert captured["kind"] is RecordKind.EXCHANGE
    assert captured["force"] is True
    assert captured["listen"] == timedelta(seconds=2.5)
    assert "Still pending" not in capsys.readouterr().out


def test_non_positive_listen_window_is_a_usage_error(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    async def fake_load(*_: object, **__: object) -> list[object]:
        raise AssertionError("should not load")

    monkeypatch.setattr(cli, "load_records", fake_load)

    with pytest.raises(SystemExit) as exc:
        cli.main(["records", "--account", ACCOUNT, "--listen", "0"])

    assert exc.value.code == 2
    assert "--listen" in capsys.readouterr().err


def test_failures_exit_with_status_one(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    async def fake_load(*_: object, **__: object) -> list[object]:
        raise RuntimeError("node unreachable")

    monkeypatch.setattr(cli, "load_records", fake_load)

    with pytest.raises(SystemExit) as exc:
        cli.main(["records", "--account", ACCOUNT])

    assert exc.value.code == 1
    assert "node unreachable" in capsys.readouterr().err


def test_cache_status_command(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    async def fake_status(account: str, **kwargs: object) -> dict[RecordKind, CacheStatus]:
        captured.update(account=account, **kwargs)
        return {
            RecordKind.MINT: CacheStatus(has_cache=True, cache_count=4, cache_valid=False),
            RecordKind.EXCHANGE: CacheStatus(has_cache=False, cache_count=0, cache_valid=False),
        }

    monkeypatch.setattr(cli, "read_cache_status", fake_status)

    cli.main(["cache-status", "--account", ACCOUNT])

    assert captured["kinds"] == (RecordKind.MINT, RecordKind.EXCHANGE)
    out = capsys.readouterr().out
    assert "mint: 4 records, expired" in out
    assert "exchange: no cache" in out


def test_clear_cache_command_limits_kind(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def fake_clear(account: str, **kwargs: object) -> None:
        captured.update(account=account, **kwargs)

    monkeypatch.setattr(cli, "clear_record_cache", fake_clear)

    cli.main(["clear-cache", "--account", ACCOUNT, "--kind", "mint"])

    assert captured == {"account": ACCOUNT, "kinds": (RecordKind.MINT,)}


def test_missing_command_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main([])

    assert exc.value.code == 2
