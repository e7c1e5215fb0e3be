from __future__ import annotations

from datetime import date
from pathlib import Path

from storage.rotating import RotatingFileStore, build_default_store


class FakeClock:
    def __init__(self, current: date) -> None:
        self.current = current

    def __call__(self) -> date:
        return self.current


def test_first_append_creates_missing_directories(tmp_path: Path) -> None:
    base = tmp_path / "nested" / "store"
    store = RotatingFileStore(base, today=FakeClock(date(2024, 1, 1)))

    assert store.append("first") is True

    target = base / "2024-01-01.csv"
    assert target.read_text() == "first\n"
    assert store.current_path == target
    assert store.current_date == "2024-01-01"
    store.close()


def test_rollover_closes_previous_file_before_opening_next(tmp_path: Path) -> None:
    clock = FakeClock(date(2024, 1, 1))
    store = RotatingFileStore(tmp_path, today=clock)

    store.append("day-one-a")
    store.append("day-one-b")
    first_handle = store._handle  # type: ignore[attr-defined]

    clock.current = date(2024, 1, 2)
    store.append("day-two")

    assert first_handle is not None and first_handle.closed
    assert (tmp_path / "2024-01-01.csv").read_text() == "day-one-a\nday-one-b\n"
    assert (tmp_path / "2024-01-02.csv").read_text() == "day-two\n"
    assert store.current_date == "2024-01-02"
    store.close()


def test_append_keeps_existing_file_content(tmp_path: Path) -> None:
    (tmp_path / "2024-01-01.csv").write_text("earlier\n")
    store = RotatingFileStore(tmp_path, today=FakeClock(date(2024, 1, 1)))

    store.append("later")
    store.close()

    assert (tmp_path / "2024-01-01.csv").read_text() == "earlier\nlater\n"


def test_directory_failure_drops_line_and_retries_next_append(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = RotatingFileStore(blocker / "store", today=FakeClock(date(2024, 1, 1)))

    assert store.append("lost") is False
    assert store.current_path is None

    blocker.unlink()
    assert store.append("kept") is True
    store.close()

    assert (blocker / "store" / "2024-01-01.csv").read_text() == "kept\n"


def test_open_failure_drops_line_and_stays_closed(tmp_path: Path) -> None:
    (tmp_path / "2024-01-01.csv").mkdir()
    store = RotatingFileStore(tmp_path, today=FakeClock(date(2024, 1, 1)))

    assert store.append("lost") is False
    assert store.current_date is None

    (tmp_path / "2024-01-01.csv").rmdir()
    assert store.append("kept") is True
    store.close()

    assert (tmp_path / "2024-01-01.csv").read_text() == "kept\n"


def test_close_is_idempotent(tmp_path: Path) -> None:
    store = RotatingFileStore(tmp_path, today=FakeClock(date(2024, 1, 1)))
    store.close()
    store.append("x")
    store.close()
    store.close()

    assert store.current_path is None


def test_default_store_maps_placeholder_to_cwd(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    build_default_store.cache_clear()
    try:
        assert build_default_store("default").base_dir == tmp_path / "store"
        assert build_default_store(str(tmp_path / "out")).base_dir == tmp_path / "out"
    finally:
        build_default_store.cache_clear()
