"""
文件轮转集成测试

在真实文件系统上验证阈值触发、备份重编号与淘汰、临时文件处理以及
轮转/归档失败时的降级行为。
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from rotolog import Logger
from rotolog.rotation import MEGABYTE, RotationManager


def read(path: str | Path) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def backups_of(log_path: str) -> list[int]:
    directory, base = os.path.split(log_path)
    found = []
    for name in os.listdir(directory):
        suffix = name[len(base) + 1 :] if name.startswith(base + ".") else ""
        if suffix.isdigit():
            found.append(int(suffix))
    return sorted(found)


class TestThreshold:
    def test_rotates_exactly_when_limit_reached(self, make_logger, log_path) -> None:
        """累计字节数达到上限时才轮转，之前不会"""
        logger = make_logger(log_path, max_bytes=10, backups=3, fmt="${message}")
        logger.info("12345")
        logger.info("1234")
        logger.wait_archival()
        assert backups_of(log_path) == []
        assert logger.size == 9

        logger.info("1")
        logger.wait_archival()
        assert backups_of(log_path) == [1]
        assert read(log_path + ".1") == "1234512341"
        assert read(log_path) == ""
        assert logger.size == 0

    def test_counter_starts_at_existing_file_size(self, make_logger, log_path) -> None:
        Path(log_path).write_text("hello")
        logger = make_logger(log_path, max_bytes=100, fmt="${message}")
        assert logger.size == 5
        logger.info("abc")
        assert logger.size == 8
        assert read(log_path) == "helloabc"

    def test_max_size_is_in_megabytes(self, make_logger, log_path) -> None:
        logger = make_logger(log_path, max_size=2, backups=1)
        assert logger.max_bytes == 2 * MEGABYTE

    def test_zero_limit_never_rotates(self, make_logger, log_path) -> None:
        logger = make_logger(log_path, backups=3, fmt="${message}\n")
        for i in range(5):
            logger.info(i)
        logger.wait_archival()
        assert backups_of(log_path) == []
        assert read(log_path) == "0\n1\n2\n3\n4\n"

    def test_print_counts_towards_limit(self, make_logger, log_path) -> None:
        logger = make_logger(log_path, max_bytes=4, backups=1)
        logger.print("abc")
        logger.wait_archival()
        assert read(log_path + ".1") == "abc\n"

    def test_stream_only_logger_has_no_rotation(self, make_logger, stream) -> None:
        logger = make_logger(max_bytes=1, backups=2, output=stream, fmt="${message}")
        logger.info("long record")
        assert logger.filename == ""
        assert logger.size == 0


class TestRetention:
    def test_scenario_three_records_two_backups(self, make_logger, log_path) -> None:
        """maxSize=1, backups=2，三条记录后只剩 .1 与 .2，最旧的被淘汰"""
        logger = make_logger(log_path, max_bytes=1, backups=2, fmt="${message}\n")
        for name in ("r1", "r2", "r3"):
            logger.info(name)
        logger.wait_archival()

        assert backups_of(log_path) == [1, 2]
        assert read(log_path + ".1") == "r3\n"
        assert read(log_path + ".2") == "r2\n"
        assert read(log_path) == ""
        assert not os.path.exists(log_path + ".tmp")

    @pytest.mark.parametrize("rotations", [1, 2, 3, 5])
    @pytest.mark.parametrize("retention", [1, 2, 3])
    def test_backup_count_is_min_of_rotations_and_retention(
        self, make_logger, log_path, rotations: int, retention: int
    ) -> None:
        logger = make_logger(log_path, max_bytes=1, backups=retention, fmt="${message}")
        for i in range(1, rotations + 1):
            logger.info(f"rec{i}")
        logger.wait_archival()

        kept = min(rotations, retention)
        assert backups_of(log_path) == list(range(1, kept + 1))
        for index in range(1, kept + 1):
            assert read(f"{log_path}.{index}") == f"rec{rotations - index + 1}"

    def test_zero_backups_discards_rotated_file(self, make_logger, log_path) -> None:
        logger = make_logger(log_path, max_bytes=1, backups=0, fmt="${message}")
        logger.info("gone")
        logger.wait_archival()
        assert backups_of(log_path) == []
        assert not os.path.exists(log_path + ".tmp")

    def test_stale_tmp_is_replaced(self, make_logger, log_path) -> None:
        """上次崩溃遗留的 .tmp 在轮转前被删除"""
        Path(log_path + ".tmp").write_text("stale")
        logger = make_logger(log_path, max_bytes=1, backups=2, fmt="${message}")
        logger.info("fresh")
        logger.wait_archival()
        assert read(log_path + ".1") == "fresh"

    def test_unrelated_files_are_left_alone(self, make_logger, log_path, tmp_path) -> None:
        for name in ("app.log.old", "app.log.0", "other.log.1", "app.logx.1"):
            (tmp_path / name).write_text(name)
        (tmp_path / "app.log.7").mkdir()
        logger = make_logger(log_path, max_bytes=1, backups=1, fmt="${message}")
        logger.info("x")
        logger.wait_archival()
        for name in ("app.log.old", "app.log.0", "other.log.1", "app.logx.1"):
            assert (tmp_path / name).read_text() == name
        assert (tmp_path / "app.log.7").is_dir()

    def test_zero_padded_names_are_not_backups(self, make_logger, log_path, tmp_path) -> None:
        """带前导零的文件名不视为备份，轮转照常完成且不丢记录"""
        (tmp_path / "app.log.01").write_text("stray")
        logger = make_logger(log_path, max_bytes=1, backups=3, fmt="${message}\n")
        logger.info("first")
        logger.wait_archival()
        logger.info("second")
        logger.wait_archival()
        assert sorted(os.listdir(tmp_path)) == ["app.log", "app.log.01", "app.log.1", "app.log.2"]
        assert read(log_path + ".1") == "second\n"
        assert read(log_path + ".2") == "first\n"
        assert (tmp_path / "app.log.01").read_text() == "stray"
        assert read(log_path) == ""

    def test_backup_vanishing_mid_archival_is_skipped(
        self, make_logger, log_path, monkeypatch
    ) -> None:
        """列目录后消失的备份被跳过，.tmp 仍归档为 .1"""
        Path(log_path + ".1").write_text("old1")
        listing = RotationManager.backup_indices

        def listing_with_ghost(self):
            return [5, *listing(self)]

        monkeypatch.setattr(RotationManager, "backup_indices", listing_with_ghost)
        logger = make_logger(log_path, max_bytes=1, backups=3, fmt="${message}\n")
        logger.info("new")
        logger.wait_archival()
        assert backups_of(log_path) == [1, 2]
        assert read(log_path + ".1") == "new\n"
        assert read(log_path + ".2") == "old1"
        assert read(log_path) == ""

    def test_existing_backups_are_shifted(self, make_logger, log_path) -> None:
        Path(log_path + ".1").write_text("old1")
        Path(log_path + ".2").write_text("old2")
        logger = make_logger(log_path, max_bytes=1, backups=3, fmt="${message}")
        logger.info("new")
        logger.wait_archival()
        assert backups_of(log_path) == [1, 2, 3]
        assert read(log_path + ".1") == "new"
        assert read(log_path + ".2") == "old1"
        assert read(log_path + ".3") == "old2"


class TestFailures:
    def test_failed_rename_is_reported_and_retried(self, make_logger, log_path, monkeypatch) -> None:
        """同步换档失败时报告错误，放弃本轮，下次写入重试"""
        real_replace = os.replace

        def broken_replace(src, dst):
            raise PermissionError("rename denied")

        logger = make_logger(log_path, max_bytes=5, backups=2, fmt="${level} ${message}\n")
        monkeypatch.setattr(os, "replace", broken_replace)
        logger.info("first")
        logger.wait_archival()
        content = read(log_path)
        assert content.startswith("INFO first\nERROR rotation of")
        assert "rename denied" in content
        assert backups_of(log_path) == []

        monkeypatch.setattr(os, "replace", real_replace)
        logger.info("second")
        logger.wait_archival()
        assert backups_of(log_path) == [1]
        assert read(log_path + ".1").endswith("INFO second\n")

    def test_archival_failure_is_reported(self, make_logger, log_path, monkeypatch) -> None:
        def broken_listing(self):
            raise OSError("listing failed")

        monkeypatch.setattr(RotationManager, "backup_indices", broken_listing)
        logger = make_logger(log_path, max_bytes=1, backups=2, fmt="${level} ${message}\n")
        logger.info("x")
        logger.wait_archival()
        assert "ERROR archival of" in read(log_path)
        assert "listing failed" in read(log_path)

    def test_failed_reopen_restores_active_file(self, make_logger, log_path, monkeypatch) -> None:
        logger = make_logger(log_path, max_bytes=1, backups=2, fmt="${message}\n")
        monkeypatch.setattr(RotationManager, "open", lambda self: None)
        logger.info("kept")
        logger.wait_archival()
        assert os.path.exists(log_path)
        assert not os.path.exists(log_path + ".tmp")
        assert read(log_path) == "kept\n"
        assert backups_of(log_path) == []


class TestRotationManager:
    def test_backup_indices_descending(self, tmp_path) -> None:
        path = tmp_path / "svc.log"
        for index in (1, 3, 10, 2):
            (tmp_path / f"svc.log.{index}").write_text("")
        for stray in ("svc.log.tmp", "svc.log.0", "svc.log.01", "svc.log.007"):
            (tmp_path / stray).write_text("")
        manager = RotationManager(str(path), 1, 5)
        assert manager.backup_indices() == [10, 3, 2, 1]

    def test_disabled_without_filename(self) -> None:
        manager = RotationManager("", 10, 1)
        assert not manager.enabled
        assert manager.record(100) is False
        assert manager.size == 0

    def test_record_reports_crossing(self, tmp_path) -> None:
        manager = RotationManager(str(tmp_path / "a.log"), 10, 1)
        assert manager.record(9) is False
        assert manager.record(1) is True
