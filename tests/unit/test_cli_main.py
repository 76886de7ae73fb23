from __future__ import annotations

import zipfile
from pathlib import Path
from unittest.mock import patch

from xlsx_transcoder.cli.__main__ import (
    EXIT_FATAL,
    EXIT_NOT_FOUND,
    EXIT_PARTIAL_FAILURE,
    EXIT_SUCCESS_ALL,
    main as cli_main,
)
from xlsx_transcoder.errors import ProcessingError


def test_cli_success(write_config, job_dir: Path, make_workbook, capsys):
    make_workbook(job_dir / "a.xlsx", [["title"], ["x"], ["y"]])

    code = cli_main(["job42"])

    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "INFO Received process request for job_id: job42, rows_to_delete: 1" in out
    assert "SUMMARY files=1/1 success=1 failed=0 skipped=0 rows_written=2 rows_deleted=1" in out
    archives = list(job_dir.glob("firstsheet*.zip"))
    assert len(archives) == 1
    with zipfile.ZipFile(archives[0]) as zf:
        assert zf.namelist() == ["a.xlsx"]


def test_cli_skip_rows_flag_overrides_config(write_config, job_dir: Path, make_workbook, capsys):
    make_workbook(job_dir / "a.xlsx", [["title"], ["x"], ["y"]])

    code = cli_main(["job42", "--skip-rows", "0"])

    assert code == EXIT_SUCCESS_ALL
    assert "rows_written=3 rows_deleted=0" in capsys.readouterr().out


def test_cli_partial_failure(write_config, job_dir: Path, make_workbook, capsys):
    make_workbook(job_dir / "good.xlsx", [["h"], ["x"]])
    (job_dir / "bad.xlsx").write_bytes(b"corrupt")

    code = cli_main(["job42"])

    out = capsys.readouterr().out
    assert code == EXIT_PARTIAL_FAILURE
    assert "WARN file bad.xlsx:" in out
    assert "SUMMARY files=2/2 success=1 failed=1" in out


def test_cli_empty_job_is_not_found(write_config, job_dir: Path, capsys):
    code = cli_main(["job42"])

    assert code == EXIT_NOT_FOUND
    assert "SUMMARY files=0/0 success=0 failed=0" in capsys.readouterr().out


def test_cli_missing_job_dir(write_config, capsys):
    code = cli_main(["does-not-exist"])

    assert code == EXIT_NOT_FOUND
    assert "ERROR job: Job folder not found:" in capsys.readouterr().out


def test_cli_missing_config(temp_workdir: Path, capsys):
    code = cli_main(["job42"])

    assert code == EXIT_FATAL
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_cli_upload_root_without_config(temp_workdir: Path, make_workbook, capsys):
    root = temp_workdir / "elsewhere"
    make_workbook(root / "j1" / "a.xlsx", [["x"]])

    code = cli_main(["j1", "--upload-root", str(root)])

    assert code == EXIT_SUCCESS_ALL
    assert "rows_deleted=0" in capsys.readouterr().out


def test_cli_config_path_from_env(temp_workdir: Path, job_dir: Path, make_workbook, monkeypatch):
    cfg = temp_workdir / "custom.yml"
    cfg.write_text("upload_root: ./uploads\nskip_rows: 0\n", encoding="utf-8")
    monkeypatch.setenv("XLSX_TRANSCODER_CONFIG", str(cfg))
    make_workbook(job_dir / "a.xlsx", [["x"]])

    assert cli_main(["job42"]) == EXIT_SUCCESS_ALL


def test_cli_negative_skip_rows(write_config, job_dir: Path, capsys):
    code = cli_main(["job42", "--skip-rows", "-1"])

    assert code == EXIT_FATAL
    assert "ERROR skip rows must be >= 0" in capsys.readouterr().out


def test_cli_invalid_workers(write_config, job_dir: Path, capsys):
    assert cli_main(["job42", "--workers", "0"]) == EXIT_FATAL
    assert "ERROR workers must be >= 1" in capsys.readouterr().out


def test_cli_processing_error_is_fatal(write_config, job_dir: Path, capsys):
    with patch("xlsx_transcoder.cli.__main__.run_job", side_effect=ProcessingError("disk gone")):
        code = cli_main(["job42"])

    assert code == EXIT_FATAL
    assert "ERROR processing: disk gone" in capsys.readouterr().out


def test_cli_debug_mode(write_config, job_dir: Path, capsys):
    cli_main(["job42", "--debug"])
    assert "DEBUG debug mode enabled" in capsys.readouterr().out
