from __future__ import annotations

import json

import pytest

from conftest import noise_image
from pagediff import cli


def test_compare_text_to_stdout(page_dir_factory, capsys):
    old = page_dir_factory("v1", [1, 2, 3])
    new = page_dir_factory("v2", [1, 2, 3])

    code = cli.main(["compare", "-o", str(old), "-n", str(new), "-d", "8"])
    out = capsys.readouterr().out

    assert code == 0
    assert out.startswith("PAGE MAPPING:")
    assert out.count(" MATCH ") == 3


def test_compare_json_with_differences(page_dir_factory, tmp_path):
    old = page_dir_factory("v1", [1, 2, 3])
    new = page_dir_factory("v2", [1, 3])
    out_file = tmp_path / "r.json"

    code = cli.main([
        "compare", "--old", str(old), "--new", str(new), "--distance", "8",
        "--format", "json", "--output", str(out_file), "--workers", "1",
    ])

    assert code == 1
    data = json.loads(out_file.read_text(encoding="utf-8"))
    assert data["summary"]["missing"] == 1


def test_compare_no_relocate_flag(page_dir_factory, capsys):
    old = page_dir_factory("v1", [1, 2, 3])
    new = page_dir_factory("v2", [2, 1, 3])

    assert cli.main(["compare", "-o", str(old), "-n", str(new), "-d", "8", "--no-relocate"]) == 1
    out = capsys.readouterr().out
    assert "MOVED" not in out
    assert "(NEW PAGE)" in out


def test_compare_pdf_requires_output(page_dir_factory):
    d = page_dir_factory("v1", [1])
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["compare", "-o", str(d), "-n", str(d), "-d", "4", "--format", "pdf"])
    assert excinfo.value.code == 2


def test_compare_rejects_negative_distance(page_dir_factory):
    d = page_dir_factory("v1", [1])
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["compare", "-o", str(d), "-n", str(d), "-d", "-1"])
    assert excinfo.value.code == 2


def test_run_with_yaml(page_dir_factory, tmp_path):
    old = page_dir_factory("v1", [1, 2])
    new = page_dir_factory("v2", [1, 2, 7])
    cfg = tmp_path / "pagediff.yaml"
    cfg.write_text(
        f"project:\n  old: {old}\n  new: {new}\n  output_dir: {tmp_path / 'out'}\n"
        "alignment:\n  threshold: 8\n"
        "report:\n  formats: [text, pdf]\n"
        "runtime:\n  verbose: false\n",
        encoding="utf-8",
    )

    assert cli.main(["run", "--config", str(cfg)]) == 1
    assert (tmp_path / "out" / "report.txt").exists()
    assert (tmp_path / "out" / "report.pdf").exists()


def test_probe_prints_distances(tmp_path, capsys):
    noise_image(1).save(tmp_path / "a.png")
    noise_image(1).save(tmp_path / "b.png")

    assert cli.main(["probe", str(tmp_path / "a.png"), str(tmp_path / "b.png")]) == 0
    out = capsys.readouterr().out
    assert "Algo: phash, dist: 0" in out
    assert "Algo: double_gradient, dist: 0" in out


def test_run_writes_log_file(page_dir_factory, tmp_path):
    old = page_dir_factory("v1", [1, 2])
    new = page_dir_factory("v2", [1, 2])
    log = tmp_path / "run.log"
    cfg = tmp_path / "pagediff.yaml"
    cfg.write_text(
        f"project:\n  old: {old}\n  new: {new}\n  output_dir: {tmp_path / 'out'}\n"
        "alignment:\n  threshold: 8\n"
        f"runtime:\n  verbose: true\n  logfile: {log}\n",
        encoding="utf-8",
    )

    try:
        assert cli.main(["run", "--config", str(cfg)]) == 0
    finally:
        cli.configure_logging(False)

    text = log.read_text(encoding="utf-8")
    assert "[INFO] Hashing pages from" in text
    assert "Verdicts: matched=2" in text


def test_compare_log_file_option(page_dir_factory, tmp_path, capsys):
    old = page_dir_factory("v1", [1, 2])
    log = tmp_path / "compare.log"

    try:
        code = cli.main(["compare", "-o", str(old), "-n", str(old), "-d", "8", "-v", "--log-file", str(log)])
    finally:
        cli.configure_logging(False)

    assert code == 0
    assert "Hashed 2 pages" in log.read_text(encoding="utf-8")
    assert capsys.readouterr().out.startswith("PAGE MAPPING:")
