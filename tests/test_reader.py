import os

import pytest

from schedule_export.transform.reader import (
    InputFileNotFoundError,
    find_input_file,
    split_line,
)


def touch(path, mtime):
    path.write_text("x", encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


def test_most_recent_match_wins(tmp_path):
    touch(tmp_path / "Spielplan_alt.csv", 1_000_000_000)
    newest = touch(tmp_path / "Spielplan_neu.csv", 1_100_000_000)

    assert find_input_file(tmp_path, "Spielplan*.csv") == newest


def test_excluded_outputs_are_never_picked(tmp_path):
    schedule = touch(tmp_path / "Spielplan.csv", 1_000_000_000)
    output = touch(tmp_path / "spielplan_export.csv", 1_100_000_000)

    assert find_input_file(tmp_path, "*.csv", exclude=[output]) == schedule

    schedule.unlink()
    with pytest.raises(InputFileNotFoundError):
        find_input_file(tmp_path, "*.csv", exclude=[output])


def test_directories_are_not_inputs(tmp_path):
    (tmp_path / "Spielplan.csv").mkdir()

    with pytest.raises(InputFileNotFoundError, match="Spielplan"):
        find_input_file(tmp_path, "Spielplan*.csv")


def test_split_line_strips_quotes_and_spaces():
    assert split_line('"20.09.2025"; "11:00:00" ;"";x') == ["20.09.2025", "11:00:00", "", "x"]
