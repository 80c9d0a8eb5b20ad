import os

import pytest
from openpyxl import load_workbook
from rich.console import Console

import main
from conftest import HEADER, HOME_TEAM
from schedule_export.export import exporter
from schedule_export.models.state import ServiceState
from schedule_export.repair.text_repair import RemoteTextCorrector, RuleBasedTextCorrector
from schedule_export.summary.run_summary import print_summary
from schedule_export.transform.reader import read_schedule_lines
from schedule_export.transform.row_transformer import TransformResult
from schedule_export.travel.estimator import RemoteDistanceProvider, StaticDistanceProvider


def write_export(path, lines):
    """Writes the schedule the way the league exports it: mostly UTF-8, some Latin-1."""
    text = "\r\n".join([HEADER, *lines]) + "\r\n"
    path.write_bytes(text.encode("utf-8").replace("ß".encode("utf-8"), b"\xdf"))


def test_missing_input_is_fatal(settings, log_messages):
    assert main.run(settings) == 1
    assert not settings.output_path.exists()
    assert any("Nothing to convert" in message for message in log_messages)


def test_missing_explicit_input_is_fatal(tmp_path):
    code = main.main(
        [
            "--config",
            str(tmp_path / "missing.env"),
            "--input",
            str(tmp_path / "nope.csv"),
            "--output",
            str(tmp_path / "out.xlsx"),
        ]
    )

    assert code == 1


def test_full_run_writes_repaired_spreadsheet(settings, make_line, tmp_path):
    write_export(
        tmp_path / "Spielplan_2025.csv",
        [
            make_line(venue="Halle (98744 Oberweißbach)"),
            '"broken";"row"',
            make_line(team_1="SV Rudolstadt", team_2=HOME_TEAM, time="18:00:00",
                      venue="Halle West (07407 Rudolstadt)"),
            make_line(team_1="TSV Gera", team_2="SV Schwarza"),
        ],
    )

    assert main.run(settings) == 0

    ws = load_workbook(settings.output_path)[exporter.SHEET_NAME]
    rows = list(ws.iter_rows(min_row=2, values_only=True))
    assert len(rows) == 2
    assert rows[0][9] == "98744 Oberweißbach"
    assert rows[1][6] == "16:15:00"


def test_full_run_falls_back_to_csv(settings, make_line, tmp_path, monkeypatch):
    def broken_writer(df, path):
        raise OSError("disk full")

    monkeypatch.setattr(exporter, "write_spreadsheet", broken_writer)
    write_export(tmp_path / "Spielplan.csv", [make_line()])

    assert main.run(settings) == 0
    assert settings.output_path.with_suffix(".csv").exists()


@pytest.mark.parametrize("pattern", ["Spielplan*.csv", "*.csv"])
def test_rerun_after_csv_fallback_reads_the_schedule_again(
    settings_factory, make_line, tmp_path, monkeypatch, pattern
):
    def broken_writer(df, path):
        raise OSError("disk full")

    read_paths = []

    def recording_reader(path):
        read_paths.append(path)
        return read_schedule_lines(path)

    monkeypatch.setattr(exporter, "write_spreadsheet", broken_writer)
    monkeypatch.setattr(main, "read_schedule_lines", recording_reader)
    settings = settings_factory(input_pattern=pattern)
    schedule = tmp_path / "Spielplan.csv"
    write_export(schedule, [make_line()])
    os.utime(schedule, (1_000_000_000, 1_000_000_000))

    assert main.run(settings) == 0
    fallback = settings.output_path.with_suffix(".csv")
    assert fallback.stat().st_mtime > schedule.stat().st_mtime

    assert main.run(settings) == 0
    assert read_paths == [schedule, schedule]


def test_remote_services_are_wired_only_with_keys(settings_factory):
    state = ServiceState()

    corrector, clients = main.build_corrector(settings_factory(), state)
    assert isinstance(corrector, RuleBasedTextCorrector)
    assert clients == []

    estimator, clients = main.build_estimator(settings_factory(), state)
    assert isinstance(estimator.provider, StaticDistanceProvider)
    assert clients == []

    keyed = settings_factory(correction_api_key="sk-abc", distance_api_key="maps-abc")
    corrector, clients = main.build_corrector(keyed, state)
    assert isinstance(corrector, RemoteTextCorrector)
    for client in clients:
        client.close()
    estimator, clients = main.build_estimator(keyed, state)
    assert isinstance(estimator.provider, RemoteDistanceProvider)
    for client in clients:
        client.close()


def test_summary_reports_counts(tmp_path, transformer, make_line):
    result = transformer.transform_lines([HEADER, make_line(), '"short"'])
    state = ServiceState(distance_calls=2, distance_failures=1)
    console = Console(record=True, width=140)

    print_summary(result, tmp_path / "out.xlsx", state, console=console)

    text = console.export_text()
    assert "Games exported" in text
    assert "Distance lookups (failed)" in text
    assert "OpponentX" in text


def test_summary_without_games(tmp_path):
    console = Console(record=True, width=140)

    print_summary(TransformResult(), tmp_path / "out.xlsx", ServiceState(), console=console)

    assert "No games matched" in console.export_text()
