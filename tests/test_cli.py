"""Tests for CLI entry point."""

from __future__ import annotations

import json

from click.testing import CliRunner

from twrcalc.cli import main


def _write_inputs(tmp_path):  # type: ignore[no-untyped-def]
    navs = tmp_path / "navs.csv"
    navs.write_text(
        "timestamp,amount\n"
        "2023-01-01,100000\n"
        "2023-06-01,100000\n"
        "2023-12-31,160000\n"
    )
    flows = tmp_path / "flows.csv"
    flows.write_text("timestamp,amount\n2023-06-01,50000\n")
    return navs, flows


class TestCliValidation:
    def test_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Time-Weighted Return Calculator" in result.output

    def test_no_arguments_shows_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, [])
        assert result.exit_code == 0
        assert "--valuations" in result.output

    def test_missing_dates(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, _ = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(main, ["--valuations", str(navs), "--start", "2023-01-01"])
        assert result.exit_code != 0
        assert "Missing required options: --end" in result.output

    def test_invalid_date(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, _ = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--valuations", str(navs), "--start", "not-a-date", "--end", "2023-12-31"],
        )
        assert result.exit_code != 0

    def test_end_before_start(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, _ = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--valuations", str(navs), "--start", "2023-12-31", "--end", "2023-01-01"],
        )
        assert result.exit_code == 1
        assert "Evaluation end must be after start" in result.output

    def test_start_before_valuations(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, _ = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--valuations", str(navs), "--start", "2022-01-01", "--end", "2023-12-31"],
        )
        assert result.exit_code == 1
        assert "No valuation available" in result.output

    def test_missing_file(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--valuations",
                str(tmp_path / "missing.csv"),
                "--start",
                "2023-01-01",
                "--end",
                "2023-12-31",
            ],
        )
        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_unknown_sample(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--sample", "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestCliOutput:
    def test_files_table_output(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, flows = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--valuations",
                str(navs),
                "--flows",
                str(flows),
                "--start",
                "2023-01-01",
                "--end",
                "2023-12-31",
            ],
        )
        assert result.exit_code == 0
        assert "Time-Weighted Return Analysis" in result.output
        assert "+10.00%" in result.output

    def test_without_flows_file(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, _ = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--valuations",
                str(navs),
                "--start",
                "2023-01-01",
                "--end",
                "2023-12-31",
                "--output",
                "json",
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["total_return"] == "0.6000000000"

    def test_sample_json_output(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--sample", "basic", "--output", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total_return"] == "0.1000000000"
        assert data["annualized_return"] is None

    def test_sample_annualized(self) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main, ["--sample", "two_years", "--annualize", "--output", "json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["annualized_return"] == "0.1180339887"

    def test_sample_window_override(self) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--sample", "basic", "--end", "2023-06-01", "--output", "json"],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["total_return"] == "0.0500000000"

    def test_breakdown_table(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--sample", "contribution", "--breakdown"])
        assert result.exit_code == 0
        assert "Sub-periods" in result.output

    def test_csv_output(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--sample", "multiple_flows", "--output", "csv"])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0].startswith("start,end,begin_value")
        assert len(lines) == 4

    def test_output_from_env(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--sample", "flat"], env={"TWR_OUTPUT": "json"})
        assert result.exit_code == 0
        assert json.loads(result.output)["total_return"] == "0.0000000000"

    def test_degenerate_annualization(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs = tmp_path / "navs.csv"
        navs.write_text("timestamp,amount\n2023-01-01,100\n2023-12-31,0\n")
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--valuations",
                str(navs),
                "--start",
                "2023-01-01",
                "--end",
                "2023-12-31",
                "--annualize",
            ],
        )
        assert result.exit_code == 0
        assert "-100.00%" in result.output
        assert "Annualized return undefined" in result.output

    def test_annualization_overflow(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs = tmp_path / "navs.csv"
        navs.write_text("timestamp,amount\n2023-01-01,100\n2023-01-02,1000\n")
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--valuations",
                str(navs),
                "--start",
                "2023-01-01",
                "--end",
                "2023-01-02",
                "--annualize",
            ],
        )
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "too large" in result.output

    def test_start_with_utc_offset(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        navs, _ = _write_inputs(tmp_path)
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--valuations",
                str(navs),
                "--start",
                "2023-01-01T00:00+02:00",
                "--end",
                "2023-12-31",
            ],
        )
        assert result.exit_code != 0
        assert "UTC offset" in result.output

    def test_list_samples(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--list-samples"])
        assert result.exit_code == 0
        assert "recovery_2020" in result.output
