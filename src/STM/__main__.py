"""
Command‑line interface for the STM toolkit.
Loads tumor records from an Excel workbook, computes survival time in months per
patient and writes the results to a timestamped workbook.
"""

import logging
import pathlib
import sys
import typing
from collections import Counter
from datetime import datetime

import click
import pandas as pd
from stairval.notepad import create_notepad

from .batch import compute_survival_for_patients, results_to_frame
from .loader import audit_tables, choose_records_table, load_sheets_as_tables, records_by_patient
from .record import OutputRecord
from .survival import ALG_NAME, ALG_VERSION


@click.group()
def main():
    """STM: Survival Time in Months for cancer registry patients."""
    pass


@main.command(name="compute")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the Excel workbook holding one row per tumor record",
)
@click.option(
    "-y",
    "--end-point-year",
    required=True,
    type=int,
    help="study end point year; later contacts are cut back to December 31st of that year",
)
@click.option("-s", "--sheet", "sheet_name", default=None, help="sheet holding the records (default: first sheet with the required columns)")
@click.option("-w", "--workers", "max_workers", default=None, type=click.IntRange(min=1), help="number of worker processes (default: one per CPU)")
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def compute(
        excel_file: str,
        end_point_year: int,
        sheet_name: typing.Optional[str],
        max_workers: typing.Optional[int],
        verbose_logging: bool,
        log_file_path: typing.Optional[str],
):
    """
    Read the records sheet, group rows by patient (first column), then:
      - compute survival months with and without presuming alive,
      - report any errors or warnings,
      - write one output row per input row.
    """
    _configure_logging(verbose_logging, log_file_path)
    logging.info(f"{ALG_NAME} version {ALG_VERSION}, end point year {end_point_year}")

    # 1) Read all sheets into DataFrames
    try:
        tables = load_sheets_as_tables(excel_file)
    except Exception as e:
        click.echo(f"Error: failed to read {excel_file}: {e}", err=True)
        sys.exit(1)
    logging.debug(f"Loaded sheets: {list(tables.keys())}")

    # 2) Select the records sheet and group rows by patient
    notepad = create_notepad("survival")
    df = choose_records_table(tables, notepad, sheet_name)
    patients = records_by_patient(df, notepad) if df is not None else {}
    if not patients:
        _report_issues(notepad)
        click.echo("Error: no tumor records found", err=True)
        sys.exit(1)

    # 3) Compute per patient
    results = compute_survival_for_patients(patients, end_point_year, notepad, max_workers=max_workers)

    # 4) Report any errors or warnings
    _report_issues(notepad)

    # 5) Write results next to a timestamp
    output_dir = _prepare_output_dir()
    output_path = _write_results(results_to_frame(patients, results), output_dir)

    # 6) Final summary
    record_count = sum(len(records) for records in patients.values())
    click.echo(f"Computed survival for {len(patients)} patients ({record_count} records)")
    for label, counts in _flag_counts(results).items():
        summary = ", ".join(f"{code}={count}" for code, count in sorted(counts.items()))
        click.echo(f"{label} flags: {summary}")
    click.echo(f"Wrote results to {output_path}")


@main.command(name="audit")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the Excel workbook",
)
def audit(excel_file: str):
    """
    Check each sheet for the columns the survival computation needs.
    """
    tables = load_sheets_as_tables(excel_file)
    click.echo(f"{'STEP':20} {'SHEET':15} MESSAGE")
    for entry in audit_tables(tables):
        line = f"{entry.step:20} {entry.sheet:15} {entry.message}"
        # color by level
        if entry.level == "error":
            colored = click.style(line, fg="red")
        elif entry.level in ("warn", "warning"):
            colored = click.style(line, fg="yellow")
        else:
            colored = click.style(line, fg="cyan")
        click.echo(colored)


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _report_issues(notepad):
    # if there were errors, show them
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in survival computation:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    # show any warnings but keep going
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in survival computation:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


def _prepare_output_dir() -> pathlib.Path:
    # use YYYY-MM-DD_HH-MM-SS for human-readable timestamps
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    output_dir = pathlib.Path.cwd() / "survival_output" / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def _write_results(frame: pd.DataFrame, output_dir: pathlib.Path) -> pathlib.Path:
    output_path = output_dir / "survival_time.xlsx"
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name="survival", index=False)
    return output_path


def _flag_counts(results: dict[str, list[OutputRecord]]) -> dict[str, Counter]:
    counts = {"Survival months": Counter(), "Presumed alive": Counter()}
    for outputs in results.values():
        for output in outputs:
            counts["Survival months"][output.survival_months_flag.code] += 1
            counts["Presumed alive"][output.survival_months_flag_presumed_alive.code] += 1
    return counts


if __name__ == "__main__":
    main()
