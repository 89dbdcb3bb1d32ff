"""CLI for appointment report generation."""

import logging
from datetime import date
from pathlib import Path

import click

from appointment_report.exceptions import ReportError
from appointment_report.normalizer import InMemoryGateway, TableNormalizer
from appointment_report.service import generate_appointment_report
from appointment_report.settings import load_settings


@click.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--start", "start_date", required=True, type=click.DateTime(formats=["%Y-%m-%d"]), help="First day (inclusive)")
@click.option("--end", "end_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Last day (inclusive), defaults to --start")
@click.option("--type", "report_type", type=click.Choice(["day", "week"]), default="day", show_default=True)
@click.option(
    "-s", "--settings",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file overriding the report settings",
)
@click.option(
    "-o", "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory for the generated PDF [default: ./output]",
)
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr")
def generate_report(
    dataset: Path,
    start_date,
    end_date,
    report_type: str,
    settings_file: Path | None,
    output_dir: Path | None,
    verbose: bool,
):
    """Generate the appointment report PDF from a YAML dataset of clinic tables."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    start: date = start_date.date()
    end: date = end_date.date() if end_date else start

    try:
        settings = load_settings(settings_file)
        source = TableNormalizer(InMemoryGateway.from_yaml(dataset))
        report = generate_appointment_report(
            {"startDate": start, "endDate": end, "type": report_type},
            source,
            settings,
        )
    except ReportError as e:
        raise click.ClickException(e.message) from e

    output_dir = output_dir or Path.cwd() / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / report.filename
    output_path.write_bytes(report.content)
    click.echo(f"Generated: {output_path} ({report.row_count} appointments, {report.page_count} pages)")


if __name__ == "__main__":
    generate_report()
