from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from equality_insights.config import DEFAULT_CONFIG_PATH, METRIC_FIELDS, AppConfig, load_config
from equality_insights.errors import EqualityInsightsError
from equality_insights.io.country_meta import CountryDirectory, load_country_meta
from equality_insights.logging import configure_logging
from equality_insights.pipeline.build import BuildResult, load_dataset
from equality_insights.report.country import CountryReport, CountryReportBuilder, make_rng

LOGGER = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, add_completion=False)

LOG_LEVEL_OPTION = typer.Option(
    None, "--log-level", help="Level for equality_insights loggers, e.g. DEBUG or WARNING."
)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _resolve_csv(csv: Path | None, cfg: AppConfig) -> Path:
    if csv is not None:
        return csv
    if cfg.dataset.scores_path:
        return Path(cfg.dataset.scores_path)
    raise typer.BadParameter(
        "Missing --csv. Pass a scores CSV or set dataset.scores_path "
        "(or EQUALITY_INSIGHTS_SCORES_PATH) in the config."
    )


def _load_or_exit(csv: Path, cfg: AppConfig) -> BuildResult:
    try:
        return load_dataset(csv, cfg)
    except EqualityInsightsError as exc:
        typer.echo(f"Load failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        LOGGER.exception("Unexpected error loading %s", csv)
        typer.echo(f"Load failed: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _load_directory(meta: Path | None, cfg: AppConfig) -> CountryDirectory | None:
    path = meta or cfg.dataset.country_meta_path
    try:
        return load_country_meta(path)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid country metadata: {exc}") from exc


def _format_score(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1f}"


def _echo_report(report: CountryReport) -> None:
    typer.echo(f"{report.display_name} ({report.entity_code}) {report.period}")
    for metric in METRIC_FIELDS:
        marker = " (filled)" if metric in report.filled else ""
        typer.echo(
            f"- {metric}: {_format_score(report.scores[metric])}{marker}"
            f" trend={report.trends[metric]}"
        )
    if report.worst_category is None:
        typer.echo("No recommendations: missing category scores for this country/year.")
        return
    typer.echo(f"Worst category: {report.worst_category} ({report.severity} severity)")
    typer.echo("Recommendations:")
    for text in report.recommendations:
        typer.echo(f"- {text}")
    typer.echo(f"Suggested actions ({report.action_severity} severity):")
    for text in report.actions:
        typer.echo(f"- {text}")


@app.command()
def summary(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Load a scores CSV and print row/entity counts."""
    configure_logging(package_level=log_level)
    cfg = _load_app_config(config)
    result = _load_or_exit(_resolve_csv(csv, cfg), cfg)
    typer.echo("Dataset loaded")
    typer.echo(f"- rows_read: {result.rows_read}")
    typer.echo(f"- rows_dropped: {result.rows_dropped}")
    typer.echo(f"- rows_deduplicated: {result.rows_deduplicated}")
    typer.echo(f"- rows_indexed: {len(result.dataset)}")
    typer.echo(f"- values_filled: {sum(len(row.filled) for row in result.dataset.rows())}")
    typer.echo(f"- entities: {len(result.dataset.entities())}")


@app.command()
def years(
    entity: str = typer.Option(..., help="Entity (country) code, e.g. FRA."),
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str | None = LOG_LEVEL_OPTION,
    descending: bool = typer.Option(False, help="List the newest year first."),
    include_provisional: bool = typer.Option(
        False, help="Include periods flagged in dataset.provisional_periods."
    ),
) -> None:
    """List the years available for one entity."""
    configure_logging(package_level=log_level)
    cfg = _load_app_config(config)
    result = _load_or_exit(_resolve_csv(csv, cfg), cfg)
    exclude = None if include_provisional else set(cfg.dataset.provisional_periods)
    available = result.dataset.years_available(entity, descending=descending, exclude=exclude)
    if not available:
        typer.echo(f"No data for {entity}")
        raise typer.Exit(code=1)
    typer.echo(" ".join(str(year) for year in available))


@app.command()
def country(
    entity: str = typer.Option(..., help="Entity (country) code, e.g. FRA."),
    year: int | None = typer.Option(None, help="Defaults to the latest finalized year."),
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str | None = LOG_LEVEL_OPTION,
    meta: Path | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Country metadata JSON used for display names and regions.",
    ),
    seed: int | None = typer.Option(None, min=0, help="Seed for reproducible content picks."),
    as_json: bool = typer.Option(False, "--json", help="Emit the report as JSON."),
) -> None:
    """Print scores, trends, recommendations and suggested actions for one country/year."""
    configure_logging(package_level=log_level)
    cfg = _load_app_config(config)
    result = _load_or_exit(_resolve_csv(csv, cfg), cfg)
    builder = CountryReportBuilder(cfg, directory=_load_directory(meta, cfg))

    period = year
    if period is None:
        period = result.dataset.latest_period(entity, exclude=set(cfg.dataset.provisional_periods))
    report = None
    if period is not None:
        rng = make_rng(seed if seed is not None else cfg.selection.random_seed)
        report = builder.build(result.dataset, entity, period, rng)
    if report is None:
        typer.echo(f"No data for {entity} in {year if year is not None else 'any year'}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return
    _echo_report(report)


@app.command()
def regions(
    meta: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Group the countries in the metadata file by region."""
    configure_logging(package_level=log_level)
    cfg = _load_app_config(config)
    directory = _load_directory(meta, cfg)
    if directory is None:
        raise typer.BadParameter("Missing --meta. Pass a file or set dataset.country_meta_path.")
    for region, countries in sorted(directory.by_region().items()):
        typer.echo(f"{region} ({len(countries)})")
        for item in countries:
            typer.echo(f"- {item.iso3} {item.name}")


if __name__ == "__main__":
    app()
