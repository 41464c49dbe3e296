from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from budget_forecast.domain.errors import BudgetForecastError
from budget_forecast.domain.models import ForecastModelType, ForecastResult
from budget_forecast.io import config as config_io
from budget_forecast.io import export
from budget_forecast.io.performance import CsvPerformanceSource
from budget_forecast.services.engine import BudgetForecastEngine

app = typer.Typer(help="Budget forecasting CLI: model-based forecasts and scenario comparison.")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _save_json(path: Path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _write_forecast(path: Path, result: ForecastResult) -> None:
    if path.suffix.lower() == ".csv":
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(export.forecast_to_csv(result), encoding="utf-8")
    else:
        _save_json(path, export.forecast_to_dict(result))


def _forecast_table(result: ForecastResult) -> Table:
    model = getattr(result.metadata.model_type, "value", result.metadata.model_type)
    title = f"Forecast for {result.budget_id} ({model})"
    if result.scenario_name:
        title += f" - {result.scenario_name}"
    table = Table(title=title)
    table.add_column("Period")
    table.add_column("Forecast", justify="right")
    table.add_column("Lower", justify="right")
    table.add_column("Upper", justify="right")
    for p in result.forecast_data:
        table.add_row(p.period, f"{p.forecast_amount:,}", f"{p.lower_bound:,}", f"{p.upper_bound:,}")
    return table


@app.command()
def models():
    """List the available forecast models."""
    for model in ForecastModelType:
        console.print(model.value)


@app.command()
def forecast(
    history: Path = typer.Option(..., exists=True, help="Performance CSV (budget_id, period, actual_amount)."),
    budget: str = typer.Option(..., help="Budget id to forecast."),
    settings: Optional[Path] = typer.Option(None, exists=True, help="Forecast settings JSON."),
    model: Optional[str] = typer.Option(None, help="Override the model type."),
    months: Optional[int] = typer.Option(None, help="Override the forecast horizon."),
    out: Optional[Path] = typer.Option(
        None, help="Write the forecast to .csv or .json; a directory gets the default export name."
    ),
):
    """Forecast one budget from its performance history."""
    try:
        engine = BudgetForecastEngine(CsvPerformanceSource(history))
        changes = {}
        if settings:
            changes.update(vars(config_io.load_forecast_settings(settings)))
        if model:
            changes["model_type"] = model
        if months:
            changes["forecast_months"] = months
        if changes:
            engine.update_forecast_settings(budget, **changes)
        result = asyncio.run(engine.generate_forecast(budget))
    except (BudgetForecastError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    console.print(_forecast_table(result))
    if out:
        if out.is_dir():
            out = out / export.export_filename(budget)
        _write_forecast(out, result)
        console.print(f"[green]Saved forecast to {out}[/green]")


@app.command()
def compare(
    history: Path = typer.Option(..., exists=True, help="Performance CSV (budget_id, period, actual_amount)."),
    budget: str = typer.Option(..., help="Budget id to forecast."),
    scenarios: Path = typer.Option(..., exists=True, help="Scenario definitions JSON."),
    out: Optional[Path] = typer.Option(None, help="Write the comparison JSON."),
):
    """Compare scenario forecasts for one budget."""
    try:
        engine = BudgetForecastEngine(CsvPerformanceSource(history))
        created = [engine.create_scenario(budget, **d) for d in config_io.load_scenarios(scenarios)]
        comparison = asyncio.run(engine.compare_scenarios(budget, [s.id for s in created]))
    except (BudgetForecastError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    names = [s.name for s in comparison.scenarios]
    table = Table(title=f"Scenario comparison for {budget}")
    table.add_column("Period")
    for name in names:
        table.add_column(name, justify="right")
    for row in comparison.comparison_data:
        table.add_row(row.period, *[f"{row.scenarios[n]:,}" if n in row.scenarios else "-" for n in names])
    console.print(table)

    if out:
        _save_json(out, export.comparison_to_dict(comparison))
        console.print(f"[green]Saved comparison to {out}[/green]")


if __name__ == "__main__":
    app()
