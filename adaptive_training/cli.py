"""Command-line interface for the adaptive training engine."""

import logging
import random
from datetime import date

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import config
from .analysis.catalog import default_catalog
from .analysis.comparison import ComparisonEngine
from .analysis.matching import ActivityMatcher, MatchingConfig, ScoringProfile
from .analysis.patterns import ActivityPatternAnalyzer
from .analysis.plan_adjustment import AdjustmentOptions, ModificationType, PlanAdjustmentEngine
from .analysis.plan_selector import (
    CatalogConfigurationError,
    PlanRequest,
    PlanSelector,
    PlanSettings,
    export_plan_csv,
)
from .analysis.readiness import ReadinessCalculator
from .analysis.types import IntensityLevel, SportType, TrainingPhase
from .serialization import (
    activity_from_dict,
    dumps,
    lap_from_dict,
    load_json,
    parse_categories,
    parse_date,
    parse_list,
    planned_workout_from_dict,
    profile_from_dict,
    recovery_from_dict,
    workout_summary_from_dict,
)

console = Console()

FATIGUE_COLORS = [(30, "green"), (60, "yellow"), (80, "orange3")]


class CliError(click.ClickException):
    """Input error shown as a red message, exiting with status 1."""

    def show(self, file=None):
        console.print(f"[red]❌ {escape(self.format_message())}[/red]")


def fatigue_color(fatigue: float) -> str:
    for upper, color in FATIGUE_COLORS:
        if fatigue < upper:
            return color
    return "red"


def _load(path: str):
    try:
        return load_json(path)
    except ValueError as e:
        raise CliError(str(e)) from e


def _load_object(path: str) -> dict:
    data = _load(path)
    if not isinstance(data, dict):
        raise CliError(f"Expected a JSON object in {path}")
    return data


def _items(data, key: str):
    """Accept either a bare JSON list or an object holding the list under ``key``."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get(key, [])
    raise CliError(f"Expected a list or an object with '{key}'")


def _readiness_from(data: dict, today: date, event_date=None):
    calculator = ReadinessCalculator()
    return calculator.calculate(
        fatigue_scores=[float(f) for f in data.get("fatigue_scores", [])],
        recent_workouts=parse_list(data.get("recent_workouts"), workout_summary_from_dict),
        recovery=recovery_from_dict(data.get("recovery")),
        event_date=event_date or parse_date(data.get("event_date")),
        today=today,
    )


def _date_option(value):
    try:
        return parse_date(value) if value else date.today()
    except ValueError as e:
        raise CliError(str(e)) from e


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)")
def cli(log_level):
    """Adaptive training plan generation and workout matching."""
    level = (log_level or config.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format="%(levelname)s: %(message)s")
    try:
        config.validate()
    except ValueError as e:
        raise CliError(f"Configuration Error: {e}") from e


@cli.command()
@click.option("--input", "input_path", required=True, type=click.Path(exists=True), help="Readiness JSON file")
@click.option("--today", help="Reference date (YYYY-MM-DD), defaults to today")
def readiness(input_path, today):
    """Calculate readiness from fatigue and recovery signals."""
    data = _load_object(input_path)
    try:
        metrics = _readiness_from(data, _date_option(today))
    except ValueError as e:
        raise CliError(str(e)) from e

    console.print(Panel.fit("🔋 Readiness", style="bold blue"))
    table = Table(box=box.SIMPLE)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Readiness score", f"{metrics.score:.0f}/100")
    table.add_row("7-day fatigue avg", f"{metrics.fatigue_7day_avg:.1f}")
    table.add_row("Recovery score", f"{metrics.recovery_score:.1f}")
    table.add_row("7-day training load", f"{metrics.training_load_7day:.0f}")
    table.add_row("Recent hard days", str(metrics.recent_hard_day_count))
    if metrics.days_until_event is not None:
        table.add_row("Days until event", str(metrics.days_until_event))
    console.print(table)


@cli.command()
@click.option("--activities", required=True, type=click.Path(exists=True), help="Activity history JSON file")
@click.option("--as-of", help="End of the analysis window (YYYY-MM-DD)")
def patterns(activities, as_of):
    """Analyze historical activity patterns."""
    try:
        records = parse_list(_items(_load(activities), "activities"), activity_from_dict)
        pattern = ActivityPatternAnalyzer().analyze(records, parse_date(as_of) if as_of else None)
    except ValueError as e:
        raise CliError(str(e)) from e

    console.print(Panel.fit(f"📈 Activity Patterns ({pattern.activity_count} activities)", style="bold blue"))
    table = Table(box=box.SIMPLE)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Preferred sports", ", ".join(pattern.preferred_sports) or "-")
    table.add_row("Weekly distance", f"{pattern.avg_weekly_distance:.1f} km")
    table.add_row("Weekly duration", f"{pattern.avg_weekly_duration:.0f} min")
    table.add_row("Weekly load", f"{pattern.avg_weekly_load:.0f}")
    table.add_row("Session duration", f"{pattern.avg_session_duration:.0f} min")
    table.add_row("Consistency", f"{pattern.consistency_score:.0f}%")
    table.add_row("Strong weekdays", ", ".join(pattern.strong_weekdays) or "-")
    mix = pattern.intensity_mix
    table.add_row("Intensity mix", f"easy {mix.easy:.0%} / moderate {mix.moderate:.0%} / hard {mix.hard:.0%}")
    console.print(table)


@cli.command()
@click.option("--input", "input_path", required=True, type=click.Path(exists=True), help="Plan request JSON file")
@click.option("--days", default=7, help="Plan length in days (1-365)", type=click.IntRange(1, 365))
@click.option("--start", help="First plan day (YYYY-MM-DD), defaults to today")
@click.option("--unavailable-today", is_flag=True, help="Schedule rest on the first day")
@click.option("--phase", type=click.Choice([p.value for p in TrainingPhase]), help="Override the training phase")
@click.option("--exclude", multiple=True, help="Exercise category to exclude (repeatable)")
@click.option("--seed", type=int, help="Seed for reproducible workout selection")
@click.option("--no-personalize", is_flag=True, help="Ignore activity history when selecting workouts")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False), help="Export the plan to CSV")
@click.option("--output", type=click.Path(dir_okay=False), help="Write the planned workouts as JSON")
@click.option("--save", is_flag=True, help="Replace the stored plan for --user-id")
@click.option("--user-id", help="User id used with --save")
def plan(input_path, days, start, unavailable_today, phase, exclude, seed, no_personalize,
         csv_path, output, save, user_id):
    """Generate an adaptive training plan."""
    data = _load_object(input_path)
    start_date = _date_option(start)

    try:
        profile = profile_from_dict(data.get("profile", {}))
        metrics = _readiness_from(data, start_date, event_date=profile.event_date)
        history = parse_list(data.get("activities"), activity_from_dict)
        pattern = ActivityPatternAnalyzer().analyze(history, start_date) if history else None
        excluded = parse_categories(list(exclude) + list(data.get("excluded_categories", [])))
    except ValueError as e:
        raise CliError(str(e)) from e

    settings = PlanSettings(personalize=config.ENABLE_PERSONALIZATION and not no_personalize)
    selector = PlanSelector(default_catalog(), random.Random(seed), settings)
    request = PlanRequest(
        readiness=metrics,
        plan_length_days=days,
        profile=profile,
        pattern=pattern,
        available_today=not unavailable_today,
        excluded_categories=excluded,
        start_date=start_date,
        phase_override=TrainingPhase(phase) if phase else None,
    )

    try:
        result = selector.generate_plan(request)
    except CatalogConfigurationError as e:
        raise CliError(str(e)) from e

    console.print(Panel.fit(
        f"📅 {days}-Day Plan · {result.phase.value.title()} phase · readiness {metrics.score:.0f}",
        style="bold blue",
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Sport")
    table.add_column("Workout")
    table.add_column("Min", justify="right")
    table.add_column("Fatigue", justify="right")
    for w in result.workouts:
        color = fatigue_color(w.expected_fatigue)
        table.add_row(
            w.date.isoformat(),
            w.date.strftime("%a"),
            w.sport.value,
            w.description,
            str(w.duration_min),
            f"[{color}]{w.expected_fatigue:.0f}[/{color}]",
        )
    console.print(table)

    for message in result.recommendations:
        console.print(f"[green]💡 {escape(message)}[/green]")
    for message in result.warnings:
        console.print(f"[yellow]⚠️  {escape(message)}[/yellow]")

    if csv_path:
        export_plan_csv(result, csv_path)
        console.print(f"[black]Plan exported to {csv_path}[/black]")

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(dumps({"workouts": result.workouts}, indent=2))
        console.print(f"[black]Plan written to {output}[/black]")

    if save:
        _save_plan(result, user_id)


def _save_plan(result, user_id):
    from .db import PlanRepository, close_db

    styles = {"success": "green", "warning": "yellow", "error": "red"}

    def report_status(message, level):
        style = styles.get(level, "black")
        console.print(f"[{style}]{escape(message)}[/{style}]")

    try:
        PlanRepository().replace_generated_plan(result, user_id, report_status)
    except ValueError as e:
        raise CliError(str(e)) from e
    finally:
        close_db()


@cli.command()
@click.option("--activity", required=True, type=click.Path(exists=True), help="Activity JSON file")
@click.option("--plan", "plan_path", required=True, type=click.Path(exists=True), help="Planned workouts JSON file")
@click.option("--profile", type=click.Choice([p.value for p in ScoringProfile]), default=None,
              help="Scoring profile (defaults to MATCH_SCORING_PROFILE)")
@click.option("--tolerance", type=int, default=None, help="Date tolerance in days")
def match(activity, plan_path, profile, tolerance):
    """Match an uploaded activity against planned workouts."""
    try:
        activity_data = _load_object(activity)
        record = activity_from_dict(activity_data)
        laps = parse_list(activity_data.get("laps"), lap_from_dict)
        planned = parse_list(_items(_load(plan_path), "workouts"), planned_workout_from_dict)
    except ValueError as e:
        raise CliError(str(e)) from e

    matching_config = MatchingConfig(
        profile=ScoringProfile(profile or config.MATCH_SCORING_PROFILE),
        date_tolerance_days=config.MATCH_DATE_TOLERANCE_DAYS if tolerance is None else tolerance,
    )
    result = ActivityMatcher(matching_config).match(record, planned, laps)

    console.print(Panel.fit(
        f"🔎 {record.sport} on {record.date} · {record.duration_min:.0f} min · {matching_config.profile.value} profile",
        style="bold blue",
    ))

    if result.recommendation is None:
        console.print("[yellow]No planned workouts within the date tolerance - record as unplanned[/yellow]")
        return

    table = Table(box=box.SIMPLE)
    table.add_column("Date", style="cyan")
    table.add_column("Sport")
    table.add_column("Min", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Reasons")
    for candidate in result.candidates:
        w = candidate.planned_workout
        table.add_row(
            w.date.isoformat(), w.sport.value, str(w.duration_min),
            f"{candidate.confidence:g}", ", ".join(candidate.reasons),
        )
    console.print(table)

    rec = result.recommendation
    if rec.should_auto_match:
        console.print(f"[green]✅ Auto-match: {rec.best_match.date} {rec.best_match.description}[/green]")
    else:
        console.print(f"[yellow]Confidence {rec.confidence:g} below auto-match threshold - choose manually[/yellow]")


@cli.command()
@click.option("--activity", required=True, type=click.Path(exists=True), help="Activity JSON file")
@click.option("--planned", required=True, type=click.Path(exists=True), help="Planned workout JSON file")
def compare(activity, planned):
    """Compare a completed activity with its planned workout."""
    try:
        activity_data = _load_object(activity)
        record = activity_from_dict(activity_data)
        laps = parse_list(activity_data.get("laps"), lap_from_dict)
        planned_workout = planned_workout_from_dict(_load_object(planned))
    except ValueError as e:
        raise CliError(str(e)) from e

    comparison = ComparisonEngine().compare(planned_workout, record, laps)
    adherence = comparison.adherence

    console.print(Panel.fit(
        f"📊 Adherence {adherence.score}/100 ({adherence.category.value})",
        style="bold blue",
    ))

    table = Table(box=box.SIMPLE)
    table.add_column("Metric", style="cyan")
    table.add_column("Planned", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Variance", justify="right")
    dv = comparison.duration_variance
    table.add_row("Duration (min)", f"{dv.planned:.0f}", f"{dv.actual:.0f}", f"{dv.percentage_change:+.1f}%")
    iv = comparison.intensity_variance
    table.add_row("Fatigue", f"{iv.planned_fatigue:.0f}", f"{iv.actual_fatigue:.0f}", f"{iv.difference:+.0f}")
    zones = comparison.zone_compliance
    for i in range(5):
        table.add_row(
            f"Zone {i + 1} (min)",
            f"{zones.planned_zones[i]:.1f}",
            f"{zones.actual_zones[i]:.1f}",
            f"{zones.zone_variances[i]:+.1f}",
        )
    table.add_row("Zone compliance", "", f"{zones.overall_compliance:.0f}%", "")
    console.print(table)

    for message in adherence.feedback:
        console.print(f"  • {escape(message)}")


@cli.command()
@click.option("--plan", "plan_path", required=True, type=click.Path(exists=True), help="Planned workouts JSON file")
@click.option("--date", "day", required=True, help="Day to modify (YYYY-MM-DD)")
@click.option("--change", required=True, type=click.Choice([m.value for m in ModificationType]),
              help="Kind of modification")
@click.option("--sport", type=click.Choice([s.value for s in SportType]), help="New sport for change-workout-type")
@click.option("--duration", type=int, help="New duration in minutes for adjust-duration")
@click.option("--fatigue", type=float, help="New expected fatigue for adjust-intensity")
@click.option("--reason", help="Reason recorded with the modification")
@click.option("--no-redistribute", is_flag=True, help="Leave the remaining days unchanged")
@click.option("--output", type=click.Path(dir_okay=False), help="Write the adjusted plan as JSON")
def adjust(plan_path, day, change, sport, duration, fatigue, reason, no_redistribute, output):
    """Modify one planned day and rebalance the rest of the plan."""
    try:
        planned = parse_list(_items(_load(plan_path), "workouts"), planned_workout_from_dict)
        target = parse_date(day)
    except ValueError as e:
        raise CliError(str(e)) from e

    options = AdjustmentOptions(redistribute_load=False) if no_redistribute else None
    engine = PlanAdjustmentEngine(default_catalog(), options)

    try:
        result = engine.modify_workout(
            planned,
            target,
            ModificationType(change),
            sport=SportType(sport) if sport else None,
            duration_min=duration,
            expected_fatigue=fatigue,
            reason=reason,
        )
    except ValueError as e:
        raise CliError(str(e)) from e

    impact = result.impact
    console.print(Panel.fit(
        f"✏️  {change} on {target} · {impact.days_affected} day(s) affected · "
        f"load {impact.total_load_change:+.0f} · volume {impact.volume_change:+.0f} min",
        style="bold blue",
    ))

    table = Table(box=box.SIMPLE)
    table.add_column("Date", style="cyan")
    table.add_column("Change")
    table.add_column("Before")
    table.add_column("After")
    table.add_column("Fatigue", justify="right")
    for m in result.modifications:
        table.add_row(
            m.date.isoformat(),
            m.modification_type.value,
            m.original_workout.description,
            m.new_workout.description,
            f"{m.original_workout.expected_fatigue:.0f} → {m.new_workout.expected_fatigue:.0f}",
        )
    console.print(table)

    for message in result.warnings:
        console.print(f"[yellow]⚠️  {escape(message)}[/yellow]")
    for message in result.recommendations:
        console.print(f"[green]💡 {escape(message)}[/green]")

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(dumps({"workouts": result.adjusted_plan}, indent=2))
        console.print(f"[black]Adjusted plan written to {output}[/black]")


@cli.command()
@click.option("--level", type=click.Choice([lvl.value for lvl in IntensityLevel]), help="Show one intensity pool")
@click.option("--phase", type=click.Choice([p.value for p in TrainingPhase]), help="Restrict to a training phase")
def catalog(level, phase):
    """List the built-in workout catalog."""
    workouts = default_catalog()
    phase_filter = TrainingPhase(phase) if phase else None
    if level:
        archetypes = workouts.pool(IntensityLevel(level), phase_filter)
    elif phase_filter:
        archetypes = workouts.by_phase(phase_filter)
    else:
        archetypes = list(workouts)

    table = Table(title="Workout Catalog", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Sport")
    table.add_column("Description")
    table.add_column("Min", justify="right")
    table.add_column("Fatigue", justify="right")
    table.add_column("Recovery")
    table.add_column("Phase")
    for a in archetypes:
        table.add_row(
            a.id, a.sport.value, a.description, str(a.duration_min), str(a.fatigue_score),
            a.recovery_impact.value, a.phase.value if a.phase else "any",
        )
    console.print(table)


if __name__ == "__main__":
    cli()
