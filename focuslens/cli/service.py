import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from focuslens.config.logging_config import setup_logging
from focuslens.models.activity import ActivityFilter, ActivityRecord
from focuslens.services.analytics import ProductivityAnalytics
from focuslens.services.categories import AppCategorizer, AppCategoryStore
from focuslens.services.clock import DAY_MS, system_clock
from focuslens.services.database import DatabaseManager
from focuslens.services.distraction import DistractionDetector
from focuslens.services.display import TerminalDisplay
from focuslens.services.insights import AutomatedInsightGenerator
from focuslens.services.monitor import SystemResourceMonitor
from focuslens.services.notifier import create_notifier
from focuslens.services.patterns import WorkPatternAnalyzer
from focuslens.services.productivity import RealTimeProductivityCalculator
from focuslens.services.session import WorkSessionManager

logger = logging.getLogger(__name__)

console = Console()

RATINGS = click.Choice(["productive", "neutral", "distracting"])

@dataclass
class Services:
    db: DatabaseManager
    categories: AppCategoryStore
    analytics: ProductivityAnalytics
    monitor: SystemResourceMonitor
    calculator: RealTimeProductivityCalculator

async def build_services(db_path: Optional[str] = None) -> Services:
    """Wire the analytics components over one database"""
    db = DatabaseManager(db_path)
    categories = AppCategoryStore(db)
    await categories.load()
    analytics = ProductivityAnalytics(categories)
    monitor = SystemResourceMonitor(db)
    calculator = RealTimeProductivityCalculator(db, analytics, monitor)
    return Services(db, categories, analytics, monitor, calculator)

@click.group()
@click.option('--db', 'db_path', type=click.Path(dir_okay=False), help='Path to the sqlite database')
@click.pass_context
def cli(ctx, db_path):
    """FocusLens productivity and focus analytics"""
    setup_logging()
    ctx.obj = {"db_path": db_path}

@cli.command()
@click.option('--days', default=7, show_default=True, help='Number of days to include')
@click.pass_context
def trends(ctx, days: int):
    """Show daily productivity trends"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        return await services.calculator.get_productivity_trends(days)

    try:
        TerminalDisplay(console).show_trends(asyncio.run(_run()), days)
    except Exception as e:
        logger.error(f"Failed to show trends: {e}")
        console.print(f"[red]Error showing trends: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--hours', default=24, show_default=True, help='Hours of activity to analyze')
@click.pass_context
def insights(ctx, hours: int):
    """Generate achievements, warnings and insights"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        notifier = create_notifier()
        generator = AutomatedInsightGenerator(
            services.db, services.analytics, services.calculator, notifier
        )
        end = system_clock()
        try:
            return await generator.generate_automated_insights(end - hours * 3600000, end)
        finally:
            await notifier.close()

    try:
        TerminalDisplay(console).show_insight_report(asyncio.run(_run()))
    except Exception as e:
        logger.error(f"Failed to generate insights: {e}")
        console.print(f"[red]Error generating insights: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.pass_context
def optimize(ctx):
    """Suggest work hours, break interval and improvements"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        return await services.calculator.optimize_productivity_settings()

    try:
        TerminalDisplay(console).show_optimization(asyncio.run(_run()))
    except Exception as e:
        logger.error(f"Optimization failed: {e}")
        console.print(f"[red]Error optimizing settings: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.argument('app_name')
@click.argument('category')
@click.option('--rating', type=RATINGS, default='neutral', show_default=True, help='Productivity rating')
@click.pass_context
def categorize(ctx, app_name: str, category: str, rating: str):
    """Assign a category and rating to an application"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        return await services.categories.set_category(app_name, category, rating)

    try:
        record = asyncio.run(_run())
        console.print(f"[green]{record.app_name}[/green] -> {record.category} ({record.productivity_rating})")
    except Exception as e:
        logger.error(f"Failed to categorize {app_name}: {e}")
        console.print(f"[red]Error categorizing {app_name}: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--days', default=7, show_default=True, help='Days of activity to scan for apps')
@click.option('--apply', is_flag=True, help='Save suggestions with confidence of at least 0.7')
@click.pass_context
def suggest(ctx, days: int, apply: bool):
    """Suggest categories for uncategorized applications"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        end = system_clock()
        activities = await services.db.get_activities(ActivityFilter(start=end - days * DAY_MS, end=end))
        suggestions = AppCategorizer(services.categories).get_suggestions(a.app_name for a in activities)
        if apply:
            for suggestion in suggestions:
                if suggestion.confidence >= 0.7:
                    await services.categories.set_category(
                        suggestion.app_name,
                        suggestion.suggested_category,
                        suggestion.suggested_productivity_rating,
                        is_user_defined=False
                    )
        return suggestions

    try:
        TerminalDisplay(console).show_suggestions(asyncio.run(_run()))
    except Exception as e:
        logger.error(f"Failed to suggest categories: {e}")
        console.print(f"[red]Error suggesting categories: {e}[/red]")
        sys.exit(1)

@cli.command('import-activities')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_activities(ctx, path: str):
    """Import a JSON list of activity records and segment them into sessions"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        raw = json.loads(Path(path).read_text())
        records = sorted(
            (ActivityRecord.model_validate(item) for item in raw),
            key=lambda a: a.timestamp
        )
        notifier = create_notifier()
        sessions = WorkSessionManager(services.db, services.analytics, notifier)
        categories = services.categories.snapshot()
        closed = []
        try:
            for record in records:
                enriched = services.analytics.enrich(record, categories)
                await services.db.save_activity(enriched)
                session = await sessions.add_activity(enriched)
                if session:
                    closed.append(session)
            last = await sessions.end_session()
            if last:
                closed.append(last)
        finally:
            await notifier.close()
        return len(records), closed

    try:
        count, closed = asyncio.run(_run())
    except (ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Invalid activity file: {e}[/red]")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Import failed: {e}")
        console.print(f"[red]Import failed: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Imported {count} activities")
    table.add_column("Session start", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Focus", justify="right")
    table.add_column("Rating")
    table.add_column("Dominant app", style="green")
    for session in closed:
        table.add_row(
            str(session.start_time),
            str(session.duration // 60000),
            f"{session.focus_score:.0%}",
            session.productivity_rating,
            session.dominant_app
        )
    console.print(table)

@cli.command()
@click.option('--days', default=7, show_default=True, help='Days of activity to analyze')
@click.pass_context
def patterns(ctx, days: int):
    """Show recurring work patterns, habits and daily cycles"""
    async def _run():
        db = DatabaseManager(ctx.obj["db_path"])
        end = system_clock()
        return await db.get_activities(ActivityFilter(start=end - days * DAY_MS, end=end))

    try:
        activities = asyncio.run(_run())
        analyzer = WorkPatternAnalyzer()
        TerminalDisplay(console).show_patterns(
            analyzer.identify_recurring_work_patterns(activities),
            analyzer.find_work_habits(activities),
            analyzer.detect_productivity_cycles(activities),
            analyzer.analyze_context_switching_patterns(activities)
        )
    except Exception as e:
        logger.error(f"Pattern analysis failed: {e}")
        console.print(f"[red]Error analyzing patterns: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--timeframe', type=click.Choice(["day", "week", "month"]), default='day', show_default=True)
@click.pass_context
def distractions(ctx, timeframe: str):
    """Summarize time spent in distracting applications"""
    async def _run():
        services = await build_services(ctx.obj["db_path"])
        return await DistractionDetector(services.db, services.categories).get_distraction_stats(timeframe)

    try:
        TerminalDisplay(console).show_distraction_stats(asyncio.run(_run()), timeframe)
    except Exception as e:
        logger.error(f"Failed to get distraction stats: {e}")
        console.print(f"[red]Error getting distraction stats: {e}[/red]")
        sys.exit(1)

@cli.command()
@click.option('--interval', type=float, help='Seconds between samples')
@click.option('--samples', type=int, default=0, help='Stop after this many samples (0 runs until interrupted)')
@click.pass_context
def monitor(ctx, interval: Optional[float], samples: int):
    """Sample and store system resource metrics"""
    display = TerminalDisplay(console)

    async def _run():
        services = await build_services(ctx.obj["db_path"])
        resource_monitor = services.monitor
        if interval is not None:
            resource_monitor.interval = interval
        task = resource_monitor.start_monitoring(
            on_sample=display.show_system_metrics,
            samples=samples or None
        )
        try:
            await task
        finally:
            resource_monitor.stop_monitoring()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[yellow]Monitoring stopped[/yellow]")

@cli.command()
@click.option('--days', type=int, help='Days of data to retain')
@click.pass_context
def cleanup(ctx, days: Optional[int]):
    """Delete activities and metrics older than the retention window"""
    try:
        db = DatabaseManager(ctx.obj["db_path"])
        deleted = asyncio.run(db.cleanup_old_data(days))
        stats = db.get_database_stats()
        console.print(Panel(
            f"[green]Deleted {deleted} activities[/green]\n"
            f"[blue]{stats['time_range']['total_records']:,} activities remain[/blue]",
            title="Database Cleanup"
        ))
    except Exception as e:
        logger.error(f"Cleanup failed: {e}")
        console.print(f"[red]Cleanup failed: {e}[/red]")
        sys.exit(1)

if __name__ == '__main__':
    cli()
