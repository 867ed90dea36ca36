from datetime import datetime
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from focuslens.models.insights import InsightReport
from focuslens.models.metrics import ProductivityOptimization, ProductivityTrend, SystemMetrics, WorkPattern
from focuslens.models.patterns import ContextSwitchPattern, DistractionStats, ProductivityCycle, WorkHabit
from focuslens.services.categories import CategorySuggestion
from focuslens.services.clock import HOUR_MS

SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}

IMPACT_STYLES = {
    "positive": "green",
    "beneficial": "green",
    "neutral": "yellow",
    "negative": "red",
    "disruptive": "red",
}

def _score_style(score: float) -> str:
    if score >= 0.7:
        return "green"
    if score >= 0.3:
        return "yellow"
    return "red"

class TerminalDisplay:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def show_trends(self, trends: Sequence[ProductivityTrend], days: int):
        """Daily productivity trend table"""
        header = Text()
        header.append("📊 FocusLens Productivity Trends", style="bold cyan")
        header.append(f"\nLast {days} days\n", style="dim")
        self.console.print(Panel(header, expand=False))

        if not trends:
            self.console.print("\n[yellow]No activity recorded in this period[/yellow]")
            return

        table = Table(title="Daily Trends")
        table.add_column("Date", style="cyan")
        table.add_column("Productivity", justify="right")
        table.add_column("Focus", justify="right")
        table.add_column("Efficiency", justify="right")
        table.add_column("Active", justify="right", style="blue")
        table.add_column("Peak Hours", style="magenta")
        table.add_column("Top Apps", style="green")
        table.add_column("Distractions", style="red")

        for trend in trends:
            table.add_row(
                trend.date,
                Text(f"{trend.productivity_score:.0%}", style=_score_style(trend.productivity_score)),
                Text(f"{trend.focus_score:.0%}", style=_score_style(trend.focus_score)),
                f"{trend.efficiency:.0%}",
                f"{trend.total_active_time / HOUR_MS:.1f}h",
                ", ".join(f"{h}:00" for h in trend.peak_hours),
                ", ".join(trend.top_productive_apps),
                ", ".join(trend.top_distracting_apps)
            )
        self.console.print(table)

    def show_insight_report(self, report: InsightReport):
        if report.achievements:
            self.console.print("\n[bold yellow]Achievements[/bold yellow]")
            for achievement in report.achievements:
                self.console.print(f"  {achievement.badge} [bold]{achievement.title}[/bold]: {achievement.description}")

        if report.warnings:
            self.console.print("\n[bold red]Warnings[/bold red]")
            for warning in report.warnings:
                style = SEVERITY_STYLES.get(warning.severity, "white")
                body = Text()
                body.append(f"{warning.description}\n", style="white")
                for recommendation in warning.recommendations:
                    body.append(f"  • {recommendation}\n", style="dim")
                self.console.print(Panel(body, title=f"[{style}]{warning.title} ({warning.severity})[/{style}]"))

        if report.insights:
            table = Table(title="Insights")
            table.add_column("Priority")
            table.add_column("Insight", style="cyan")
            table.add_column("Details")
            for insight in report.insights:
                style = SEVERITY_STYLES.get(insight.priority, "white")
                table.add_row(Text(insight.priority, style=style), insight.title, insight.description)
            self.console.print(table)

        if report.recommendations:
            self.console.print(Panel(
                "• " + "\n• ".join(report.recommendations),
                title="Recommendations"
            ))

        if not (report.achievements or report.warnings or report.insights):
            self.console.print("\n[yellow]Not enough data for insights yet[/yellow]")

    def show_optimization(self, optimization: ProductivityOptimization):
        hours = optimization.optimal_work_hours
        summary = Text()
        summary.append("Optimal work hours: ", style="bold")
        summary.append(f"{hours.start}:00 - {hours.end}:00\n", style="green")
        summary.append("Suggested break interval: ", style="bold")
        summary.append(f"{optimization.suggested_break_interval} minutes", style="green")
        self.console.print(Panel(summary, title="Productivity Settings", expand=False))

        sections = [
            ("General", optimization.recommendations),
            ("Focus", optimization.focus_improvements),
            ("Resources", optimization.resource_optimizations),
        ]
        for title, items in sections:
            if items:
                self.console.print(f"\n[bold cyan]{title}[/bold cyan]")
                for item in items:
                    self.console.print(f"  • {item}")

    def show_suggestions(self, suggestions: List[CategorySuggestion]):
        if not suggestions:
            self.console.print("[green]All applications are categorized[/green]")
            return

        table = Table(title="Category Suggestions")
        table.add_column("Application", style="cyan")
        table.add_column("Category")
        table.add_column("Rating")
        table.add_column("Confidence", justify="right")
        table.add_column("Reason", style="dim")
        for suggestion in suggestions:
            table.add_row(
                suggestion.app_name,
                suggestion.suggested_category,
                suggestion.suggested_productivity_rating,
                f"{suggestion.confidence:.0%}",
                suggestion.reason
            )
        self.console.print(table)

    def show_system_metrics(self, metrics: SystemMetrics):
        time_str = datetime.fromtimestamp(metrics.timestamp / 1000).strftime("%H:%M:%S")
        line = Text()
        line.append(f"🕒 {time_str} ", style="bold cyan")
        line.append(f"CPU {metrics.cpu_usage:5.1f}%  ", style="red" if metrics.cpu_usage > 80 else "green")
        line.append(f"MEM {metrics.memory_usage:5.1f}%  ", style="red" if metrics.memory_usage > 85 else "green")
        line.append(f"DISK {metrics.disk_usage:5.1f}%  ", style="dim")
        line.append(f"NET {metrics.network_activity / 1024:.1f} KB/s", style="dim")
        self.console.print(line)

    def show_patterns(
        self,
        patterns: Sequence[WorkPattern],
        habits: Sequence[WorkHabit],
        cycles: Sequence[ProductivityCycle],
        switches: Sequence[ContextSwitchPattern]
    ):
        """Recurring patterns, habits, daily cycles and switching habits"""
        if not (patterns or habits or cycles or switches):
            self.console.print("[yellow]No recurring patterns found yet[/yellow]")
            return

        if patterns:
            table = Table(title="Work Patterns")
            table.add_column("Pattern", style="cyan")
            table.add_column("Hours")
            table.add_column("Confidence", justify="right")
            table.add_column("Impact")
            for pattern in patterns:
                table.add_row(
                    pattern.name,
                    f"{pattern.start_hour}:00 - {pattern.end_hour}:00",
                    f"{pattern.confidence:.0%}",
                    Text(pattern.productivity_impact, style=IMPACT_STYLES[pattern.productivity_impact])
                )
            self.console.print(table)

        if habits:
            self.console.print("\n[bold cyan]Habits[/bold cyan]")
            for habit in habits:
                style = IMPACT_STYLES[habit.impact]
                self.console.print(f"  [{style}]•[/{style}] {habit.description}")
                if habit.recommendation:
                    self.console.print(f"    [dim]{habit.recommendation}[/dim]")

        if cycles:
            table = Table(title="Daily Cycles")
            table.add_column("Hours", style="cyan")
            table.add_column("Type")
            table.add_column("Productivity", justify="right")
            table.add_column("Days", justify="right")
            for cycle in sorted(cycles, key=lambda c: c.start_hour):
                table.add_row(
                    f"{cycle.start_hour}:00 - {cycle.end_hour + 1}:00",
                    cycle.type,
                    Text(f"{cycle.average_productivity:.0%}", style=_score_style(cycle.average_productivity)),
                    str(cycle.days_observed)
                )
            self.console.print(table)

        if switches:
            table = Table(title="Context Switching")
            table.add_column("Switch", style="cyan")
            table.add_column("Count", justify="right")
            table.add_column("Kind")
            table.add_column("Impact")
            for switch in switches:
                table.add_row(
                    f"{switch.from_app} → {switch.to_app}",
                    str(switch.frequency),
                    switch.pattern,
                    Text(switch.impact, style=IMPACT_STYLES[switch.impact])
                )
            self.console.print(table)

    def show_distraction_stats(self, stats: DistractionStats, timeframe: str):
        summary = Text()
        summary.append("Distractions: ", style="bold")
        summary.append(f"{stats.total_events}\n")
        summary.append("Time lost: ", style="bold")
        summary.append(f"{stats.total_distraction_time / 60000:.0f} minutes\n", style="red")
        summary.append("Average: ", style="bold")
        summary.append(f"{stats.average_distraction_duration / 60000:.1f} minutes\n")
        breakdown = stats.severity_breakdown
        summary.append(
            f"High {breakdown['high']} · Medium {breakdown['medium']} · Low {breakdown['low']}",
            style="dim"
        )
        self.console.print(Panel(summary, title=f"Distractions (last {timeframe})", expand=False))

        if stats.top_distracting_apps:
            table = Table(title="Top Distracting Apps")
            table.add_column("Application", style="cyan")
            table.add_column("Events", justify="right")
            table.add_column("Minutes", justify="right", style="red")
            for app in stats.top_distracting_apps:
                table.add_row(app.app_name, str(app.count), f"{app.total_time / 60000:.0f}")
            self.console.print(table)
