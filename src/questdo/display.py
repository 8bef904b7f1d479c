"""Rich terminal display for questdo."""

from __future__ import annotations

import asyncio

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from questdo.badges import BadgeDef
from questdo.engine import Celebration, LevelUp

console = Console()

RARITY_COLORS: dict[str, str] = {
    "common": "grey70",
    "rare": "dodger_blue1",
    "epic": "medium_purple",
    "legendary": "gold1",
}

# Border color by level band (1-9, 10-19, ...)
_LEVEL_COLORS: list[str] = ["dark_orange3", "grey70", "gold1", "deep_sky_blue1", "purple", "orange_red1"]


def level_color(level: int) -> str:
    return _LEVEL_COLORS[min(max(level, 1) // 10, len(_LEVEL_COLORS) - 1)]


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        value = n / 1_000
        if value >= 1000:
            return f"{value:.0f}K"
        return f"{value:.1f}K"
    return f"{n:,}"


def _xp_bar(current: float, total: float, width: int = 20) -> str:
    """Render an XP progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = max(0.0, min(current / total, 1.0))
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_dashboard(data: dict) -> None:
    """Print the main dashboard with level, XP, streak, and badge hints."""
    level = data.get("level", 1)
    color = level_color(level)
    xp_in_level = data.get("xp_in_level", 0)
    xp_for_next = data.get("xp_for_next", 0)

    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold {color}]Level {level} - {data.get('title', '')}[/]")

    bar = _xp_bar(xp_in_level, xp_for_next)
    if xp_for_next > 0:
        lines.append(f"  {bar} {format_number(xp_in_level)}/{format_number(xp_for_next)} XP")
    else:
        lines.append(f"  {bar} MAX LEVEL")
    lines.append(f"  Total: [bold]{format_number(data.get('total_xp', 0))}[/] XP")

    next_title = data.get("next_title")
    if next_title:
        lines.append(f"  Next title at level {next_title[0]}: {next_title[1]}")

    lines.append("")
    lines.append(
        f"  \U0001f525 Streak: {data.get('current_streak', 0)} days  |  "
        f"Best: {data.get('longest_streak', 0)} days"
    )
    lines.append(
        f"  ✅ Tasks: {format_number(data.get('total_completed', 0))}  |  "
        f"\U0001f331 Habit checks: {format_number(data.get('total_habit_checks', 0))}"
    )
    lines.append(f"  \U0001f3c5 Badges: {data.get('badges_earned', 0)}/{data.get('badges_total', 0)}")

    almost = data.get("almost_there", [])
    if almost:
        lines.append("")
        lines.append("  [bold]Almost There:[/]")
        for hint in almost[:3]:
            pct = int(hint.get("progress", 0.0) * 100)
            lines.append(
                f"  ⏳ {hint['name']}: "
                f"{format_number(int(hint.get('current', 0)))}/{format_number(int(hint.get('target', 0)))} ({pct}%)"
            )
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]QUESTDO[/]",
        box=box.ROUNDED,
        border_style=color,
        width=54,
    )
    console.print(panel)


def print_badges(badges: list[dict]) -> None:
    """Print the badge catalog with progress.

    Each dict has: name, description, rarity, xp_reward, earned (bool),
    progress (0.0-1.0), current, target.
    """
    earned = [b for b in badges if b.get("earned")]
    locked = [b for b in badges if not b.get("earned")]
    locked.sort(key=lambda b: b.get("progress") or 0, reverse=True)

    table = Table(
        title="Badges",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("", width=2)
    table.add_column("Badge", min_width=20)
    table.add_column("Rarity", width=10)
    table.add_column("Progress", min_width=18)
    table.add_column("XP", justify="right", width=6)

    for badge in earned + locked:
        rarity = badge.get("rarity", "common")
        color = RARITY_COLORS.get(rarity, "white")
        icon = badge.get("icon") or "✅"
        if not badge.get("earned"):
            icon = "⏳"

        name_text = f"[bold]{badge['name']}[/]\n{badge.get('description', '')}"
        rarity_text = f"[{color}]{rarity.upper()}[/{color}]"

        if badge.get("earned"):
            progress_text = "[green]EARNED[/green]"
        elif badge.get("progress") is None:
            progress_text = "[grey50]special[/grey50]"
        else:
            bar = _xp_bar(badge.get("current", 0), badge.get("target", 0), width=10)
            progress_text = f"{bar} {int(badge['progress'] * 100)}%"

        table.add_row(icon, name_text, rarity_text, progress_text, f"+{badge.get('xp_reward', 0)}")

    console.print(table)


def print_streak_calendar(data: dict) -> None:
    """Print a one-row-per-week heatmap of a habit's recent days.

    data has: habit, days (ordered oldest first), checked (set of days),
    current_streak, longest_streak.
    """
    days: list[str] = data.get("days", [])
    checked: set[str] = set(data.get("checked", ()))

    rows: list[str] = []
    for start in range(0, len(days), 7):
        week = days[start:start + 7]
        cells = "".join("[green]■[/green] " if d in checked else "[grey35]□[/grey35] " for d in week)
        rows.append(f"  {week[0]}  {cells}")

    lines = ["", *rows, ""]
    lines.append(
        f"  \U0001f525 Current: {data.get('current_streak', 0)} days  |  "
        f"Longest: {data.get('longest_streak', 0)} days"
    )
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title=f"[bold]{data.get('habit', '')}[/]",
        box=box.ROUNDED,
        border_style="green",
        width=54,
    )
    console.print(panel)


def print_celebration(celebration: Celebration, locale: str = "en") -> None:
    """Print one celebration: XP toast, level-up banner or badge unlock."""
    if celebration.kind == "xp":
        console.print(f"  [bold green]+{celebration.payload} XP[/]")
    elif celebration.kind == "level_up":
        level_up: LevelUp = celebration.payload
        lines = ["", f"  [bold yellow]LEVEL UP! Level {level_up.level}[/]"]
        if level_up.new_title:
            lines.append(f"  New title: [bold]{level_up.new_title}[/]")
        lines.append("")
        console.print(Panel("\n".join(lines), box=box.ROUNDED, border_style=level_color(level_up.level), width=54))
    elif celebration.kind == "badge":
        badge: BadgeDef = celebration.payload
        color = RARITY_COLORS.get(badge.rarity.value, "white")
        lines = [
            "",
            f"  {badge.icon} [bold]{badge.label(locale)}[/]  [{color}]{badge.rarity.value.upper()}[/{color}]",
            f"  {badge.summary(locale)}",
            f"  [green]+{badge.xp_reward} XP[/]",
            "",
        ]
        console.print(Panel("\n".join(lines), title="[bold]Badge Unlocked[/]", box=box.ROUNDED,
                            border_style=color, width=54))


def make_presenter(locale: str = "en", animate: bool = False):
    """Build an engine presenter that prints celebrations in order.

    With `animate`, waits out each celebration's delay before printing it.
    """

    async def present(celebrations: list[Celebration]) -> None:
        elapsed = 0.0
        for celebration in celebrations:
            if animate and celebration.delay > elapsed:
                await asyncio.sleep(celebration.delay - elapsed)
                elapsed = celebration.delay
            print_celebration(celebration, locale)

    return present


def print_habit_result(habit: str, checked: bool, habit_streak: int) -> None:
    if checked:
        console.print(f"  \U0001f331 [bold]{habit}[/] checked. Habit streak: {habit_streak} days")
    else:
        console.print(f"  ↩️  [bold]{habit}[/] unchecked for today. Habit streak: {habit_streak} days")


def print_config(config: dict) -> None:
    table = Table(title="Settings", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in config.items():
        table.add_row(key, str(value))
    console.print(table)


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/] {message}")
