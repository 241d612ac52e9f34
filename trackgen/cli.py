"""CLI entry-point: periodic trigger and admin commands."""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from trackgen.config import get_settings
from trackgen.errors import TrackgenError
from trackgen.schemas.models import DeployTrack, TaskStatus, TextKind
from trackgen.schemas.requests import GenerateConfig, TextGenerateRequest
from trackgen.service import get_service

app = typer.Typer(help="Scheduled AI music generation pipeline")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.trackgen_log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def tick():
    """Run every due schedule (call once per minute from cron)."""
    console = Console()
    result = get_service().tick()
    for run in result.runs:
        color = "green" if run.success else "red"
        console.print(
            f"[{color}]{run.schedule_id}[/{color}]: {run.total_generations} submission(s), "
            f"next run {run.next_run or '-'}" + (f" ({run.error})" if run.error else "")
        )
    console.print(f"{result.due} due, {result.executed} executed, {len(result.skipped)} skipped")


@app.command("process-tasks")
def process_tasks(
    limit: int = typer.Option(None, help="Max tasks to poll (default from TRACKGEN_POLL_BATCH_SIZE)"),
):
    """Poll the music provider for in-flight tasks and deploy finished ones."""
    console = Console()
    summary = get_service().process_tasks(limit)
    for outcome in summary.outcomes:
        console.print(f"{outcome.task_id}: {outcome.status} {outcome.message}")
    console.print(json.dumps(summary.counts))


@app.command("run-schedule")
def run_schedule(
    schedule_id: str = typer.Argument(None, help="Schedule id (omit for an ad hoc run)"),
    style: str = typer.Option(None, help="Style override"),
    mood: str = typer.Option(None, help="Mood override"),
    description: str = typer.Option("", help="Prompt description for ad hoc runs"),
    count: int = typer.Option(None, help="Submission rounds (2 tracks each)"),
    auto_deploy: bool = typer.Option(None, "--auto-deploy/--no-auto-deploy", help="Deploy when generated"),
):
    """Run a schedule now, or an ad hoc generation when no id is given."""
    console = Console()
    config = GenerateConfig(style=style, mood=mood, description=description, count=count, auto_deploy=auto_deploy)
    try:
        result = get_service().run_schedule_now(schedule_id, config)
    except TrackgenError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    for r in result.rounds:
        mark = "[green]ok[/green]" if r.success else f"[red]failed: {r.error}[/red]"
        console.print(f"Round {r.iteration}: {mark} {r.provider_task_id or ''} {', '.join(r.titles)}")
    if result.error:
        console.print(f"[red]Run aborted: {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Done.[/green] {result.total_generations * 2}/{result.expected_tracks} track(s) submitted")


@app.command("list-schedules")
def list_schedules():
    """Show all schedules."""
    console = Console()
    table = Table("id", "name", "frequency", "run time", "count", "style/mood", "next run", "active")
    for s in get_service().list_schedules():
        table.add_row(
            s.id, s.name, s.frequency.value, s.run_time, str(s.count), f"{s.style}/{s.mood}",
            s.next_run.isoformat() if s.next_run else "-", "yes" if s.is_active else "no",
        )
    console.print(table)


@app.command("list-tasks")
def list_tasks(
    status: TaskStatus = typer.Option(None, help="Filter by status"),
    limit: int = typer.Option(50),
    offset: int = typer.Option(0),
):
    """Show generation tasks with a status summary."""
    console = Console()
    listing = get_service().list_tasks(status, limit, offset)
    table = Table("id", "title", "status", "track", "provider task", "error")
    for t in listing.tasks:
        table.add_row(t.id, t.title, t.status.value, str(t.track_index), t.provider_task_id, t.error or "")
    console.print(table)
    s = listing.summary
    console.print(
        f"total {s.total}, deployed {s.deployed}, in flight {s.pending}, failed {s.failed}, "
        f"success rate {s.success_rate}%"
    )


@app.command("retry-task")
def retry_task(task_id: str = typer.Argument(...)):
    """Reset a FAILED task to PENDING."""
    console = Console()
    try:
        task = get_service().retry_task(task_id)
    except TrackgenError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"{task.id}: {task.status.value}")


@app.command("cancel-task")
def cancel_task(task_id: str = typer.Argument(...)):
    """Force a task that is not deployed to FAILED."""
    console = Console()
    try:
        task = get_service().cancel_task(task_id)
    except TrackgenError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"{task.id}: {task.status.value}")


@app.command("purge-failed")
def purge_failed(days: int = typer.Option(None, help="Age in days (default from settings)")):
    """Delete FAILED tasks older than the given age."""
    deleted = get_service().purge_old_failed_tasks(days)
    Console().print(f"Deleted {deleted} failed task(s)")


@app.command()
def deploy(
    tracks_file: str = typer.Argument(..., help="JSON file with a list of tracks"),
    category: str = typer.Option(None, help="Catalog category override"),
):
    """Deploy generated tracks into the catalog."""
    console = Console()
    path = Path(tracks_file)
    if not path.exists():
        console.print(f"[red]Error: file not found: {path}[/red]")
        raise typer.Exit(1)
    data = json.loads(path.read_text(encoding="utf-8"))
    tracks = [DeployTrack.model_validate(t) for t in data]
    result = get_service().deploy_tracks(tracks, category)
    for item in result.results:
        if item.success:
            console.print(f"[green]{item.action}[/green] {item.title} -> {item.entry_id}")
        else:
            console.print(f"[red]failed[/red] {item.title}: {item.error}")
    s = result.summary
    console.print(f"{s.total} total, {s.created} created, {s.updated} updated, {s.failed} failed")


@app.command("generate-titles")
def generate_titles(
    category: str = typer.Option(None, help="Title pool category (default from settings)"),
    mood: str = typer.Option("calm"),
    style: str = typer.Option("piano"),
    count: int = typer.Option(50),
):
    """Refill the title pool from the text provider."""
    console = Console()
    service = get_service()
    try:
        added = service.generate_titles(category, mood, style, count)
    except TrackgenError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    status = service.title_status(category)
    console.print(f"Added {added} title(s); {status.available}/{status.total} available")


@app.command("generate-text")
def generate_text(
    kind: TextKind = typer.Argument(..., help="title, lyrics, keywords or music-prompt"),
    keywords: str = typer.Option("", help="Theme keywords (required for title and lyrics)"),
    mood: str = typer.Option("calm"),
    style: str = typer.Option("piano"),
    category: str = typer.Option("healing"),
    title: str = typer.Option("", help="Track title (music-prompt)"),
    count: int = typer.Option(5, help="Number of titles or theme sets"),
    provider: str = typer.Option(None, help="openai, anthropic or gemini (default from settings)"),
):
    """Generate titles, lyrics, keyword themes or a music prompt and print them."""
    console = Console()
    try:
        request = TextGenerateRequest(
            kind=kind, keywords=keywords, mood=mood, style=style,
            category=category, title=title, count=count, provider=provider,
        )
        result = get_service().generate_text(request)
    except (TrackgenError, ValueError) as e:
        # Validation messages contain brackets that would read as markup
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)
    if result.titles:
        table = Table("Title", "Translation")
        for entry in result.titles:
            table.add_row(entry.primary, entry.secondary)
        console.print(table)
    elif result.keywords:
        for line in result.keywords:
            console.print(f"- {line}", markup=False)
    else:
        console.print(result.text, markup=False)


@app.command("title-status")
def title_status(category: str = typer.Option(None)):
    """Show title pool counts."""
    status = get_service().title_status(category)
    flag = " [yellow](needs generation)[/yellow]" if status.needs_generation else ""
    Console().print(f"{status.category}: {status.available}/{status.total} available{flag}")


@app.command()
def credits():
    """Show remaining music provider credits."""
    console = Console()
    try:
        console.print(f"Credits: {get_service().music_credits()}")
    except TrackgenError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
