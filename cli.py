import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
from datetime import datetime, timedelta

from studycap.allocator import PlanAllocator
from studycap.card_parser import CardParser
from studycap.clock import utcnow
from studycap.config import settings
from studycap.database import SessionLocal, init_db
from studycap.crud import (
    create_flashcard, import_flashcards, get_due_flashcards,
    get_study_cards, review_flashcard,
    load_tracker,
    create_study_plan, get_study_plan, get_study_plans, get_plan_tasks,
    complete_plan_task, replan_study_plan,
    create_study_block, get_blocks_for_week
)
from studycap.due import days_overdue
from studycap.errors import EmptyPlanError, StudyEngineError
from studycap.logging_config import setup_logging
from studycap.plans import current_day, plan_progress
from studycap.replan import ReplanEngine
from studycap.schemas import PlanTask, StudyBlock, StudyPlan, WorkloadBand
from studycap.task_source import TemplateTaskSource, get_task_source
from studycap.workload import subject_load, weekly_load

app = typer.Typer(help="StudyCap CLI - adaptive flashcard reviews and study plans")
console = Console()

BAND_STYLES = {
    WorkloadBand.HIGH: "red",
    WorkloadBand.MEDIUM: "dark_orange",
    WorkloadBand.LOW: "blue",
    WorkloadBand.NONE: "dim",
}

@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """Configure logging before any command runs"""
    setup_logging("DEBUG" if verbose else None)

def _allocator(offline: bool, topics: Optional[str] = None) -> PlanAllocator:
    if offline:
        topic_list = [t.strip() for t in topics.split(",")] if topics else None
        return PlanAllocator(TemplateTaskSource(topic_list))
    return PlanAllocator(get_task_source())

@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")

@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from studycap.database import engine, Base
    import studycap.models  # noqa: F401
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓[/green] Database reset complete! All data deleted.")

@app.command()
def add_card(
    front: str = typer.Option(..., prompt="Front (question)"),
    back: str = typer.Option(..., prompt="Back (answer)"),
    topic: Optional[str] = typer.Option(None, help="Topic used for weak-point tracking (default: front)")
):
    """Create a flashcard"""
    db = SessionLocal()
    try:
        card = create_flashcard(db, front, back, topic)
        console.print(f"[green]✓[/green] Flashcard created! ID: {card.id}")
    finally:
        db.close()

@app.command()
def import_cards(file_path: str = typer.Argument(..., help="Card table (.csv or .xlsx) with front/back columns")):
    """Import flashcards from a CSV or Excel file"""
    db = SessionLocal()
    try:
        console.print(f"[yellow]Parsing {file_path}...[/yellow]")
        cards = CardParser.auto_parse(file_path)
        records = import_flashcards(db, cards)
        console.print(f"[green]✓[/green] Imported {len(records)} flashcards")
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]✗[/red] Error: {str(e)}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def due(shuffle: bool = typer.Option(False, help="Shuffle the study order")):
    """Show the cards to study now (all cards when none are due)"""
    db = SessionLocal()
    try:
        now = utcnow()
        due_cards = get_due_flashcards(db, now)
        cards = get_study_cards(db, now, shuffle=shuffle)

        if not cards:
            console.print("[yellow]No flashcards yet. Add some with add-card or import-cards.[/yellow]")
            return

        if due_cards:
            console.print(f"\n[bold]{len(due_cards)} cards due for review[/bold]")
        else:
            console.print("\n[bold]Nothing due - studying all cards[/bold]")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Front", style="green")
        table.add_column("Due", style="yellow")
        table.add_column("Days Overdue", style="red", justify="right")
        table.add_column("Interval", style="blue", justify="right")
        table.add_column("Ease", justify="right")

        for card in cards:
            overdue = days_overdue(card, now)
            table.add_row(
                str(card.id),
                card.front[:50],
                card.next_review_at.strftime("%Y-%m-%d %H:%M"),
                str(overdue) if overdue > 0 else "-",
                f"{card.interval_days} d",
                f"{card.ease_factor:.2f}"
            )

        console.print(table)
    finally:
        db.close()

@app.command()
def review(
    card_id: int = typer.Option(..., prompt="Card ID"),
    quality: int = typer.Option(..., prompt="Quality (0-2 fail, 3 hard, 4 good, 5 easy)")
):
    """Record a flashcard review"""
    db = SessionLocal()
    try:
        card = review_flashcard(db, card_id, quality)
        if not card:
            console.print(f"[red]✗[/red] Card ID {card_id} not found")
            raise typer.Exit(code=1)

        console.print(f"[green]✓[/green] Review recorded!")
        console.print(f"  Card: {card.front[:60]}")
        console.print(f"  Next review: {card.next_review_at.strftime('%Y-%m-%d')} (in {card.interval_days} days)")
        console.print(f"  Ease: {card.ease_factor:.2f}  Repetitions: {card.repetitions}")
    except StudyEngineError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def weak_points(limit: int = typer.Option(5, help="Number of topics to show")):
    """List the topics you struggle with most"""
    db = SessionLocal()
    try:
        tracker = load_tracker(db)
        top = tracker.top_weak(limit)
        if not top:
            console.print("[green]No weak points - keep it up![/green]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Topic", style="green")
        table.add_column("Failures", style="red", justify="right")
        table.add_column("Last Failed", style="yellow")
        for wp in top:
            table.add_row(wp.topic[:60], str(wp.count), wp.last_failed_at.strftime("%Y-%m-%d %H:%M"))
        console.print(table)
    finally:
        db.close()

@app.command()
def create_plan(
    goal: str = typer.Option(..., prompt="Study goal"),
    days: int = typer.Option(settings.default_plan_days, min=1, help="Plan length in days"),
    offline: bool = typer.Option(False, help="Use built-in task templates instead of the LLM"),
    topics: Optional[str] = typer.Option(None, help="Comma-separated topics for offline templates")
):
    """Generate a multi-day study plan"""
    db = SessionLocal()
    try:
        weak_topics = load_tracker(db).weak_topics(5)
        if weak_topics:
            console.print(f"[yellow]Prioritizing weak topics:[/yellow] {', '.join(weak_topics)}")

        console.print("[yellow]Generating plan (this may take a moment)...[/yellow]")
        plan = create_study_plan(db, goal, days, _allocator(offline, topics), weak_topics)
        tasks = get_plan_tasks(db, plan.id)
        console.print(f"[green]✓[/green] Study plan created! ID: {plan.id} ({len(tasks)} tasks over {plan.duration_days} days)")
    except EmptyPlanError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def view_plan(plan_id: Optional[int] = typer.Argument(None, help="Plan ID (default: latest)")):
    """View a study plan day by day"""
    db = SessionLocal()
    try:
        if plan_id is None:
            plans = get_study_plans(db)
            plan = plans[0] if plans else None
        else:
            plan = get_study_plan(db, plan_id)
        if not plan:
            console.print("[yellow]No study plan found[/yellow]")
            return

        tasks = [PlanTask.model_validate(t) for t in get_plan_tasks(db, plan.id)]
        today = current_day(StudyPlan.model_validate(plan), utcnow())
        completed, total, percent = plan_progress(tasks)

        console.print(f"\n[bold]{plan.goal}[/bold]")
        console.print(f"Day {today} of {plan.duration_days} - {completed}/{total} tasks completed ({percent:.0f}%)\n")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Day", style="cyan", justify="right")
        table.add_column("ID", justify="right")
        table.add_column("Type", style="blue")
        table.add_column("Task", style="green")
        table.add_column("Minutes", justify="right")
        table.add_column("Status", style="yellow")

        for task in tasks:
            day_label = f"{task.day_number}*" if task.day_number == today else str(task.day_number)
            status = "✓ done" if task.completed_at else "pending"
            table.add_row(
                day_label,
                str(task.id),
                task.task_type.value.replace("_", " "),
                task.title[:60],
                str(task.time_estimate_minutes),
                status
            )

        console.print(table)
    finally:
        db.close()

@app.command()
def complete_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    mastered: bool = typer.Option(False, help="Mastery was verified")
):
    """Mark a plan task as completed"""
    db = SessionLocal()
    try:
        task = complete_plan_task(db, task_id, mastery_verified=mastered)
        if not task:
            console.print(f"[red]✗[/red] Task ID {task_id} not found")
            raise typer.Exit(code=1)
        console.print(f"[green]✓[/green] Completed: {task.title}")
    finally:
        db.close()

@app.command()
def replan(
    plan_id: int = typer.Argument(..., help="Plan ID"),
    offline: bool = typer.Option(False, help="Use built-in task templates instead of the LLM"),
    topics: Optional[str] = typer.Option(None, help="Comma-separated topics for offline templates")
):
    """Rebuild the unfinished part of a plan around your weak points"""
    db = SessionLocal()
    try:
        weak_topics = load_tracker(db).weak_topics(5)
        engine = ReplanEngine(_allocator(offline, topics))
        result = replan_study_plan(db, plan_id, engine, weak_topics)
        if not result:
            console.print(f"[red]✗[/red] Plan ID {plan_id} not found")
            raise typer.Exit(code=1)

        console.print(f"[green]✓[/green] Plan adjusted!")
        console.print(f"  Kept {len(result.kept)} completed tasks")
        console.print(f"  Replaced {len(result.discarded)} pending tasks with {len(result.drafts)} new ones")
        if result.catch_up:
            console.print("  [yellow]Plan horizon has passed - new tasks form a 1-day catch-up[/yellow]")
        else:
            console.print(f"  New tasks cover days {result.window_start}-{result.window_start + result.remaining_days - 1}")
    except EmptyPlanError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def add_block(
    title: str = typer.Option(..., prompt="Block title"),
    start: str = typer.Option(..., prompt="Start (YYYY-MM-DD HH:MM)"),
    minutes: int = typer.Option(60, min=1, help="Length in minutes"),
    subject: Optional[str] = typer.Option(None, help="Subject"),
    task_id: Optional[int] = typer.Option(None, help="Linked plan task ID")
):
    """Place a study block on the calendar"""
    db = SessionLocal()
    try:
        start_time = datetime.strptime(start, "%Y-%m-%d %H:%M")
        block = StudyBlock(
            title=title,
            subject=subject,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            task_id=task_id
        )
        record = create_study_block(db, block)
        console.print(f"[green]✓[/green] Study block created! ID: {record.id}")
    except ValueError as e:
        console.print(f"[red]✗[/red] Error: {str(e)}")
        raise typer.Exit(code=1)
    finally:
        db.close()

@app.command()
def workload(week_start: Optional[str] = typer.Option(None, help="Week start date (YYYY-MM-DD). Default: this Monday (UTC)")):
    """Show scheduled hours and workload bands for a week"""
    db = SessionLocal()
    try:
        if week_start:
            start = datetime.strptime(week_start, "%Y-%m-%d").date()
        else:
            today = utcnow().date()
            start = today - timedelta(days=today.weekday())

        blocks = get_blocks_for_week(db, start)

        table = Table(show_header=True, header_style="bold magenta", title=f"Week of {start}")
        table.add_column("Day", style="cyan")
        table.add_column("Blocks", justify="right")
        table.add_column("Hours", justify="right")
        table.add_column("Load")
        for load in weekly_load(blocks, start):
            style = BAND_STYLES[load.band]
            table.add_row(
                load.day.strftime("%a %d %b"),
                str(load.block_count),
                f"{load.hours:.1f}",
                f"[{style}]{load.band.value}[/{style}]"
            )
        console.print(table)

        subjects = subject_load(blocks)
        if subjects:
            console.print(f"\n[cyan]By subject:[/cyan]")
            for s in subjects:
                console.print(f"  {s.subject}: {s.scheduled_hours:.1f} h scheduled, {s.completed_hours:.1f} h done")
    finally:
        db.close()

if __name__ == "__main__":
    app()
