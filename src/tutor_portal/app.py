"""Interactive CLI for the student portal and the teacher console."""
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from tutor_portal.admin import (
    add_module, add_question, add_topic, delete_question, list_modules,
    list_questions, list_students, list_topics, recent_questions,
)
from tutor_portal.analytics import (
    filter_results, recent_results, results_average, student_overview,
)
from tutor_portal.auth import Identity, authorize, resolve_identity
from tutor_portal.config import get_settings
from tutor_portal.curriculum import (
    completion_percent, grade_summary, module_completion, modules_for_subject,
)
from tutor_portal.db import init_db
from tutor_portal.errors import PortalError
from tutor_portal.models import OPTIONS, SUBJECTS
from tutor_portal.progress import ProgressBoard
from tutor_portal.quiz import FINISHED, NO_QUESTIONS, QuizSession, start_quiz
from tutor_portal.review import CORRECT, INCORRECT, SKIPPED, load_review, review_summary
from tutor_portal.seed import is_seeded, seed_all

console = Console()

EXIT_WORDS = ("q", "menu")

STUDENT_COMMANDS = [
    ("dashboard", "/dashboard", "Curriculum tracker"),
    ("grades", "/dashboard", "My grades"),
    ("homework", "/dashboard", "Homework due"),
    ("done", "/dashboard", "Mark a topic complete / not complete"),
    ("confidence", "/dashboard", "Rate your confidence in a topic"),
    ("quiz", "/dashboard/quiz", "Take a topic quiz"),
    ("review", "/dashboard/review", "Review your last quiz answers"),
]

ADMIN_COMMANDS = [
    ("admin", "/admin", "Teacher overview"),
    ("curriculum", "/admin/curriculum", "Curriculum editor"),
    ("questions", "/admin/questions", "Question factory"),
    ("assignments", "/admin/assignments", "Assign homework"),
    ("analytics", "/admin/analytics", "Gradebook"),
    ("student", "/admin/student", "Student detail"),
]

ROUTES = {name: path for name, path, _ in STUDENT_COMMANDS + ADMIN_COMMANDS}


class SessionExitRequested(Exception):
    """Raised when the user types q or menu at a prompt inside a view."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer is not None and answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str] | None = None) -> int:
    while True:
        answer = session_prompt(prompt, choices=choices + list(EXIT_WORDS) if choices else None)
        try:
            return int(answer)
        except ValueError:
            console.print("[red]Please enter a whole number.[/red]")


def show_welcome(identity: Identity):
    role = "Teacher" if identity.is_admin else "Student"
    console.print(Panel(
        f"[bold]Tutor Portal[/bold]\n[dim]{identity.email} ({role})[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(identity: Identity):
    console.print("\n[bold]Commands:[/bold]")
    commands = STUDENT_COMMANDS + (ADMIN_COMMANDS if identity.is_admin else [])
    for cmd, _, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")
    console.print(f"  [cyan]{'quit':<14}[/cyan] Exit")


def status_mark(status: str) -> str:
    return {
        "complete": "[green]✔[/green]",
        "review": "[yellow]↺[/yellow]",
        "locked": "[dim]🔒[/dim]",
    }.get(status, "[dim]·[/dim]")


def render_tracker(modules, subject: str, show_assigned: bool = False):
    percent = completion_percent(modules, subject)
    console.print(Panel(
        f"[bold]{subject.title()} Tracker[/bold]  {percent}% complete",
        border_style="blue",
    ))
    for module in modules_for_subject(modules, subject):
        table = Table(title=f"{module.title} ({module_completion(module)}%)")
        table.add_column("", justify="center")
        table.add_column("Code", style="cyan")
        table.add_column("Topic")
        table.add_column("Video", justify="center")
        table.add_column("Quiz", justify="center")
        table.add_column("Confidence")
        table.add_column("Score", justify="right")
        if show_assigned:
            table.add_column("Assigned", justify="center")
        for topic in module.topics:
            row = [
                status_mark(topic.status),
                topic.id,
                topic.title,
                "▶" if topic.has_video else "",
                "?" if topic.has_questions else "",
                "●" * topic.confidence + "○" * (3 - topic.confidence),
                f"{topic.score}%" if topic.score else "",
            ]
            if show_assigned:
                row.append("[red]⚑[/red]" if topic.is_assigned else "")
            table.add_row(*row)
        console.print(table)


def render_homework(homework):
    if not homework:
        console.print("[green]No homework due.[/green]")
        return
    console.print(Panel(
        "\n".join(f"[bold]{t.id}[/bold]  {t.title}" for t in homework),
        title="⚑ Homework Due", border_style="red",
    ))


def render_grades(modules):
    summary = grade_summary(modules)
    console.print(
        f"\n  Overall: [bold]{summary['overall']}%[/bold]  |  "
        f"Chemistry: [bold]{summary['chemistry']}%[/bold]  |  "
        f"Physics: [bold]{summary['physics']}%[/bold]\n"
    )
    if not summary["graded"]:
        console.print("[dim]No quizzes taken yet.[/dim]")
        return
    table = Table(title="My Grades")
    table.add_column("Code", style="cyan")
    table.add_column("Topic")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    for topic in summary["graded"]:
        color = "green" if topic.status == "complete" else "yellow"
        table.add_row(topic.id, topic.title, f"{topic.score}%", f"[{color}]{topic.status}[/{color}]")
    console.print(table)


def run_quiz(session: QuizSession) -> QuizSession:
    if session.state == NO_QUESTIONS:
        console.print("[yellow]No questions found for this topic yet![/yellow]")
        return session
    console.print(f"\n[bold]Quiz[/bold]: {session.total} questions\n")
    while session.state != FINISHED:
        q = session.current
        console.print(f"[bold]Q{session.index + 1}.[/bold] {q.question}\n")
        if q.image_url:
            console.print(f"  [dim]Image: {q.image_url}[/dim]")
        for letter in OPTIONS:
            console.print(f"  [cyan]{letter})[/cyan] {q.option(letter)}")
        answer = session_prompt("\nYour answer", choices=list(OPTIONS) + list(EXIT_WORDS))
        if session.answer(answer):
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{q.correct_answer}[/green]")
        if q.explanation:
            console.print(f"[dim]{q.explanation}[/dim]")
        console.print()
        session.next()
    if session.passed:
        console.print(f"[bold green]Great job! You scored {session.percentage}%.[/bold green]")
    else:
        console.print(f"[bold yellow]Keep practicing. You scored {session.percentage}%.[/bold yellow]")
    return session


def render_review(items):
    if not items:
        console.print("[yellow]No questions found for this topic yet![/yellow]")
        return
    summary = review_summary(items)
    console.print(
        f"[green]{summary[CORRECT]} correct[/green]  "
        f"[red]{summary[INCORRECT]} incorrect[/red]  "
        f"[dim]{summary[SKIPPED]} skipped[/dim]\n"
    )
    for i, item in enumerate(items, 1):
        q = item.question
        label = {CORRECT: "[green]Correct[/green]", INCORRECT: "[red]Incorrect[/red]"}.get(
            item.outcome, "[dim]Skipped[/dim]")
        console.print(f"[bold]Q{i}.[/bold] {q.question}  {label}")
        for letter in OPTIONS:
            marks = ""
            if letter == q.correct_answer:
                marks += " [green]✔[/green]"
            if letter == item.selected and item.outcome == INCORRECT:
                marks += " [red]✘ your answer[/red]"
            console.print(f"  {letter}) {q.option(letter)}{marks}")
        if q.explanation:
            console.print(f"  [dim]{q.explanation}[/dim]")
        console.print()


def load_board(db_path: str, email: str) -> ProgressBoard:
    board = ProgressBoard(db_path, email)
    board.refresh()
    return board


def ask_subject() -> str:
    return session_prompt("Subject", choices=list(SUBJECTS) + list(EXIT_WORDS), default="chemistry")


def cmd_dashboard(db_path: str, identity: Identity):
    board = load_board(db_path, identity.email)
    render_homework(board.homework)
    render_tracker(board.modules, ask_subject())


def cmd_grades(db_path: str, identity: Identity):
    render_grades(load_board(db_path, identity.email).modules)


def cmd_homework(db_path: str, identity: Identity):
    render_homework(load_board(db_path, identity.email).homework)


def cmd_done(db_path: str, identity: Identity):
    board = load_board(db_path, identity.email)
    topic = board.toggle_status(session_prompt("Topic code"))
    console.print(f"[green]{topic.id} is now {topic.status}.[/green]")


def cmd_confidence(db_path: str, identity: Identity):
    board = load_board(db_path, identity.email)
    topic_id = session_prompt("Topic code")
    level = session_int_prompt("Confidence (0-3)", choices=["0", "1", "2", "3"])
    topic = board.set_confidence(topic_id, level)
    console.print(f"[green]Confidence for {topic.id} set to {topic.confidence}.[/green]")


def cmd_quiz(db_path: str, identity: Identity):
    topic_id = session_prompt("Topic code")
    run_quiz(start_quiz(db_path, identity.email, topic_id))


def cmd_review(db_path: str, identity: Identity):
    topic_id = session_prompt("Topic code")
    render_review(load_review(db_path, identity.email, topic_id))


def cmd_admin(db_path: str, identity: Identity):
    stats = student_overview(db_path)
    console.print(Panel(
        f"Active students: [bold]{stats['active_students']}[/bold]  |  "
        f"Avg. completion: [bold]{stats['avg_completion']}%[/bold]  |  "
        f"Scores of 90%+: [bold]{stats['top_grades']}[/bold]",
        title="Teacher Dashboard", border_style="blue",
    ))


def cmd_curriculum(db_path: str, identity: Identity):
    for module in list_modules(db_path):
        topics = list_topics(db_path, module["id"])
        console.print(f"[bold]{module['id']}[/bold]) {module['title']} "
                      f"[dim]({module['subject']}, {len(topics)} topics)[/dim]")
        for topic in topics:
            console.print(f"     [cyan]{topic['id']}[/cyan] {topic['title']}")
    action = session_prompt("Action", choices=["module", "topic", "done"] + list(EXIT_WORDS), default="done")
    if action == "module":
        row = add_module(db_path, session_prompt("Module title"), ask_subject())
        console.print(f"[green]Added module {row['id']}.[/green]")
    elif action == "topic":
        module_id = session_int_prompt("Module id")
        topic_id = session_prompt("Topic code (e.g. 1.10)")
        title = session_prompt("Topic title")
        objectives = session_prompt("Learning objectives (separate with ;)", default="")
        add_topic(db_path, topic_id, module_id, title,
                  learning_objectives=objectives.split(";") if objectives else None)
        console.print(f"[green]Added topic {topic_id}.[/green]")


def cmd_questions(db_path: str, identity: Identity):
    table = Table(title="Recently Added")
    table.add_column("Id", style="dim")
    table.add_column("Topic", style="cyan")
    table.add_column("Question")
    for q in recent_questions(db_path):
        table.add_row(q["id"][:8], q["topic_id"], q["question"])
    console.print(table)
    action = session_prompt("Action", choices=["add", "list", "delete", "done"] + list(EXIT_WORDS), default="add")
    if action == "add":
        topic_id = session_prompt("Topic code")
        question = session_prompt("Question (LaTeX allowed)")
        image_url = session_prompt("Image URL", default="")
        options = {letter: session_prompt(f"Option {letter.upper()}") for letter in OPTIONS}
        correct = session_prompt("Correct answer", choices=list(OPTIONS) + list(EXIT_WORDS))
        explanation = session_prompt("Explanation", default="")
        add_question(db_path, topic_id, question, options, correct,
                     image_url=image_url, explanation=explanation)
        console.print("[green]Question added successfully![/green]")
    elif action == "list":
        for q in list_questions(db_path, session_prompt("Topic code")):
            console.print(f"  [dim]{q['id']}[/dim] {q['question']} [green]({q['correct_answer']})[/green]")
    elif action == "delete":
        question_id = session_prompt("Question id")
        if Prompt.ask("Are you sure you want to delete this question?", choices=["y", "n"]) == "y":
            if delete_question(db_path, question_id):
                console.print("[green]Deleted.[/green]")
            else:
                console.print("[yellow]No question with that id.[/yellow]")


def ask_student(db_path: str) -> str:
    students = list_students(db_path)
    for email in students:
        console.print(f"  [cyan]{email}[/cyan]")
    if students:
        return session_prompt("Student email", default=students[0])
    return session_prompt("Student email")


def cmd_assignments(db_path: str, identity: Identity):
    board = load_board(db_path, ask_student(db_path))
    subject = ask_subject()
    while True:
        render_tracker(board.modules, subject, show_assigned=True)
        topic_id = session_prompt("Topic code to assign/unassign (q to finish)")
        try:
            topic = board.toggle_assignment(topic_id)
        except PortalError as e:
            console.print(f"[red]{e}[/red]")
            continue
        state = "assigned" if topic.is_assigned else "unassigned"
        console.print(f"[green]{topic.id} {state} for {board.student_email}.[/green]")


def cmd_analytics(db_path: str, identity: Identity):
    search = session_prompt("Search student or topic", default="")
    band = session_prompt("Filter", choices=["all", "low", "high"] + list(EXIT_WORDS), default="all")
    results = filter_results(recent_results(db_path), search=search, band=band)
    table = Table(title=f"Recent Results (avg {results_average(results)}%)")
    table.add_column("Student", style="cyan")
    table.add_column("Topic")
    table.add_column("Subject")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    table.add_column("Updated", style="dim")
    for r in results:
        color = "red" if r["score"] < 50 else "green" if r["score"] >= 80 else "yellow"
        table.add_row(
            r["student_email"],
            f"{r['topic_id']} {r['title'] or ''}",
            r["subject"] or "",
            f"[{color}]{r['score']}%[/{color}]",
            r["status"],
            (r["updated_at"] or "")[:16],
        )
    console.print(table)


def cmd_student(db_path: str, identity: Identity):
    board = load_board(db_path, ask_student(db_path))
    console.print(f"[bold yellow]Viewing as teacher: {board.student_email}[/bold yellow]")
    subject = ask_subject()
    while True:
        render_tracker(board.modules, subject, show_assigned=True)
        topic_id = session_prompt("Topic code to mark complete / not complete (q to finish)")
        try:
            board.toggle_status(topic_id)
        except PortalError as e:
            console.print(f"[red]{e}[/red]")


COMMANDS = {
    "dashboard": cmd_dashboard,
    "grades": cmd_grades,
    "homework": cmd_homework,
    "done": cmd_done,
    "confidence": cmd_confidence,
    "quiz": cmd_quiz,
    "review": cmd_review,
    "admin": cmd_admin,
    "curriculum": cmd_curriculum,
    "questions": cmd_questions,
    "assignments": cmd_assignments,
    "analytics": cmd_analytics,
    "student": cmd_student,
}


def dispatch(choice: str, db_path: str, identity: Identity) -> bool:
    """Run one command. Returns False when the user asked to quit."""
    if choice in ("quit", "exit", "q"):
        return False
    if choice not in COMMANDS:
        console.print("[red]Unknown command. Try again.[/red]")
        return True
    redirect = authorize(ROUTES[choice], identity)
    if redirect is not None:
        console.print(f"[red]Not available for this account.[/red] [dim](→ {redirect})[/dim]")
        return True
    try:
        COMMANDS[choice](db_path, identity)
    except SessionExitRequested:
        console.print("[dim]Back to menu.[/dim]")
    except PortalError as e:
        console.print(f"[red]Error: {e}[/red]")
    return True


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    db_path = settings.DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)

    email = sys.argv[1] if len(sys.argv) > 1 else Prompt.ask("Sign in with your email")
    identity = resolve_identity(email, settings)
    if not identity.is_authenticated:
        console.print("[red]Please sign in to continue.[/red]")
        return
    show_welcome(identity)

    while True:
        show_menu(identity)
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        try:
            if not dispatch(choice, db_path, identity):
                console.print("[dim]See you next lesson![/dim]")
                break
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")


if __name__ == "__main__":
    main()
