"""Interactive CLI application."""
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from neuroquiz.config import (
    DEFAULT_DB_PATH, MAX_LEVEL, STREAK_REWARD_INTERVAL, LITERACY_TO_DIFFICULTY,
    build_session_config, get_difficulty_label, get_level_label,
)
from neuroquiz.db import init_db
from neuroquiz.engine import AdaptiveSession
from neuroquiz.cognitive import analyze_cognitive_profile
from neuroquiz.questions import get_categories, load_default_pool, load_question_file, normalize_pool
from neuroquiz.storage import (
    get_recent_results, get_stored_summary, load_user_setup, record_quiz_result, save_user_setup,
)

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the learner leaves a running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    value = Prompt.ask(prompt, **kwargs)
    if value is not None and value.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return value


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    while True:
        value = session_prompt(f"{prompt} [{'/'.join(choices)}]").strip()
        if value in choices:
            return int(value)
        console.print("[red]Please pick one of the listed options.[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]NeuroQuiz[/bold]\n[dim]Adaptive quiz with cognitive profiling[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Start an adaptive quiz"),
        ("setup", "Name, level, literacy and category"),
        ("bank", "Load a question bank (JSON/YAML)"),
        ("results", "Past results and cognitive profiles"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def offer_level_upgrade(engine: AdaptiveSession) -> bool:
    state = engine.get_state()
    console.print(f"\n[magenta]{state['streak']} in a row![/magenta]")
    answer = session_prompt("Move up to the next level? (y/n)", default="n")
    if not answer.strip().lower().startswith("y"):
        return False
    if engine.upgrade_level():
        level = engine.get_state()["current_level"]
        console.print(f"[green]Level up: {get_level_label(level)}[/green]")
        return True
    console.print("[yellow]Already at the highest level.[/yellow]")
    return False


def run_adaptive_session(engine: AdaptiveSession) -> dict:
    """Play questions until the engine completes. Returns the performance summary.

    Raises SessionExitRequested if the learner quits mid-session; the engine
    keeps every answer given so far.
    """
    while True:
        view = engine.get_current_question()
        if view is None:
            break
        progress = engine.get_progress()
        console.print(
            f"\n[bold]Q{progress['current']}/{progress['total']}[/bold] "
            f"[dim]{get_level_label(view['level'])} | {get_difficulty_label(view['difficulty'])} "
            f"| {view['category']}[/dim]"
        )
        console.print(f"{view['question']}\n")
        if not view["options"]:
            console.print("[yellow]Question has no options, skipping.[/yellow]")
            engine.submit_answer(None)
            continue
        for i, option in enumerate(view["options"], 1):
            console.print(f"  [cyan]{i})[/cyan] {option}")
        choices = [str(i) for i in range(1, len(view["options"]) + 1)]
        answer = session_int_prompt("\nYour answer", choices=choices)
        result = engine.submit_answer(answer - 1)

        if result["is_correct"]:
            console.print(f"[green]Correct![/green] +{result['points_earned']} points")
        else:
            correct = view["options"][result["correct_answer"]] if 0 <= result["correct_answer"] < len(view["options"]) else result["correct_answer"]
            console.print(f"[red]Incorrect.[/red] Answer: [green]{correct}[/green]")
        if result["feedback"]:
            console.print(f"[dim]{result['feedback']}[/dim]")
        console.print(
            f"[dim]Score {result['score']} | Streak {result['streak']} | "
            f"{get_level_label(result['level'])} / {get_difficulty_label(result['difficulty'])}[/dim]"
        )

        if (
            result["is_correct"]
            and result["streak"] % STREAK_REWARD_INTERVAL == 0
            and result["level"] < MAX_LEVEL
            and not engine.is_complete()
        ):
            offer_level_upgrade(engine)
    return engine.get_performance_summary()


def show_results(summary: dict, profile: dict) -> None:
    level_change = summary["net_level_change"]
    console.print(Panel(
        f"Accuracy: [bold]{summary['accuracy']}%[/bold] "
        f"({summary['correct_answers']}/{summary['total_questions']})\n"
        f"Score: [bold]{summary['total_score']}[/bold]  |  Best streak: {summary['best_streak']}  |  "
        f"Time: {summary['time_taken']}s ({summary['questions_per_minute']} q/min)\n"
        f"Level: {get_level_label(summary['initial_level'])} -> {get_level_label(summary['final_level'])} "
        f"({level_change:+d})  |  Drops: {summary['drop_count']}  |  Promotions: {summary['promotion_count']}",
        title=f"Results for {summary['user_name']}", border_style="blue",
    ))

    if summary["category_performance"]:
        table = Table(title="Categories")
        table.add_column("Category", style="cyan")
        table.add_column("Correct", justify="right")
        table.add_column("Mastery", justify="right")
        mastery = profile["cda"]["knowledge_mastery"]
        for name, tally in summary["category_performance"].items():
            table.add_row(
                name,
                f"{tally['correct']}/{tally['total']}",
                f"{mastery.get(name, 0) * 100:.0f}%",
            )
        console.print(table)

    table = Table(title="Cognitive Profile")
    table.add_column("Index")
    table.add_column("Value", justify="right")
    for family in ("cda", "executive_function"):
        for name, value in profile[family].items():
            if name == "knowledge_mastery":
                continue
            table.add_row(name.replace("_", " ").title(), f"{value:.2f}")
    console.print(table)
    console.print(Panel(profile["professional_summary"], title="Summary", border_style="green"))


def cmd_setup(db_path: str, questions: list) -> dict:
    console.print("\n[bold]Learner Setup[/bold]")
    name = Prompt.ask("Your name", default="User")
    level = IntPrompt.ask("Starting level (1=Elementary, 2=Secondary, 3=University)", choices=["1", "2", "3"], default=1)
    literacy = Prompt.ask("Literacy level", choices=list(LITERACY_TO_DIFFICULTY), default="Beginner")
    categories = get_categories(questions)
    category = Prompt.ask("Category", choices=["all"] + categories, default="all")
    setup = {
        "name": name,
        "level": level,
        "literacy_level": literacy,
        "category": None if category == "all" else category,
    }
    save_user_setup(db_path, setup)
    console.print("[green]Setup saved.[/green]")
    return setup


def cmd_quiz(db_path: str, questions: list):
    setup = load_user_setup(db_path) or cmd_setup(db_path, questions)
    count = IntPrompt.ask("Number of questions", default=10)
    config = build_session_config(
        level=setup["level"],
        literacy_level=setup["literacy_level"],
        category=setup["category"],
        question_limit=count,
        user_name=setup["name"],
    )
    engine = AdaptiveSession(questions, config)
    console.print("[dim]Type 'q' at any prompt to stop.[/dim]")
    try:
        summary = run_adaptive_session(engine)
    except SessionExitRequested:
        console.print("\n[dim]Quiz stopped.[/dim]")
        summary = engine.get_performance_summary()

    if summary["total_questions"] == 0:
        console.print("[yellow]No answers recorded.[/yellow]")
        return
    record_quiz_result(db_path, summary)
    show_results(summary, analyze_cognitive_profile(summary))


def cmd_bank(questions: list) -> list:
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return questions
    loaded = normalize_pool(load_question_file(file_path))
    if not loaded:
        console.print("[yellow]No questions found; keeping the current bank.[/yellow]")
        return questions
    console.print(f"[green]Loaded {len(loaded)} questions ({', '.join(get_categories(loaded))})[/green]")
    return loaded


def cmd_results(db_path: str):
    results = get_recent_results(db_path)
    if not results:
        console.print("[yellow]No results yet. Take a quiz first![/yellow]")
        return
    table = Table(title="Recent Results")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Accuracy", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Final Level")
    table.add_column("Completed")
    for r in results:
        table.add_row(
            str(r["id"]), r["user_name"], r["category"] or "All",
            f"{r['accuracy']}%", str(r["total_score"]),
            get_level_label(r["final_level"]), (r["completed_at"] or "")[:16],
        )
    console.print(table)

    choice = Prompt.ask("Result ID to inspect (Enter to skip)", default="").strip()
    if not choice:
        return
    summary = get_stored_summary(db_path, int(choice)) if choice.isdigit() else None
    if summary is None:
        console.print(f"[red]No result with ID {choice}[/red]")
        return
    show_results(summary, analyze_cognitive_profile(summary))


def main():
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    questions = load_default_pool()

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        try:
            if choice == "quiz":
                cmd_quiz(db_path, questions)
            elif choice == "setup":
                cmd_setup(db_path, questions)
            elif choice == "bank":
                questions = cmd_bank(questions)
            elif choice == "results":
                cmd_results(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you next time![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
