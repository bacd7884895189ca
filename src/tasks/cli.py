#!/usr/bin/env python3
"""
タスク管理CLI - タスク/イベント/ノートをコマンドラインから操作する

Usage:
    python -m src.tasks.cli list [--category CAT] [--date YYYY-MM-DD] [--with-dates] [--format json|text]
    python -m src.tasks.cli archived [--format json|text]
    python -m src.tasks.cli parse --title "Lunch tomorrow at 1pm"
    python -m src.tasks.cli add --title "Team sync tomorrow at 10am" --category fulfillment [--source task|calendar|backlog] [--note]
    python -m src.tasks.cli get --id ID
    python -m src.tasks.cli update --id ID [--title T] [--category CAT] [--location L] [--notes HTML]
    python -m src.tasks.cli complete|reopen|delete|taskify|unschedule|backlog|restore --id ID
    python -m src.tasks.cli schedule --id ID --start-time HH:MM [--date YYYY-MM-DD] [--end-time HH:MM]
    python -m src.tasks.cli flexible --id ID [--date YYYY-MM-DD]
    python -m src.tasks.cli move --id ID --category CAT
    python -m src.tasks.cli log --id ID --content "text"
    python -m src.tasks.cli seed
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable, Dict, List, Optional

from src.planner.logger import setup_logger

from .exceptions import TaskError, TaskNotFoundError
from .models import LifeArea, Task
from .nlp import ParsedTitle
from .repository import TaskRepository
from .service import QUICK_ADD_SOURCES, MutationOutcome, TaskService
from .state import derive_mode
from .timeutils import format_time_slot

CATEGORY_CHOICES = [area.value for area in LifeArea]


def format_task_text(task: Task) -> str:
    """Taskをテキスト形式で整形"""
    mode = derive_mode(task)
    status = "x" if task.completed else " "
    when = ""
    if task.date:
        if task.start_time:
            when = f" | {task.date} {task.start_time}-{task.end_time} ({format_time_slot(task.start_time)})"
        else:
            when = f" | {task.date} sometime"
    where = f" @ {task.location}" if task.location else ""
    return f"[{status}] {task.id} | {mode.value} | {task.category.value}{when} | {task.title}{where}"


def format_task_json(task: Task) -> Dict[str, Any]:
    data = task.to_dict()
    data["mode"] = derive_mode(task).value
    return data


def format_parsed_json(parsed: ParsedTitle) -> Dict[str, Any]:
    return {
        "clean_title": parsed.clean_title,
        "detected_date": parsed.detected_date,
        "detected_time": parsed.detected_time,
        "detected_end_time": parsed.detected_end_time,
        "detected_location": parsed.detected_location,
    }


def emit(payload: Any, text: str, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(text)


def emit_outcome(
    outcome: Optional[MutationOutcome], task_id: str, verb: str, output_format: str
) -> int:
    if outcome is None:
        raise TaskNotFoundError(task_id)
    emit(format_task_json(outcome.task), f"{verb}: {format_task_text(outcome.task)}", output_format)
    return 0


def cmd_list(service: TaskService, args: argparse.Namespace) -> int:
    items = service.list(
        category=args.category,
        date=args.date,
        has_date=True if args.with_dates else None,
    )
    if args.format == "json":
        emit([format_task_json(item) for item in items], "", "json")
    elif not items:
        print("No tasks.")
    else:
        for item in items:
            print(format_task_text(item))
    return 0


def cmd_archived(service: TaskService, args: argparse.Namespace) -> int:
    items = service.list_completed()
    if args.format == "json":
        emit([format_task_json(item) for item in items], "", "json")
    else:
        for item in items:
            print(f"{item.completed_at} | {format_task_text(item)}")
    return 0


def cmd_parse(service: TaskService, args: argparse.Namespace) -> int:
    parsed = service.parse(args.title)
    lines = [f"title: {parsed.clean_title}"]
    for label, value in (
        ("date", parsed.detected_date),
        ("time", parsed.detected_time),
        ("end time", parsed.detected_end_time),
        ("location", parsed.detected_location),
    ):
        if value:
            lines.append(f"{label}: {value}")
    emit(format_parsed_json(parsed), "\n".join(lines), args.format)
    return 0


def cmd_add(service: TaskService, args: argparse.Namespace) -> int:
    if args.note:
        created = service.create_note(args.title, args.category, notes=args.notes)
    else:
        created = service.quick_add(
            args.title,
            args.category,
            args.source,
            selected_date=args.date,
            start_time=args.start_time,
            end_time=args.end_time,
            location=args.location,
            notes=args.notes,
        )
    emit(format_task_json(created), f"Added: {format_task_text(created)}", args.format)
    return 0


def cmd_get(service: TaskService, args: argparse.Namespace) -> int:
    task = service.require(args.id)
    emit(format_task_json(task), format_task_text(task), args.format)
    return 0


def cmd_update(service: TaskService, args: argparse.Namespace) -> int:
    changes: Dict[str, Any] = {}
    for key in ("title", "category", "location", "notes"):
        value = getattr(args, key)
        if value is not None:
            changes[key] = value
    return emit_outcome(service.update(args.id, changes), args.id, "Updated", args.format)


def cmd_delete(service: TaskService, args: argparse.Namespace) -> int:
    if not service.delete(args.id):
        raise TaskNotFoundError(args.id)
    emit({"deleted": True, "id": args.id}, f"Deleted: {args.id}", args.format)
    return 0


def cmd_seed(service: TaskService, args: argparse.Namespace) -> int:
    created = service.seed_samples()
    emit([format_task_json(item) for item in created], f"Seeded {len(created)} tasks", args.format)
    return 0


def _outcome_command(
    verb: str, call: Callable[[TaskService, argparse.Namespace], Optional[MutationOutcome]]
) -> Callable[[TaskService, argparse.Namespace], int]:
    def run(service: TaskService, args: argparse.Namespace) -> int:
        return emit_outcome(call(service, args), args.id, verb, args.format)

    return run


COMMANDS: Dict[str, Callable[[TaskService, argparse.Namespace], int]] = {
    "list": cmd_list,
    "archived": cmd_archived,
    "parse": cmd_parse,
    "add": cmd_add,
    "get": cmd_get,
    "update": cmd_update,
    "delete": cmd_delete,
    "seed": cmd_seed,
    "complete": _outcome_command("Completed", lambda s, a: s.set_completed(a.id, True)),
    "reopen": _outcome_command("Reopened", lambda s, a: s.set_completed(a.id, False)),
    "taskify": _outcome_command("Taskified", lambda s, a: s.taskify(a.id)),
    "schedule": _outcome_command(
        "Scheduled",
        lambda s, a: s.schedule_at_slot(a.id, a.start_time, date=a.date, end_time=a.end_time),
    ),
    "flexible": _outcome_command("Scheduled", lambda s, a: s.move_to_flexible(a.id, date=a.date)),
    "unschedule": _outcome_command("Unscheduled", lambda s, a: s.unschedule(a.id)),
    "move": _outcome_command("Moved", lambda s, a: s.move_to_task_list(a.id, a.category)),
    "backlog": _outcome_command("Moved to backlog", lambda s, a: s.move_to_backlog(a.id)),
    "restore": _outcome_command("Restored", lambda s, a: s.restore_from_backlog(a.id)),
    "log": _outcome_command("Logged", lambda s, a: s.append_log(a.id, a.content)),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Life planner task CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="SQLite database path (default: data/life_planner.db)",
    )
    parser.add_argument("--verbose", action="store_true", help="log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", help="command to run", required=True)

    def add_command(name: str, help_text: str, with_id: bool = True) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        if with_id:
            sub.add_argument("--id", required=True, help="task id")
        sub.add_argument("--format", choices=["json", "text"], default="text")
        return sub

    parser_list = add_command("list", "list tasks", with_id=False)
    parser_list.add_argument("--category", choices=CATEGORY_CHOICES)
    parser_list.add_argument("--date", help="only records on this date (YYYY-MM-DD)")
    parser_list.add_argument("--with-dates", action="store_true", help="only calendar entries")

    add_command("archived", "list completed tasks, newest first", with_id=False)
    add_command("seed", "insert one sample task per life area", with_id=False)

    parser_parse = add_command("parse", "preview what the title parser detects", with_id=False)
    parser_parse.add_argument("--title", required=True)

    parser_add = add_command("add", "quick-add a task, event or note", with_id=False)
    parser_add.add_argument("--title", required=True)
    parser_add.add_argument("--category", required=True, choices=CATEGORY_CHOICES)
    parser_add.add_argument("--source", choices=list(QUICK_ADD_SOURCES), default="task")
    parser_add.add_argument("--date", help="target date for calendar quick-add")
    parser_add.add_argument("--start-time")
    parser_add.add_argument("--end-time")
    parser_add.add_argument("--location")
    parser_add.add_argument("--notes")
    parser_add.add_argument("--note", action="store_true", help="create a standalone note")

    add_command("get", "show one task")

    parser_update = add_command("update", "edit task fields")
    parser_update.add_argument("--title")
    parser_update.add_argument("--category", choices=CATEGORY_CHOICES)
    parser_update.add_argument("--location")
    parser_update.add_argument("--notes")

    for name, help_text in (
        ("complete", "mark as completed"),
        ("reopen", "mark as not completed"),
        ("delete", "delete a task or note"),
        ("taskify", "convert a note into a task"),
        ("unschedule", "remove an event from the calendar"),
        ("backlog", "move an undated task to the backlog"),
        ("restore", "move a backlog task back to current"),
    ):
        add_command(name, help_text)

    parser_schedule = add_command("schedule", "place on a fixed time slot")
    parser_schedule.add_argument("--start-time", required=True)
    parser_schedule.add_argument("--end-time")
    parser_schedule.add_argument("--date")

    parser_flexible = add_command("flexible", "schedule for sometime on a date")
    parser_flexible.add_argument("--date")

    parser_move = add_command("move", "move into a life-area task list")
    parser_move.add_argument("--category", required=True, choices=CATEGORY_CHOICES)

    parser_log = add_command("log", "append a log entry")
    parser_log.add_argument("--content", required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLIエントリポイント"""
    args = build_parser().parse_args(argv)
    if args.verbose:
        setup_logger("DEBUG", log_file=None)
    service = TaskService(TaskRepository(db_path=args.db_path if args.db_path else None))

    try:
        return COMMANDS[args.command](service, args)
    except TaskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
