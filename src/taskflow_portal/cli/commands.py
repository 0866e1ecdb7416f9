# src/taskflow_portal/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any, cast

from ..core.ids import parse_date, today
from ..core.models import Role, TaskStatus
from ..scheduling.recurrence import add_months, expand
from ..tasks.analytics import summarize
from ..tasks.simulation import TransientMutationError
from .bootstrap import Portal

CommandEmitter = Callable[[str], None]
CommandReply = str | Awaitable[str]
CommandHandler2 = Callable[[Portal, list[str]], CommandReply]
CommandHandler3 = Callable[[Portal, list[str], CommandEmitter | None], CommandReply]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console front end (/help, /move, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        portal: Portal,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> CommandReply | None:
        """
        Handle a string like "/command args".
        Returns a reply (string, or awaitable string for async commands),
        or None if the line is not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(portal, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(portal, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

STATUS_ALIASES = {
    "pending": TaskStatus.PENDING,
    "todo": TaskStatus.PENDING,
    "progress": TaskStatus.IN_PROGRESS,
    "in-progress": TaskStatus.IN_PROGRESS,
    "doing": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.COMPLETED,
    "completed": TaskStatus.COMPLETED,
}

FIELD_ALIASES = {
    "title": "title",
    "description": "description",
    "desc": "description",
    "priority": "priority",
    "deadline": "deadline",
    "assignee": "assigned_to",
    "status": "status",
    "labels": "labels",
    "deps": "dependencies",
    "checklist": "subtasks",
}


def parse_status(raw: str) -> TaskStatus | str:
    return STATUS_ALIASES.get(raw.strip().lower(), raw)


def parse_fields(args: list[str]) -> dict[str, Any]:
    """key=value pairs -> engine payload. Unknown keys are ignored."""
    out: dict[str, Any] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep:
            continue
        name = FIELD_ALIASES.get(key.strip().lower())
        if name is None:
            continue
        out[name] = parse_status(value) if name == "status" else value
    return out


def cmd_help(portal: Portal, args: list[str]) -> str:
    return registry.build_help()


def cmd_login(portal: Portal, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /login <username> <password>"
    return portal.engine.login(args[0], args[1]).message


def cmd_logout(portal: Portal, args: list[str]) -> str:
    return portal.engine.logout().message


def cmd_whoami(portal: Portal, args: list[str]) -> str:
    session = portal.state.session
    if not session.logged_in:
        return "Not signed in."
    return f"{portal.state.user_name(session.user_id, session.user_id)} ({session.role})"


def cmd_tasks(portal: Portal, args: list[str]) -> str:
    """
    /tasks           -> all visible tasks
    /tasks <status>  -> only tasks in that status (pending | progress | done)
    Employees only see tasks assigned to them.
    """
    state = portal.state
    session = state.session
    tasks = list(state.tasks)
    if session.role == Role.EMPLOYEE:
        tasks = [t for t in tasks if t.assigned_to == session.user_id]
    if args:
        wanted = parse_status(args[0])
        tasks = [t for t in tasks if t.status == wanted]

    if not tasks:
        return "No tasks."
    lines = [f"Tasks ({len(tasks)}):"]
    for t in tasks:
        deadline = t.deadline.isoformat() if t.deadline else "--"
        assignee = state.user_name(t.assigned_to, "unassigned")
        lines.append(f"  {t.id} [{t.status}] {t.title} ({t.priority}, due {deadline}, {assignee})")
    return "\n".join(lines)


def cmd_show(portal: Portal, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task_id>"
    state = portal.state
    task = state.find_task(args[0])
    if task is None:
        return "Task not found."

    lines = [
        f"{task.title} [{task.status}]",
        f"  id: {task.id}",
        f"  priority: {task.priority}  deadline: {task.deadline or '--'}",
        f"  assignee: {state.user_name(task.assigned_to, 'unassigned')}",
        f"  labels: {', '.join(task.labels) or '--'}",
        f"  depends on: {', '.join(task.dependencies) or '--'}",
        f"  reopened: {task.reopen_count}",
    ]
    if task.description:
        lines.append(f"  {task.description}")
    blocker = portal.engine.completion_blocker_for(task.id)
    if blocker:
        lines.append(f"  blocked: {blocker}")
    if task.subtasks:
        lines.append("  checklist:")
        for s in task.subtasks:
            lines.append(f"    [{'x' if s.completed else ' '}] {s.text} ({s.id})")
    if task.comments:
        lines.append("  comments:")
        for c in task.comments:
            lines.append(f"    {state.user_name(c.author_id, c.author_id)}: {c.text}")
    lines.append("  history:")
    for h in task.history[:10]:
        lines.append(f"    {h.created_at} {h.kind}: {h.message}")
    return "\n".join(lines)


def cmd_move(portal: Portal, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <task_id> <pending|progress|done>"
    return portal.engine.set_status(args[0], parse_status(args[1]), "keyboard-shortcut").message


def cmd_reopen(portal: Portal, args: list[str]) -> str:
    if not args:
        return "Usage: /reopen <task_id>"
    return portal.engine.reopen(args[0]).message


def cmd_comment(portal: Portal, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /comment <task_id> <text>"
    return portal.engine.add_comment(args[0], " ".join(args[1:])).message


def cmd_check(portal: Portal, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /check <task_id> <subtask_id>"
    return portal.engine.toggle_checklist_item(args[0], args[1]).message


def cmd_subtask(portal: Portal, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /subtask <task_id> <text>"
    return portal.engine.add_checklist_item(args[0], " ".join(args[1:])).message


async def cmd_create(portal: Portal, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /create title="..." assignee=<user_id> priority=High deadline=2026-03-01
            labels=a,b deps=<task ids> checklist="step one, step two"
    """
    payload = parse_fields(args)
    if emit:
        emit("Saving task...")
    try:
        result = await portal.engine.create(payload)
    except TransientMutationError as exc:
        return f"{exc} Try again."
    if result.ok and result.data is not None:
        return f"{result.message} (id: {result.data.id})"
    return result.message


async def cmd_edit(portal: Portal, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /edit <task_id> key=value ..."
    payload = parse_fields(args[1:])
    if emit:
        emit("Saving changes...")
    try:
        result = await portal.engine.update(args[0], payload)
    except TransientMutationError as exc:
        return f"{exc} Try again."
    return result.message


def cmd_delete(portal: Portal, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task_id>"
    return portal.engine.delete(args[0]).message


def cmd_undo(portal: Portal, args: list[str]) -> str:
    if portal.engine.undo_last():
        return portal.state.notifications[0].message
    return "Nothing to undo."


def cmd_notifications(portal: Portal, args: list[str]) -> str:
    """
    /notifications      -> unread notifications
    /notifications all  -> everything in the feed
    """
    show_all = bool(args) and args[0].lower() == "all"
    items = [n for n in portal.state.notifications if show_all or not n.read]
    if not items:
        return "No notifications."
    lines = [f"Notifications ({len(items)}):"]
    for n in items:
        mark = " " if n.read else "*"
        lines.append(f" {mark} {n.id} [{n.severity}] {n.message}")
    return "\n".join(lines)


def cmd_read(portal: Portal, args: list[str]) -> str:
    if not args:
        return "Usage: /read <notification_id|all>"
    if args[0].lower() == "all":
        portal.feed.mark_all_read()
        return "All notifications marked as read."
    portal.feed.mark_read(args[0])
    return "Notification marked as read."


def cmd_employee(portal: Portal, args: list[str]) -> str:
    if len(args) < 3:
        return "Usage: /employee <name> <username> <password>"
    result = portal.engine.add_employee(args[0], args[1], args[2])
    if result.ok:
        return f"{result.message} (id: {result.data.id})"
    return result.message


def _month_window(raw: str | None) -> tuple[date, date]:
    start = parse_date(f"{raw}-01") if raw else None
    if start is None:
        start = today().replace(day=1)
    end = add_months(start, 1).replace(day=1)
    return start, date.fromordinal(end.toordinal() - 1)


def cmd_events(portal: Portal, args: list[str]) -> str:
    """/events [YYYY-MM] -> occurrences in that month (default: current month)."""
    start, end = _month_window(args[0] if args else None)
    occurrences = sorted(
        expand(portal.state.calendar_events, start, end, max_steps=portal.settings.recurrence_max_steps),
        key=lambda o: o.date,
    )
    if not occurrences:
        return f"No events between {start} and {end}."
    lines = [f"Events {start} .. {end}:"]
    for o in occurrences:
        tag = f" ({o.recurrence})" if o.occurrence else ""
        lines.append(f"  {o.date} {o.title}{tag} [{o.source_event_id}]")
    return "\n".join(lines)


def cmd_event(portal: Portal, args: list[str]) -> str:
    """
    /event date=2026-03-02 title="Standup" [every=daily|weekly|monthly] [until=2026-03-31]
    /event rm <event_id>
    """
    if len(args) >= 2 and args[0].lower() == "rm":
        return portal.engine.delete_calendar_event(args[1]).message

    kv = dict(arg.partition("=")[::2] for arg in args if "=" in arg)
    result = portal.engine.add_calendar_event(
        title=kv.get("title", ""),
        date=kv.get("date"),
        description=kv.get("desc", ""),
        recurrence=kv.get("every", "none"),
        recurrence_until=kv.get("until"),
    )
    return result.message


def cmd_stats(portal: Portal, args: list[str]) -> str:
    stats = summarize(portal.state.tasks, portal.state.users, today=today())
    lines = [
        f"Tasks: {stats.total}  overdue: {stats.overdue}  reopened: {stats.reopened}",
        "  " + "  ".join(f"{k}: {v}" for k, v in stats.by_status.items()),
        f"  completion rate: {stats.completion_rate:.0%}",
    ]
    for load in stats.by_assignee:
        lines.append(f"  {load.name}: {load.open} open, {load.completed} completed")
    return "\n".join(lines)


def cmd_theme(portal: Portal, args: list[str]) -> str:
    return f"Theme: {portal.engine.toggle_theme()}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("login", cmd_login, help_text="Sign in: /login <username> <password>.")
registry.register("logout", cmd_logout, help_text="Sign out.")
registry.register("whoami", cmd_whoami, help_text="Show the signed-in user.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [pending|progress|done].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Task details: /show <task_id>.")
registry.register("move", cmd_move, help_text="Change status: /move <task_id> <pending|progress|done>.")
registry.register("reopen", cmd_reopen, help_text="Continue work on a completed task: /reopen <task_id>.")
registry.register("comment", cmd_comment, help_text="Add a comment: /comment <task_id> <text>.")
registry.register("check", cmd_check, help_text="Toggle a checklist item: /check <task_id> <subtask_id>.")
registry.register("subtask", cmd_subtask, help_text="Add a checklist item: /subtask <task_id> <text>.")
registry.register("create", cmd_create, help_text="Create a task (manager): /create title=... assignee=...")
registry.register("edit", cmd_edit, help_text="Edit a task (manager): /edit <task_id> key=value ...")
registry.register("delete", cmd_delete, help_text="Delete a task (manager): /delete <task_id>.")
registry.register("undo", cmd_undo, help_text="Undo the last reversible action.", aliases=["z"])
registry.register(
    "notifications", cmd_notifications, help_text="Show notifications: /notifications [all].", aliases=["n"]
)
registry.register("read", cmd_read, help_text="Mark read: /read <notification_id|all>.")
registry.register("employee", cmd_employee, help_text="Add employee (manager): /employee <name> <username> <password>.")
registry.register("events", cmd_events, help_text="Calendar for a month: /events [YYYY-MM].")
registry.register("event", cmd_event, help_text="Add event: /event date=... title=... [every=...] [until=...] | /event rm <id>.")
registry.register("stats", cmd_stats, help_text="Task analytics summary.")
registry.register("theme", cmd_theme, help_text="Toggle light/dark theme.")
