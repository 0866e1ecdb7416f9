# src/taskflow_portal/connectors/console_connector.py

from __future__ import annotations

import asyncio
import inspect
import logging
import sys
from datetime import datetime

from ..cli.bootstrap import Portal
from ..cli.commands import registry as command_registry
from ..core.models import Toast

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _prompt(portal: Portal) -> str:
    session = portal.state.session
    if not session.logged_in:
        return ">>> (signed out): "
    return f">>> {portal.state.user_name(session.user_id, session.user_id)}: "


async def run_console_loop(portal: Portal) -> None:
    """
    Read commands from stdin and run them against the portal.

    input() runs in a worker thread so the event loop stays free for toast
    timers; every command itself executes on the loop thread, which owns the store.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /login to sign in, /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    def on_change(old, new) -> None:
        toast: Toast | None = new.toast
        if toast is not None and toast is not old.toast:
            hint = " (/undo)" if toast.undoable else ""
            emit(f"[TOAST] {toast.message}{hint}")

    unsubscribe = portal.store.subscribe(on_change)
    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, _prompt(portal))).strip()
                _rewrite_prev_line(f"[{_ts_local()}] {_prompt(portal)}{user_input}")
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                response = command_registry.handle(portal, user_input, emit=emit)
                if inspect.isawaitable(response):
                    response = await response
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is None:
                response = "Commands start with '/'. Use /help to list them."
            print(f"[{_ts_local()}] {response}")
    finally:
        unsubscribe()
        portal.feed.dismiss_toast()

    logger.info("Console connector finished.")
