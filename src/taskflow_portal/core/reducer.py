# src/taskflow_portal/core/reducer.py

from __future__ import annotations

from dataclasses import replace

from . import actions as a
from .state import AppState


def reduce(state: AppState, action: a.Action) -> AppState:
    """
    Pure transition function: (state, action) -> new state.

    Unknown actions return the state unchanged. Capacity rules live here:
    - notifications are newest-first and capped at action.limit (oldest dropped)
    - the undo stack is oldest-first and capped at action.limit (oldest dropped)
    """
    if isinstance(action, a.Initialize):
        return replace(
            state,
            users=action.users,
            tasks=action.tasks,
            calendar_events=action.calendar_events,
            notifications=action.notifications,
            theme=action.theme,
            session=action.session,
            initialized=True,
            loading=False,
            error=None,
            undo_stack=(),
        )

    if isinstance(action, a.SetLoading):
        return replace(state, loading=action.loading)

    if isinstance(action, a.SetError):
        return replace(state, error=action.error)

    if isinstance(action, a.UpdateUsers):
        return replace(state, users=tuple(action.updater(state.users)))

    if isinstance(action, a.UpdateTasks):
        return replace(state, tasks=tuple(action.updater(state.tasks)))

    if isinstance(action, a.UpdateCalendarEvents):
        return replace(state, calendar_events=tuple(action.updater(state.calendar_events)))

    if isinstance(action, a.SetSession):
        return replace(state, session=action.session)

    if isinstance(action, a.SetTheme):
        return replace(state, theme=action.theme)

    if isinstance(action, a.PushNotification):
        limit = max(1, action.limit)
        return replace(
            state,
            notifications=(action.notification, *state.notifications)[:limit],
        )

    if isinstance(action, a.MarkNotificationRead):
        return replace(
            state,
            notifications=tuple(
                replace(n, read=True) if n.id == action.notification_id else n
                for n in state.notifications
            ),
        )

    if isinstance(action, a.MarkAllNotificationsRead):
        return replace(
            state,
            notifications=tuple(replace(n, read=True) for n in state.notifications),
        )

    if isinstance(action, a.RemoveNotification):
        return replace(
            state,
            notifications=tuple(n for n in state.notifications if n.id != action.notification_id),
        )

    if isinstance(action, a.SetToast):
        return replace(state, toast=action.toast)

    if isinstance(action, a.ClearToast):
        if state.toast is None:
            return state
        if action.toast_id is not None and state.toast.id != action.toast_id:
            return state
        return replace(state, toast=None)

    if isinstance(action, a.PushUndo):
        limit = max(1, action.limit)
        return replace(state, undo_stack=(*state.undo_stack, action.entry)[-limit:])

    if isinstance(action, a.PopUndo):
        return replace(state, undo_stack=state.undo_stack[:-1])

    return state
