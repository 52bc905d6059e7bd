from __future__ import annotations

import pytest

from src.client.errors import SessionWriteError
from src.client.events import AUTH_CLEARED, SESSION_REFRESHED, EventBus
from src.client.schemas import SessionUser
from src.client.session import SessionStore
from src.client.state import AuthSnapshot, AuthState, AuthStatus
from src.client.storage import ProfileStorage, TabStorage

USER = SessionUser(id="user-1", email="user@example.com")


def build_state(tab: TabStorage, events: EventBus | None = None) -> AuthState:
    return AuthState(SessionStore(tab), events or EventBus())


def test_state_starts_uninitialized_and_resolves_once() -> None:
    state = build_state(ProfileStorage().open_tab())

    assert state.status == AuthStatus.UNINITIALIZED
    assert state.is_initialized is False

    assert state.initialize().status == AuthStatus.UNAUTHENTICATED
    assert state.initialize().status == AuthStatus.UNAUTHENTICATED


def test_initialize_restores_persisted_session() -> None:
    tab = ProfileStorage().open_tab()
    SessionStore(tab).write("access", "refresh", USER)
    state = build_state(tab)

    snapshot = state.initialize()

    assert snapshot == AuthSnapshot(AuthStatus.AUTHENTICATED, USER)


def test_login_and_logout_notify_listeners() -> None:
    state = build_state(ProfileStorage().open_tab())
    state.initialize()
    seen: list[AuthStatus] = []
    state.subscribe(lambda snapshot: seen.append(snapshot.status))

    state.login(USER, "access", "refresh")
    state.logout()
    state.logout()

    assert seen == [AuthStatus.AUTHENTICATED, AuthStatus.UNAUTHENTICATED]
    assert state.session.read() is None


def test_login_without_refresh_token_keeps_stored_one() -> None:
    state = build_state(ProfileStorage().open_tab())
    state.initialize()
    state.login(USER, "access-1", "refresh-1")

    state.login(USER, "access-2")

    session = state.session.read()
    assert session is not None
    assert session.access_token == "access-2"
    assert session.refresh_token == "refresh-1"


def test_login_without_any_refresh_token_fails_logged_out() -> None:
    state = build_state(ProfileStorage().open_tab())
    state.initialize()

    with pytest.raises(SessionWriteError):
        state.login(USER, "access")

    assert state.is_authenticated is False
    assert state.session.read() is None


def test_update_user_keeps_tokens() -> None:
    state = build_state(ProfileStorage().open_tab())
    state.initialize()
    state.login(USER, "access", "refresh")
    renamed = SessionUser(id="user-1", email="new@example.com")

    state.update_user(renamed)

    assert state.user == renamed
    session = state.session.read()
    assert session is not None
    assert (session.access_token, session.refresh_token) == ("access", "refresh")


def test_auth_cleared_event_logs_out() -> None:
    events = EventBus()
    state = build_state(ProfileStorage().open_tab(), events)
    state.initialize()
    state.login(USER, "access", "refresh")

    events.emit(AUTH_CLEARED)

    assert state.is_authenticated is False


def test_session_refresh_event_picks_up_rewritten_session() -> None:
    events = EventBus()
    tab = ProfileStorage().open_tab()
    state = build_state(tab, events)
    state.initialize()
    state.login(USER, "access-1", "refresh-1")
    upgraded = USER.model_copy(update={"role": "admin"})
    SessionStore(tab).write("access-2", "refresh-2", upgraded)
    assert state.user == USER

    events.emit(SESSION_REFRESHED)

    assert state.user == upgraded


def test_tabs_follow_each_other() -> None:
    profile = ProfileStorage()
    tab_a = build_state(profile.open_tab())
    tab_b = build_state(profile.open_tab())
    tab_a.initialize()
    tab_b.initialize()
    seen_by_b: list[AuthStatus] = []
    tab_b.subscribe(lambda snapshot: seen_by_b.append(snapshot.status))

    tab_a.login(USER, "access", "refresh")
    assert tab_b.is_authenticated is True
    assert tab_b.user == USER

    tab_a.logout()
    assert tab_b.is_authenticated is False

    assert seen_by_b == [AuthStatus.AUTHENTICATED, AuthStatus.UNAUTHENTICATED]


def test_closed_state_ignores_other_tabs() -> None:
    profile = ProfileStorage()
    tab_a = build_state(profile.open_tab())
    tab_b = build_state(profile.open_tab())
    tab_a.initialize()
    tab_b.initialize()

    tab_b.close()
    tab_a.login(USER, "access", "refresh")

    assert tab_b.is_authenticated is False
    assert tab_b.revalidate().is_authenticated is True
