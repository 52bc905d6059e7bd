from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import httpx

from loggers import get_logger
from src.client.api import UserApi
from src.client.config import ClientConfig
from src.client.errors import AuthClientError
from src.client.events import AUTH_CLEARED, EventBus
from src.client.state import AuthSnapshot, AuthState

logger = get_logger(__name__)


class GuardOutcome(StrEnum):
    LOADING = "loading"
    ALLOW = "allow"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    redirect_to: str | None = None

    @classmethod
    def loading(cls) -> "GuardDecision":
        return cls(GuardOutcome.LOADING)

    @classmethod
    def allow(cls) -> "GuardDecision":
        return cls(GuardOutcome.ALLOW)

    @classmethod
    def redirect(cls, path: str) -> "GuardDecision":
        return cls(GuardOutcome.REDIRECT, path)


DecisionListener = Callable[[GuardDecision], None]


class RouteGuard(ABC):
    """
    Decides whether a view may render for the current auth state.

    `mount` keeps a mounted view in sync: the listener receives a fresh
    decision whenever the auth state changes or the session is force-cleared.
    """

    def __init__(self, state: AuthState, events: EventBus, config: ClientConfig) -> None:
        self.state = state
        self.events = events
        self.config = config

    @abstractmethod
    def evaluate(self) -> GuardDecision: ...

    def mount(self, listener: DecisionListener) -> Callable[[], None]:
        def on_state(_: AuthSnapshot) -> None:
            listener(self.evaluate())

        def on_cleared() -> None:
            # A real logout reaches the listener through on_state
            self.state.clear_auth()

        unsubscribers = [
            self.state.subscribe(on_state),
            self.events.subscribe(AUTH_CLEARED, on_cleared),
        ]
        listener(self.evaluate())

        def unmount() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return unmount


class ProtectedGuard(RouteGuard):
    def evaluate(self) -> GuardDecision:
        if not self.state.is_initialized:
            return GuardDecision.loading()
        if not self.state.is_authenticated:
            return GuardDecision.redirect(self.config.login_path)
        return GuardDecision.allow()


class GuestGuard(RouteGuard):
    """Keeps logged-in users away from the login and registration pages."""

    def evaluate(self) -> GuardDecision:
        if not self.state.is_initialized:
            return GuardDecision.loading()
        if self.state.is_authenticated:
            return GuardDecision.redirect(self.config.home_path)
        return GuardDecision.allow()


class AdminGuard(RouteGuard):
    """
    Admin views re-check the role with the server instead of trusting the
    cached user snapshot.
    """

    def __init__(
        self,
        state: AuthState,
        events: EventBus,
        config: ClientConfig,
        user_api: UserApi,
    ) -> None:
        super().__init__(state, events, config)
        self.user_api = user_api
        self._is_admin: bool | None = None

    def evaluate(self) -> GuardDecision:
        if not self.state.is_initialized:
            return GuardDecision.loading()
        if not self.state.is_authenticated:
            return GuardDecision.redirect(self.config.login_path)
        if self._is_admin is None:
            return GuardDecision.loading()
        if not self._is_admin:
            return GuardDecision.redirect(self.config.home_path)
        return GuardDecision.allow()

    async def verify(self) -> GuardDecision:
        if not (self.state.is_initialized and self.state.is_authenticated):
            return self.evaluate()
        try:
            usage = await self.user_api.get_usage()
        except (AuthClientError, httpx.HTTPError) as e:
            logger.warning("Failed to verify admin access: %s", e)
            self._is_admin = False
        else:
            self._is_admin = usage.role == "admin"
        return self.evaluate()
