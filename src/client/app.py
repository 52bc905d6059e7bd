from dataclasses import dataclass

import httpx

from src.client.api import AuthApi, ScriptsApi, UserApi
from src.client.config import ClientConfig
from src.client.events import EventBus
from src.client.guards import AdminGuard, GuestGuard, ProtectedGuard
from src.client.http import AuthClient
from src.client.navigation import MemoryNavigator, Navigator
from src.client.session import SessionStore
from src.client.state import AuthState
from src.client.storage import ProfileStorage, TabStorage


@dataclass
class ClientApp:
    """Everything one tab needs, wired around a single AuthClient."""

    config: ClientConfig
    storage: TabStorage
    events: EventBus
    navigator: Navigator
    session: SessionStore
    state: AuthState
    http: AuthClient
    auth: AuthApi
    scripts: ScriptsApi
    user: UserApi

    def protected_guard(self) -> ProtectedGuard:
        return ProtectedGuard(self.state, self.events, self.config)

    def guest_guard(self) -> GuestGuard:
        return GuestGuard(self.state, self.events, self.config)

    def admin_guard(self) -> AdminGuard:
        return AdminGuard(self.state, self.events, self.config, self.user)

    async def aclose(self) -> None:
        self.state.close()
        await self.http.aclose()


def create_client_app(
    config: ClientConfig | None = None,
    storage: TabStorage | None = None,
    navigator: Navigator | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientApp:
    config = config or ClientConfig()
    storage = storage or ProfileStorage().open_tab()
    navigator = navigator or MemoryNavigator()
    events = EventBus()
    session = SessionStore(storage)
    state = AuthState(session, events)
    http = AuthClient(config, session, events, navigator, transport=transport)
    state.initialize()
    return ClientApp(
        config=config,
        storage=storage,
        events=events,
        navigator=navigator,
        session=session,
        state=state,
        http=http,
        auth=AuthApi(http, state),
        scripts=ScriptsApi(http),
        user=UserApi(http),
    )
