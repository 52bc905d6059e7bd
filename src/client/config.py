from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TIMEOUT_SECONDS = 10.0
# Shorter because every queued request waits on it
DEFAULT_REFRESH_TIMEOUT_SECONDS = 5.0


class ClientConfig(BaseModel):
    base_url: str = "http://localhost:8000"
    timeout: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    refresh_timeout: float = Field(DEFAULT_REFRESH_TIMEOUT_SECONDS, gt=0)

    login_path: str = "/login"
    home_path: str = "/dashboard"
    # Pages that never redirect to login when the session is cleared
    guest_only_paths: frozenset[str] = frozenset({"/login", "/register"})

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="after")
    def check_refresh_timeout(self) -> "ClientConfig":
        if self.refresh_timeout >= self.timeout:
            raise ValueError("refresh_timeout must be shorter than timeout")
        return self
