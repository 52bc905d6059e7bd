from typing import Literal

from src.core.schemas import ApiModel


class HealthCheckResponse(ApiModel):
    status: Literal["ok"] = "ok"
    version: str
    redis: bool
    postgres: bool
