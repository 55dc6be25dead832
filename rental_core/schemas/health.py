from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """
    Liveness check response.
    """

    status: str = Field("ok", description="Always 'ok' while the process is serving")


class ReadinessStatus(BaseModel):
    """
    Readiness check response with one entry per dependency checked.
    """

    status: str = Field(..., description="'ready' or 'not ready'")
    checks: dict[str, str] = Field(default_factory=dict, description="Dependency -> ok/failed")
