from pydantic import BaseModel


class HealthOut(BaseModel):
    ok: bool
    environment: str
    message: str
