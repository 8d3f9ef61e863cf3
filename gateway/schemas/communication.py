from pydantic import BaseModel, Field


class SendResponse(BaseModel):
    model_config = {"populate_by_name": True}

    success: bool
    channel: str | None = None
    message_id: str | None = Field(default=None, alias="messageId")
    error: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthOut(BaseModel):
    status: str
    message: str
    services: dict[str, bool]
