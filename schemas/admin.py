from pydantic import BaseModel, Field


class ReportStatusUpdate(BaseModel):
    status: str = Field(..., description="pending / investigating / resolved / dismissed")
    password: str = Field(..., description="Пароль для админ-операций")


class ReportStatusResponse(BaseModel):
    id: int
    status: str
    restriction: str | None = None


class ResetDbRequest(BaseModel):
    password: str


class ResetDbResponse(BaseModel):
    status: str
