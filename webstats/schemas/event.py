from pydantic import BaseModel, ConfigDict


class TrackResponse(BaseModel):
    success: bool = True
    id: str
    timestamp: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "id": "3f1c2a9e8b7d4e6f9a0b1c2d3e4f5a6b",
                "timestamp": "2024-01-01T00:00:00+00:00",
            }
        }
    )


class TrackError(BaseModel):
    success: bool = False
    error: str


class MethodNotAllowed(BaseModel):
    error: str = "Method not allowed"
