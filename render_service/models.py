"""
Pydantic models for the render service API.

Field names follow the camelCase wire format used by callers.
"""

from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    timestamp: str


class RenderRequest(BaseModel):
    """HTML to PDF render request."""

    html: Optional[str] = Field(None, description="HTML document to render (opaque markup)")
    widthMm: Optional[float] = Field(
        None, gt=0, allow_inf_nan=False, description="Page width in millimeters (default 80)"
    )
    heightMm: Optional[float] = Field(
        None, gt=0, allow_inf_nan=False, description="Page height in millimeters (default 80)"
    )


class RenderResponse(BaseModel):
    """Successful render."""

    success: bool = True
    pdf: str = Field(..., description="Base64 encoded PDF bytes")
    size: int = Field(..., description="PDF size in bytes")
    renderMs: int


class RenderErrorResponse(BaseModel):
    """Failed render."""

    error: str = "Render failed"
    message: str
    renderMs: int
    errorType: str
