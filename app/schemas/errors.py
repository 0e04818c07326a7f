"""Error body returned by every non-2xx response.

`detail` carries field-level problems: request validation errors, or the
per-item errors of a rejected section write.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    status_code: int
    request_id: str = ""
    detail: list | None = None
