"""
Base Pydantic schemas shared by every response.

Every API response carries `success`; failures are produced by the error
handlers in groupwork.errors with the same flag set to False.
"""

from typing import Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
