from typing import Optional

from pydantic import BaseModel


class ValidateResponse(BaseModel):
    valid: bool
    message: Optional[str] = None
