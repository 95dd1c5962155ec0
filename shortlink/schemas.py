from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class LinkCreate(BaseModel):
    # Both are validated by the link service so that failures map to 400
    # with the API's own messages instead of a generic 422.
    url: Optional[str] = None
    code: Optional[str] = None

class LinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    target_url: str
    total_clicks: int
    last_clicked_at: Optional[datetime]
    created_at: datetime

class ErrorOut(BaseModel):
    error: str
