from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class PlatformSettingsUpdate(BaseModel):
    commission_rate: Optional[float] = Field(default=None, ge=0, le=100)
    platform_name: Optional[str] = Field(default=None, min_length=1)
    contact_email: Optional[EmailStr] = None
