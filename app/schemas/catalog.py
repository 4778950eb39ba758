from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: Optional[datetime] = None

class ProviderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location_id: str
    created_at: Optional[datetime] = None

class LocationRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str

class ProviderRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str

class ProviderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location_id: str = Field(..., min_length=1)

class AdminProviderResponse(ProviderResponse):
    location: Optional[LocationRef] = None
