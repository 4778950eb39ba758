from pydantic import BaseModel, Field

class AdminLogin(BaseModel):
    password: str = Field(..., min_length=1)

class AdminSession(BaseModel):
    authenticated: bool
