from pydantic import BaseModel

from app.schemas.user import User

class LoginRequest(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    user: User
