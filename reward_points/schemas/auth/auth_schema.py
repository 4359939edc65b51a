from pydantic import BaseModel
from reward_points.models.shared.enums import Role

class LoginRequest(BaseModel):
    username: str
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    employee_id: str
    role: Role
