from pydantic import BaseModel

class SessionIdentity(BaseModel):
    """Identity resolved from a valid session token"""
    user_id: int
    email: str
