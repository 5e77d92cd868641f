from pydantic import BaseModel


class VerificationPayload(BaseModel):
    challenge: str
