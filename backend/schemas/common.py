from pydantic import BaseModel

# Plain acknowledgement returned by mutations without a payload
class Message(BaseModel):
    message: str
