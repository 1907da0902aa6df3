# app/schemas/auth.py
from pydantic import BaseModel


class SteamUser(BaseModel):
    steam_id: str
    username: str
    avatar_url: str = ""
