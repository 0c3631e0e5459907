
from dataclasses import dataclass
from typing import Optional

@dataclass
class UserDTO:
    id: int
    name: str
    email: str
    avatar: Optional[str] = None

@dataclass
class AuthResultDTO:
    user: UserDTO
    token: str

@dataclass
class UserStatsDTO:
    folder_count: int = 0
    image_count: int = 0
    favorite_count: int = 0
