from dataclasses import dataclass
from typing import Optional

@dataclass
class TagDTO:
    id: int
    name: str
    color: Optional[str] = None
