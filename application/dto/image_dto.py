
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

UNTITLED_IMAGE = "Untitled Image"

@dataclass
class ImageDTO:
    id: int
    name: str = UNTITLED_IMAGE
    path: Optional[str] = None
    folder_id: Optional[int] = None
    is_favorite: bool = False
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    original_path: Optional[str] = None

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None
