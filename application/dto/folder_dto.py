from dataclasses import dataclass
from datetime import datetime
from typing import Optional

UNNAMED_FOLDER = "Unnamed Folder"

@dataclass
class FolderDTO:
    id: int
    name: str = UNNAMED_FOLDER
    color: Optional[str] = None
    description: Optional[str] = None
    is_favorite: bool = False
    images_count: int = 0
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None
