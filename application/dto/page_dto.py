
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

T = TypeVar("T")

@dataclass
class PageDTO(Generic[T]):
    items: List[T] = field(default_factory=list)
    current_page: int = 1
    last_page: int = 1
    per_page: int = 20
    total: int = 0

    @property
    def has_next(self) -> bool:
        return self.current_page < self.last_page
