
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass
class PingResultDTO:
    success: bool
    timestamp: datetime
    method: Optional[str] = None
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    duration_ms: Optional[int] = None
    error: Optional[str] = None
    is_timeout: bool = False
