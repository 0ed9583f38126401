from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class AttendanceEvent:
    type: NotificationType
    user_id: str
    record_id: int
    occurred_at: datetime
    location_name: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)
