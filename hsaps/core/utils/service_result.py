"""Result type returned by service-layer operations."""
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ServiceResult:
    """Result of a service operation."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: int = 200
