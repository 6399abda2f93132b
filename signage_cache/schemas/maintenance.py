"""
Signage Cache - Maintenance Schemas
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class PruneRequest(BaseModel):
    """Overrides for a manual prune pass (defaults come from settings)"""

    max_age_days: Optional[int] = Field(None, ge=0)
    max_total_bytes: Optional[int] = Field(None, ge=0)
    evict_active: Optional[bool] = None


class PruneReport(BaseModel):
    """Outcome of one prune pass"""

    missing_cleared: List[str] = Field(default_factory=list)  # "playlist/item"
    deleted_files: List[str] = Field(default_factory=list)
    evicted_items: List[str] = Field(default_factory=list)  # "playlist/item"
    skipped: List[str] = Field(default_factory=list)  # contended, retried next pass
    freed_bytes: int = 0
    total_bytes: int = 0
    over_limit: bool = False
