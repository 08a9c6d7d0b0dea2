from typing import Any, Dict, List

from pydantic import BaseModel


class StatsResponse(BaseModel):
    totalScans: int
    todayScans: int
    yesterdayScans: int
    countries: Dict[str, int]

    # Entries are passed through as decoded, so older record shapes survive
    recentScans: List[Dict[str, Any]]
