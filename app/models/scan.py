from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProcessedBreach(BaseModel):
    name: Optional[str] = None
    date: str
    data: str
    severity: Severity
    pwnCount: int = 0
    domain: Optional[str] = None
    description: Optional[str] = None
    dataClasses: List[str] = []
    isVerified: Optional[bool] = None
    isSensitive: Optional[bool] = None


class ScanStats(BaseModel):
    breachCount: int
    brokerEstimate: int
    recordsFound: int
    darkWebHits: int
    dataValue: int


class ScanResponse(BaseModel):
    breaches: List[ProcessedBreach]
    score: int
    stats: ScanStats


class ScanRecord(BaseModel):
    """Compact usage entry pushed onto the recent-scans list."""

    t: int
    c: str
    s: int
    b: int
