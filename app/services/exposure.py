import math
from datetime import datetime
from typing import Any, Iterable, Sequence

from app.models.scan import ProcessedBreach, ScanResponse, ScanStats, Severity

# =========================================================
# CLASSIFICATION
# =========================================================

CRITICAL_DATA_CLASSES = frozenset({
    "Passwords",
    "Credit cards",
    "Social security numbers",
    "Bank account numbers",
    "Financial data",
})

MEDIUM_DATA_CLASSES = frozenset({
    "Email addresses",
    "Phone numbers",
    "Physical addresses",
    "Employers",
    "IP addresses",
})

SEVERITY_RANK = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}

SEVERITY_PENALTY = {
    Severity.HIGH: 55,
    Severity.MEDIUM: 35,
    Severity.LOW: 15,
}

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

SUMMARY_DATA_CLASSES = 3

# =========================================================
# SCORING
# =========================================================

SCORE_MAX = 850
SCORE_MIN = 300

DATA_VALUE_PER_BREACH = 180
DATA_VALUE_PER_HIGH = 320
DATA_VALUE_CAP = 8500

BROKERS_PER_BREACH = 3.5
BROKERS_BASELINE = 12
BROKERS_CAP = 85


def classify_severity(data_classes: Iterable[str]) -> Severity:
    labels = set(data_classes)
    if labels & CRITICAL_DATA_CLASSES:
        return Severity.HIGH
    if labels & MEDIUM_DATA_CLASSES:
        return Severity.MEDIUM
    return Severity.LOW


def _parse_breach_date(raw: Any) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        return datetime.strptime(raw.strip()[:10], "%Y-%m-%d")
    except ValueError:
        return None


def format_breach_date(raw: Any) -> str:
    """
    "2021-03-15" -> "Mar 2021".

    A fixed month table keeps the output identical on every host locale.
    Unparseable input is returned as-is.
    """
    parsed = _parse_breach_date(raw)
    if parsed is None:
        return "" if raw is None else str(raw)
    return f"{MONTH_ABBREVIATIONS[parsed.month - 1]} {parsed.year:04d}"


def _formatted_date_key(formatted: str) -> tuple[int, int]:
    parts = formatted.split(" ")
    if len(parts) != 2 or parts[0] not in MONTH_ABBREVIATIONS or not parts[1].isdigit():
        return (0, 0)
    return (int(parts[1]), MONTH_ABBREVIATIONS.index(parts[0]) + 1)


def summarize_data_classes(data_classes: Sequence[str]) -> str:
    return ", ".join(data_classes[:SUMMARY_DATA_CLASSES])


def coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _optional_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def process_breach(raw: dict) -> ProcessedBreach:
    data_classes = [str(label) for label in (raw.get("DataClasses") or [])]

    return ProcessedBreach(
        name=raw.get("Title"),
        date=format_breach_date(raw.get("BreachDate")),
        data=summarize_data_classes(data_classes),
        severity=classify_severity(data_classes),
        pwnCount=coerce_count(raw.get("PwnCount")),
        domain=raw.get("Domain"),
        description=raw.get("Description"),
        dataClasses=data_classes,
        isVerified=_optional_bool(raw.get("IsVerified")),
        isSensitive=_optional_bool(raw.get("IsSensitive")),
    )


def sort_breaches(breaches: Iterable[ProcessedBreach]) -> list[ProcessedBreach]:
    # Two stable passes: newest first, then severity, so equal keys keep upstream order
    by_date = sorted(breaches, key=lambda b: _formatted_date_key(b.date), reverse=True)
    return sorted(by_date, key=lambda b: SEVERITY_RANK[b.severity])


def compute_exposure_score(breaches: Iterable[ProcessedBreach]) -> int:
    score = SCORE_MAX
    for breach in breaches:
        score -= SEVERITY_PENALTY[breach.severity]
    return max(SCORE_MIN, min(SCORE_MAX, score))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def summarize_breaches(breaches: Sequence[ProcessedBreach]) -> ScanStats:
    breach_count = len(breaches)
    high_count = sum(1 for b in breaches if b.severity == Severity.HIGH)
    total_records = sum(b.pwnCount for b in breaches)

    data_value = min(
        breach_count * DATA_VALUE_PER_BREACH + high_count * DATA_VALUE_PER_HIGH,
        DATA_VALUE_CAP,
    )
    broker_estimate = min(
        _round_half_up(breach_count * BROKERS_PER_BREACH + BROKERS_BASELINE),
        BROKERS_CAP,
    )

    return ScanStats(
        breachCount=breach_count,
        brokerEstimate=broker_estimate,
        recordsFound=total_records,
        darkWebHits=high_count,
        dataValue=data_value,
    )


def build_exposure_report(raw_breaches: Iterable[dict]) -> ScanResponse:
    processed = sort_breaches(process_breach(raw) for raw in raw_breaches)

    return ScanResponse(
        breaches=processed,
        score=compute_exposure_score(processed),
        stats=summarize_breaches(processed),
    )
