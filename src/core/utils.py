import math


def fmt_time(seconds: float | None) -> str:
    """
    Seconds -> "M:SS". None, NaN, infinite, zero and negative values render as "0:00".
    """
    if not seconds or not math.isfinite(seconds) or seconds < 0:
        return "0:00"
    s = int(seconds)
    m = s // 60
    s = s % 60
    return f"{m}:{s:02d}"


def progress_percent(current: float | None, total: float | None) -> float:
    """
    Position as a percentage of `total`, clamped to [0, 100].
    Unknown, zero or NaN totals give 0.
    """
    if current is None or total is None:
        return 0.0
    if math.isnan(current) or math.isnan(total) or total <= 0:
        return 0.0
    return max(0.0, min(100.0, 100.0 * current / total))
