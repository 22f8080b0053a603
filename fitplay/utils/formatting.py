"""Display formatting for activity stats"""


def format_duration(minutes: int) -> str:
    """45 -> '45 min', 60 -> '1 hr', 95 -> '1 hr 35 min'"""
    if not minutes or minutes < 0:
        return "0 min"
    if minutes < 60:
        return f"{minutes} min"

    hours, mins = divmod(int(minutes), 60)
    if mins == 0:
        return f"{hours} hr"
    return f"{hours} hr {mins} min"


def format_distance(km: float) -> str:
    """Under 1 km is shown in meters"""
    if not km or km < 0:
        return "0 km"
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.2f} km"


def format_number(num: float) -> str:
    """Compact notation: 1500 -> '1.5K', 2000000 -> '2.0M'"""
    if not num or num < 0:
        return "0"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1000:
        return f"{num / 1000:.1f}K"
    return str(num)
