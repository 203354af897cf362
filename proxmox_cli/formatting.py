"""Human-readable rendering of API values."""

from __future__ import annotations

from typing import Iterable, Sequence

_UNITS = "KMGTPE"


def format_bytes(size: int) -> str:
    """1536 -> '1.50 KB' (binary multiples)."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit and exp < len(_UNITS) - 1:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.2f} {_UNITS[exp]}B"


def format_uptime(seconds: int) -> str:
    if seconds == 0:
        return "N/A"
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_percent(fraction: float) -> str:
    return f"{fraction * 100:.2f}%"


def format_ratio(used: int, total: int) -> str:
    """Usage as a percentage of ``total``; blank when the total is unknown."""
    if total <= 0:
        return ""
    return format_percent(used / total)


def yes_no(flag: int) -> str:
    return "Yes" if flag == 1 else "No"


def print_table(headers: Sequence[str], widths: Sequence[int], rows: Iterable[Sequence[object]]) -> None:
    line = " ".join(f"{{:<{w}}}" for w in widths)
    print(line.format(*headers))
    print("=" * (sum(widths) + len(widths) - 1))
    for row in rows:
        print(line.format(*(str(v) for v in row)))
