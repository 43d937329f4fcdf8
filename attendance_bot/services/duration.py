import math


def format_duration(total_minutes: float) -> str:
    """Render minutes as e.g. "1小时1分30秒"; leading zero units are dropped, seconds always shown."""
    # 10s is 0.1666... minutes; round before flooring
    total_seconds = math.floor(round(total_minutes * 60, 6))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}小时")
    if hours > 0 or minutes > 0:
        parts.append(f"{minutes}分")
    parts.append(f"{seconds}秒")
    return "".join(parts)
