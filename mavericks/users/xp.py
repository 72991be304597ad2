from mavericks.core.config import XP_PER_LEVEL


def calculate_level(xp: int) -> int:
    return max(xp, 0) // XP_PER_LEVEL + 1


def apply_xp(profile: dict, amount: int) -> dict:
    """Fields to write after adding `amount` XP to `profile`"""
    xp = (profile.get("xp") or 0) + amount
    return {"xp": xp, "level": calculate_level(xp)}
