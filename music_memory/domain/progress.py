"""Display helpers for duel progress and ranking statistics."""

import math


def estimate_total_duels(candidate_count: int) -> int:
    """Heuristic n·log2(n) duel count used only for the progress bar.

    The engine stops on pool exhaustion, usually after n-1 single-winner
    duels, so the bar rarely reaches 100% before the results screen.
    """
    if candidate_count < 2:
        return 0
    return int(candidate_count * math.log2(candidate_count))


def duel_progress(battle_index: int, candidate_count: int) -> float:
    total = max(1, estimate_total_duels(candidate_count))
    return min(battle_index / total, 1.0)


def format_duration(seconds: float) -> str:
    total_minutes = int(max(seconds, 0) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"
