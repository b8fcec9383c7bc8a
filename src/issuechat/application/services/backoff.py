"""Exponential backoff for reconnection attempts."""

# Delays in seconds
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0


def delay_for_attempt(
    attempt: int,
    base: float = DEFAULT_BASE_DELAY,
    cap: float = DEFAULT_MAX_DELAY,
) -> float:
    """Return the delay before retrying after a failed attempt.

    Args:
        attempt: Number of attempts made before the failed one (0 for the first).
        base: Delay after the first failure.
        cap: Upper bound for the delay.

    Returns:
        `min(base * 2**attempt, cap)` seconds.

    Raises:
        ValueError: If attempt is negative.
    """
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")
    # Avoid computing huge powers once the cap is certainly reached
    if attempt >= 64:
        return cap
    return min(base * 2**attempt, cap)
