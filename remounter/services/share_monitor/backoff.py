def backoff_delay(failures: int, base_delay: float, max_delay: float) -> float:
    """
    Seconds to wait before the next remount attempt after ``failures``
    consecutive failures: min(max_delay, base_delay * 2^(failures - 1)).

    Zero failures means no delay.
    """
    if failures < 1:
        return 0.0
    # Cap the exponent so long outages cannot overflow the float
    exponent = min(failures - 1, 64)
    return min(max_delay, base_delay * (2 ** exponent))
