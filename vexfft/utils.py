"""
Size helpers for FFT-friendly lengths.
"""

from typing import Iterable


def is_nice(n: int, allowed_factors: Iterable[int] = (2, 3, 5)) -> bool:
    """
    Checks if integer n factors completely into allowed_factors.
    For example, 60 (2*2*3*5) is nice but 302 (2*151) is not.
    """
    if n < 1:
        return False
    temp = n
    for p in sorted(allowed_factors):
        while temp % p == 0:
            temp //= p
    return temp == 1


def next_nice(n: int, allowed_factors: Iterable[int] = (2, 3, 5)) -> int:
    """
    Returns the smallest integer greater than or equal to n that is FFT-friendly.
    For example, 302 is bumped to 320 (2**6 * 5).
    """
    allowed_factors = tuple(allowed_factors)
    n = max(int(n), 1)
    while not is_nice(n, allowed_factors):
        n += 1
    return n
