from typing import Iterable

from fastapi import HTTPException, status


def validate_sequential_order(orders: Iterable[int]) -> bool:
    """True iff the orders are exactly 0..n-1: no duplicates, no gaps, starting at zero."""
    values = sorted(orders)
    return values == list(range(len(values)))


def require_sequential_order(orders: Iterable[int], level: str) -> None:
    if not validate_sequential_order(orders):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{level} order must be unique, sequential and start from 0."
        )
