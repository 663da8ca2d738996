import pytest
from fastapi import HTTPException

from app.utils.ordering import require_sequential_order, validate_sequential_order


@pytest.mark.parametrize("orders", [[], [0], [0, 1, 2], [2, 0, 1]])
def test_sequential_orders_are_accepted(orders):
    assert validate_sequential_order(orders) is True


@pytest.mark.parametrize("orders", [[1], [0, 0], [0, 2], [1, 2, 3], [0, 1, 1, 2]])
def test_gaps_duplicates_and_offsets_are_rejected(orders):
    assert validate_sequential_order(orders) is False


def test_require_sequential_order_names_the_level():
    with pytest.raises(HTTPException) as exc:
        require_sequential_order([0, 2], "Lesson")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Lesson order must be unique, sequential and start from 0."
