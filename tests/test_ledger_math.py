import pytest
from beanie import PydanticObjectId

from app.services.ledger import diff_participants, split_cost, unique_ids


def test_split_cost_even():
    assert split_cost(500, 2) == 250
    assert split_cost(100, 3) * 3 == pytest.approx(100)


def test_split_cost_without_participants_is_total():
    assert split_cost(120, 0) == 120


def test_unique_ids_keeps_order():
    a, b = PydanticObjectId(), PydanticObjectId()
    assert unique_ids([a, b, a]) == [a, b]


def test_diff_participants():
    a, b, c = PydanticObjectId(), PydanticObjectId(), PydanticObjectId()
    removed, added, kept = diff_participants([a, b], [b, c])
    assert removed == [str(a)]
    assert added == [str(c)]
    assert kept == [str(b)]
