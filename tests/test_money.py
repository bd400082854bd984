import pytest

from jewel_pricing.money import round_half_up, round_money, round_to_nearest


@pytest.mark.parametrize("value, expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (1106.93, 1107), (0, 0)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_round_to_nearest_ten():
    assert round_to_nearest(69472, 10) == 69470
    assert round_to_nearest(69475, 10) == 69480


def test_round_money():
    assert round_money(28000.004) == 28000.0
