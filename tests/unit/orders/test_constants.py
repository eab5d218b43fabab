"""Unit tests for order positions and their ordering helpers."""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    BOXABLE_POSITIONS,
    LEGACY_POSITION_CODES,
    SHIPPABLE_POSITIONS,
    OrderPosition,
    position_rank,
    positions_at_or_beyond,
    reached,
)

pytestmark = pytest.mark.unit


class TestOrderPosition:
    def test_stored_codes(self):
        assert OrderPosition.NEW == 1
        assert OrderPosition.UNDER_PURCHASE == 2
        assert OrderPosition.PURCHASED == 3
        assert OrderPosition.SHIPPING == 6
        assert OrderPosition.READY_FOR_DELIVERY == 9
        assert OrderPosition.CANCELLED == 12

    def test_every_legacy_code_is_mapped(self):
        assert sorted(LEGACY_POSITION_CODES) == list(range(1, 17))
        for code, position in LEGACY_POSITION_CODES.items():
            assert OrderPosition.from_legacy_code(code) is position

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            (3, OrderPosition.RECEIVED_ABROAD),
            (9, OrderPosition.RETURN_PENDING),
            (11, OrderPosition.RETURNED_ABROAD),
            (12, OrderPosition.RETURNED),
            (13, OrderPosition.READY_FOR_DELIVERY),
            (14, OrderPosition.OUT_FOR_DELIVERY),
            (15, OrderPosition.DELIVERED),
            (16, OrderPosition.CANCELLED),
        ],
    )
    def test_legacy_codes_map_onto_named_states(self, code, expected):
        assert OrderPosition.from_legacy_code(code) is expected

    def test_unknown_legacy_code(self):
        with pytest.raises(ValueError):
            OrderPosition.from_legacy_code(999)


class TestRank:
    def test_happy_path_is_ordered(self):
        assert position_rank(OrderPosition.NEW) < position_rank(OrderPosition.PURCHASED)
        assert position_rank(OrderPosition.PURCHASED) < position_rank(OrderPosition.SHIPPING)
        assert position_rank(OrderPosition.SHIPPING) < position_rank(OrderPosition.DELIVERED)

    def test_off_path_states_have_no_rank(self):
        assert position_rank(OrderPosition.CANCELLED) is None
        assert position_rank(OrderPosition.RETURN_PENDING) is None

    @pytest.mark.parametrize(
        ("position", "milestone", "expected"),
        [
            (OrderPosition.PURCHASED, OrderPosition.PURCHASED, True),
            (OrderPosition.SHIPPING, OrderPosition.PURCHASED, True),
            (OrderPosition.UNDER_PURCHASE, OrderPosition.PURCHASED, False),
            (OrderPosition.CANCELLED, OrderPosition.NEW, False),
            (OrderPosition.DELIVERED, OrderPosition.READY_FOR_DELIVERY, True),
        ],
    )
    def test_reached(self, position, milestone, expected):
        assert reached(position, milestone) is expected

    def test_positions_at_or_beyond(self):
        beyond = positions_at_or_beyond(OrderPosition.READY_FOR_DELIVERY)
        assert OrderPosition.READY_FOR_DELIVERY in beyond
        assert OrderPosition.DELIVERED in beyond
        assert OrderPosition.PREPARING not in beyond
        assert OrderPosition.CANCELLED not in beyond

    def test_container_eligibility_sets(self):
        assert BOXABLE_POSITIONS == {OrderPosition.PURCHASED, OrderPosition.RECEIVED_ABROAD}
        assert SHIPPABLE_POSITIONS == BOXABLE_POSITIONS | {OrderPosition.BOXED}
