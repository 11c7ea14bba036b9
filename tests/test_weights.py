from decimal import Decimal

from trips.weights import ZERO, NetWeightTracker, derive_net_weight, non_negative, to_decimal


class TestCoercion:

    def test_blank_and_junk_become_zero(self):
        assert to_decimal(None) == ZERO
        assert to_decimal('') == ZERO
        assert to_decimal('abc') == ZERO

    def test_numbers_and_strings(self):
        assert to_decimal('12.5') == Decimal('12.5')
        assert to_decimal(3) == Decimal('3')

    def test_non_negative(self):
        assert non_negative('-4') == ZERO
        assert non_negative('4') == Decimal('4')


class TestNetWeight:

    def test_gross_minus_empty(self):
        assert derive_net_weight('25', '15') == Decimal('10')

    def test_never_negative(self):
        assert derive_net_weight('10', '15') == ZERO

    def test_follows_gross_and_empty_until_manual(self):
        tracker = NetWeightTracker('20', '5')
        assert tracker.net == Decimal('15')

        tracker.set_gross('30')
        assert tracker.net == Decimal('25')
        tracker.set_empty('10')
        assert tracker.net == Decimal('20')

    def test_manual_net_survives_gross_and_empty_edits(self):
        tracker = NetWeightTracker('20', '5')
        tracker.set_net('12')
        tracker.set_gross('40')
        tracker.set_empty('1')
        assert tracker.manual is True
        assert tracker.net == Decimal('12')

    def test_manual_from_the_start(self):
        tracker = NetWeightTracker('20', '5', net='18', manual=True)
        assert tracker.net == Decimal('18')
