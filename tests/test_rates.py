from datetime import date
from decimal import Decimal

import pytest

from trips.constants import RatePartyType
from trips.directories import CachedDirectory, MasterData
from trips.rates import RateOverride, RateResolver, derive_gst

from tests.factories import rate_record


class TestGstDerivation:

    def test_chargeable(self):
        assert derive_gst('1000', '5', True) == (Decimal('50'), Decimal('1050'))

    def test_not_chargeable(self):
        gst_amount, total = derive_gst('1000', '5', False)
        assert gst_amount == 0
        assert total == Decimal('1000')

    def test_override_recomputes_on_gst_edits(self):
        override = RateOverride(rate_per_ton=Decimal('400'), gst_percentage=Decimal('5'), gst_chargeable=True)
        override.recompute()
        assert override.total_rate_per_ton == Decimal('420')

        override.update(rate_per_ton=Decimal('500'))
        assert override.gst_amount == Decimal('25')
        assert override.total_rate_per_ton == Decimal('525')

        override.update(gst_chargeable=False)
        assert override.gst_amount == 0
        assert override.total_rate_per_ton == Decimal('500')

        override.update(gst_chargeable=True, gst_percentage=Decimal('12'))
        assert override.total_rate_per_ton == Decimal('560')

    def test_unknown_field_is_rejected(self):
        with pytest.raises(AttributeError):
            RateOverride().update(total=1)


class TestRateOverrideDict:

    def test_accepts_camel_case_keys(self):
        override = RateOverride.from_dict({
            'ratePartyType': 'vendor-customer',
            'materialTypeId': 1,
            'ratePartyId': 10,
            'pickupLocationId': 1,
            'dropOffLocationId': 2,
            'totalRatePerTon': '600',
            'effectiveFrom': '2024-06-01',
        })
        assert override.rate_party_type == RatePartyType.VENDOR_CUSTOMER
        assert override.rate_party_id == '10'
        assert override.total_rate_per_ton == Decimal('600')
        assert override.effective_from == date(2024, 6, 1)
        assert override.missing_fields() == []

    def test_missing_required_fields(self):
        override = RateOverride.from_dict({'rate_party_id': '10'})
        assert override.missing_fields() == ['material_type_id', 'pickup_location_id', 'drop_off_location_id']

    def test_to_dict_uses_snake_case(self):
        data = RateOverride(rate_per_ton=Decimal('10'), effective_from=date(2024, 1, 2)).to_dict()
        assert data['rate_per_ton'] == '10'
        assert data['effective_from'] == '2024-01-02'
        assert data['rate_party_type'] == 'transport-owner'


class TestRateResolver:

    def test_money_fields_from_table_rates(self, make_trip, master_data):
        money = RateResolver(master_data).resolve(make_trip())
        assert money.revenue == Decimal('5000')
        assert money.material_cost == Decimal('2000')
        assert money.transport_cost == Decimal('1000')
        assert money.royalty_cost == Decimal('500')
        assert money.profit == Decimal('1500')

    def test_override_replaces_only_its_own_party_type(self, make_trip, master_data):
        trip = make_trip(
            rate_override_enabled=True,
            rate_override={'rate_party_type': 'vendor-customer', 'total_rate_per_ton': '600'},
        )
        money = RateResolver(master_data).resolve(trip)
        assert money.revenue == Decimal('6000')
        assert money.material_cost == Decimal('2000')
        assert money.transport_cost == Decimal('1000')
        assert money.royalty_cost == Decimal('500')

    def test_disabled_override_is_ignored(self, make_trip, master_data):
        trip = make_trip(
            rate_override_enabled=False,
            rate_override={'rate_party_type': 'vendor-customer', 'total_rate_per_ton': '600'},
        )
        assert RateResolver(master_data).resolve(trip).revenue == Decimal('5000')

    def test_unknown_names_price_at_zero(self, make_trip, master_data):
        money = RateResolver(master_data).resolve(make_trip(customer='Sri Builder', material='Sand'))
        assert money.revenue == 0
        assert money.material_cost == 0
        assert money.profit == 0

    def test_negative_net_weight_counts_as_zero(self, make_trip, master_data):
        money = RateResolver(master_data).resolve(make_trip(net_weight=Decimal('-3')))
        assert money.revenue == 0

    def test_picks_the_record_in_effect_with_latest_start(self, directory_lists):
        rates = [
            rate_record(1, RatePartyType.VENDOR_CUSTOMER, 10, '400', date(2023, 1, 1), date(2024, 5, 31)),
            rate_record(2, RatePartyType.VENDOR_CUSTOMER, 10, '450', date(2024, 1, 1)),
            rate_record(3, RatePartyType.VENDOR_CUSTOMER, 10, '500', date(2024, 3, 1)),
            rate_record(4, RatePartyType.VENDOR_CUSTOMER, 10, '900', date(2024, 7, 1)),
        ]
        resolver = RateResolver(MasterData.from_lists(material_rates=rates, **directory_lists))
        rate = resolver.find_rate(
            RatePartyType.VENDOR_CUSTOMER, 'Sri Builders', 'M-Sand', 'Hill Quarry Yard', 'City Site', date(2024, 6, 15)
        )
        assert rate == Decimal('500')

    def test_expired_record_is_skipped(self, directory_lists):
        rates = [
            rate_record(1, RatePartyType.VENDOR_CUSTOMER, 10, '400', date(2024, 1, 1), date(2024, 5, 31)),
            rate_record(2, RatePartyType.VENDOR_CUSTOMER, 10, '450', date(2023, 1, 1)),
        ]
        resolver = RateResolver(MasterData.from_lists(material_rates=rates, **directory_lists))
        rate = resolver.find_rate(
            RatePartyType.VENDOR_CUSTOMER, 'Sri Builders', 'M-Sand', 'Hill Quarry Yard', 'City Site', date(2024, 6, 15)
        )
        assert rate == Decimal('450')

    def test_same_start_date_prefers_smallest_id(self, directory_lists):
        rates = [
            rate_record(9, RatePartyType.VENDOR_CUSTOMER, 10, '700', date(2024, 1, 1)),
            rate_record(3, RatePartyType.VENDOR_CUSTOMER, 10, '300', date(2024, 1, 1)),
        ]
        resolver = RateResolver(MasterData.from_lists(material_rates=rates, **directory_lists))
        rate = resolver.find_rate(
            RatePartyType.VENDOR_CUSTOMER, 'Sri Builders', 'M-Sand', 'Hill Quarry Yard', 'City Site', date(2024, 6, 15)
        )
        assert rate == Decimal('300')

    def test_mixed_id_types_on_the_same_start_date(self, directory_lists):
        rates = [
            rate_record('r-9', RatePartyType.VENDOR_CUSTOMER, 10, '700', date(2024, 1, 1)),
            rate_record(None, RatePartyType.VENDOR_CUSTOMER, 10, '800', date(2024, 1, 1)),
            rate_record(3, RatePartyType.VENDOR_CUSTOMER, 10, '300', date(2024, 1, 1)),
            rate_record('12', RatePartyType.VENDOR_CUSTOMER, 10, '1200', date(2024, 1, 1)),
        ]
        resolver = RateResolver(MasterData.from_lists(material_rates=rates, **directory_lists))
        rate = resolver.find_rate(
            RatePartyType.VENDOR_CUSTOMER, 'Sri Builders', 'M-Sand', 'Hill Quarry Yard', 'City Site', date(2024, 6, 15)
        )
        assert rate == Decimal('300')

    def test_other_route_does_not_match(self, directory_lists):
        rates = [rate_record(1, RatePartyType.VENDOR_CUSTOMER, 10, '500', date(2024, 1, 1), drop_off_location_id=1)]
        resolver = RateResolver(MasterData.from_lists(material_rates=rates, **directory_lists))
        rate = resolver.find_rate(
            RatePartyType.VENDOR_CUSTOMER, 'Sri Builders', 'M-Sand', 'Hill Quarry Yard', 'City Site', date(2024, 6, 15)
        )
        assert rate == 0


class TestMasterData:

    def test_directory_loads_once_until_invalidated(self):
        calls = []

        def loader():
            calls.append(1)
            return ['a']

        directory = CachedDirectory(loader, 'test')
        assert directory.is_loaded is False
        assert directory.get() == ['a']
        assert directory.get() == ['a']
        assert len(calls) == 1

        directory.invalidate()
        directory.ensure_loaded()
        assert len(calls) == 2

    def test_requires_every_party_directory(self):
        with pytest.raises(ValueError):
            MasterData(
                parties={RatePartyType.MINE_QUARRY: CachedDirectory(list)},
                site_locations=CachedDirectory(list),
                material_types=CachedDirectory(list),
                material_rates=CachedDirectory(list),
            )
