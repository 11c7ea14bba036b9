"""
Per-ton rate resolution and the money fields derived from it.

For each of the four rate-party roles a trip gets one rate: the trip's own
override when it names that role, otherwise the latest material-rate record
in effect on the trip date for the exact party/material/route. Names are
matched exactly; anything that does not resolve prices at zero.

The resolver only reads the master-data snapshot handed to it. It runs once,
when a trip is created; edits never reprice a trip.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from django.utils.dateparse import parse_date

from .constants import PARTY_NAME_FIELDS, RatePartyType
from .weights import ZERO, non_negative, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')


def derive_gst(rate_per_ton, gst_percentage, gst_chargeable):
    """Returns (gst_amount, total_rate_per_ton) for a per-ton rate."""
    rate_per_ton = to_decimal(rate_per_ton)
    gst_amount = ZERO
    if gst_chargeable:
        gst_amount = rate_per_ton * to_decimal(gst_percentage) / HUNDRED
    return gst_amount, rate_per_ton + gst_amount


def as_date(value):
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value)[:10])
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


# camelCase keys accepted from legacy payloads
OVERRIDE_WIRE_KEYS = {
    'material_type_id': 'materialTypeId',
    'rate_party_type': 'ratePartyType',
    'rate_party_id': 'ratePartyId',
    'pickup_location_id': 'pickupLocationId',
    'drop_off_location_id': 'dropOffLocationId',
    'total_km': 'totalKm',
    'rate_per_km': 'ratePerKm',
    'rate_per_ton': 'ratePerTon',
    'gst_chargeable': 'gstChargeable',
    'gst_percentage': 'gstPercentage',
    'gst_amount': 'gstAmount',
    'total_rate_per_ton': 'totalRatePerTon',
    'effective_from': 'effectiveFrom',
    'effective_to': 'effectiveTo',
    'remarks': 'remarks',
}
OVERRIDE_DECIMAL_FIELDS = (
    'total_km', 'rate_per_km', 'rate_per_ton', 'gst_percentage', 'gst_amount', 'total_rate_per_ton',
)
OVERRIDE_REQUIRED_FIELDS = (
    'material_type_id', 'rate_party_id', 'pickup_location_id', 'drop_off_location_id',
)


@dataclass
class RateOverride:
    rate_party_type: str = RatePartyType.TRANSPORT_OWNER
    material_type_id: str = ''
    rate_party_id: str = ''
    pickup_location_id: str = ''
    drop_off_location_id: str = ''
    total_km: Decimal = ZERO
    rate_per_km: Decimal = ZERO
    rate_per_ton: Decimal = ZERO
    gst_chargeable: bool = False
    gst_percentage: Decimal = ZERO
    gst_amount: Decimal = ZERO
    total_rate_per_ton: Decimal = ZERO
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    remarks: str = ''

    def recompute(self):
        """Refreshes gst_amount and total_rate_per_ton from the inputs."""
        self.gst_amount, self.total_rate_per_ton = derive_gst(
            self.rate_per_ton, self.gst_percentage, self.gst_chargeable
        )
        return self

    def update(self, **changes):
        """Applies edits; GST-affecting edits re-derive the totals."""
        for name, value in changes.items():
            if name not in OVERRIDE_WIRE_KEYS:
                raise AttributeError(f"Unknown rate override field: {name}")
            setattr(self, name, value)
        if {'rate_per_ton', 'gst_percentage', 'gst_chargeable'} & set(changes):
            self.recompute()
        return self

    def missing_fields(self):
        return [name for name in OVERRIDE_REQUIRED_FIELDS if not getattr(self, name)]

    @classmethod
    def from_dict(cls, data):
        """Builds an override from wire (camelCase) or snake_case keys."""
        values = {}
        for name, wire_key in OVERRIDE_WIRE_KEYS.items():
            if wire_key in data:
                values[name] = data[wire_key]
            elif name in data:
                values[name] = data[name]
        for name in OVERRIDE_DECIMAL_FIELDS:
            if name in values:
                values[name] = to_decimal(values[name])
        for name in ('effective_from', 'effective_to'):
            if name in values:
                values[name] = as_date(values[name])
        for name in ('material_type_id', 'rate_party_id', 'pickup_location_id', 'drop_off_location_id', 'remarks'):
            if values.get(name) is not None:
                values[name] = str(values[name])
        if 'gst_chargeable' in values:
            values['gst_chargeable'] = bool(values['gst_chargeable'])
        values['rate_party_type'] = RatePartyType(values.get('rate_party_type') or RatePartyType.TRANSPORT_OWNER)
        return cls(**values)

    @classmethod
    def coerce(cls, value):
        if value is None or isinstance(value, cls):
            return value
        return cls.from_dict(value)

    def to_dict(self):
        data = {}
        for name in OVERRIDE_WIRE_KEYS:
            value = getattr(self, name)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, date):
                value = value.isoformat()
            elif name == 'rate_party_type':
                value = str(RatePartyType(value).value)
            data[name] = value
        return data


@dataclass(frozen=True)
class MoneyFields:
    revenue: Decimal = ZERO
    material_cost: Decimal = ZERO
    transport_cost: Decimal = ZERO
    royalty_cost: Decimal = ZERO
    profit: Decimal = ZERO
    rates: dict = field(default_factory=dict, compare=False)

    def as_dict(self):
        return {
            'revenue': self.revenue,
            'material_cost': self.material_cost,
            'transport_cost': self.transport_cost,
            'royalty_cost': self.royalty_cost,
            'profit': self.profit,
        }


def lookup_id(entries, name):
    """Exact-name lookup in an {id, name} directory. No partial matching."""
    if not name:
        return None
    for entry in entries:
        if entry.name == name:
            return entry.id
    return None


def _id_order(record):
    """Numeric ids first, in numeric order, then any other ids as text, then records without one."""
    record_id = getattr(record, 'id', None)
    if record_id is None:
        return (2, 0, '')
    try:
        return (0, int(record_id), '')
    except (TypeError, ValueError):
        return (1, 0, str(record_id))


class RateResolver:
    """
    Resolves per-ton rates against a MasterData snapshot.

    Rate records are expected to expose rate_party_type, rate_party_id,
    material_type_id, pickup_location_id, drop_off_location_id,
    effective_from, effective_to and total_rate_per_ton.
    """

    def __init__(self, master_data):
        self.master_data = master_data

    def find_rate(self, party_type, party_name, material, pickup_place, drop_off_place, trip_date):
        party_type = RatePartyType(party_type)
        party_id = lookup_id(self.master_data.party_directory(party_type), party_name)
        material_type_id = lookup_id(self.master_data.material_types.get(), material)
        pickup_location_id = lookup_id(self.master_data.site_locations.get(), pickup_place)
        drop_off_location_id = lookup_id(self.master_data.site_locations.get(), drop_off_place)
        if None in (party_id, material_type_id, pickup_location_id, drop_off_location_id):
            logger.debug(
                "No %s rate for %r: unresolved party/material/location (%s, %s, %s, %s)",
                party_type.value, party_name, party_id, material_type_id, pickup_location_id, drop_off_location_id,
            )
            return ZERO

        trip_date = as_date(trip_date)
        if trip_date is None:
            return ZERO

        candidates = []
        for record in self.master_data.material_rates.get():
            if record.rate_party_type != party_type:
                continue
            if (record.rate_party_id, record.material_type_id, record.pickup_location_id, record.drop_off_location_id) != \
                    (party_id, material_type_id, pickup_location_id, drop_off_location_id):
                continue
            effective_from = as_date(record.effective_from)
            effective_to = as_date(record.effective_to)
            if effective_from is None or effective_from > trip_date:
                continue
            if effective_to is not None and effective_to < trip_date:
                continue
            candidates.append((effective_from, record))

        if not candidates:
            logger.debug("No %s rate record in effect on %s for %r", party_type.value, trip_date, party_name)
            return ZERO

        # max() keeps the first maximal item, so ordering by id first breaks ties on the smallest id
        candidates.sort(key=lambda pair: _id_order(pair[1]))
        _, latest = max(candidates, key=lambda pair: pair[0])
        return to_decimal(latest.total_rate_per_ton)

    def rate_for(self, trip, party_type):
        party_type = RatePartyType(party_type)
        if getattr(trip, 'rate_override_enabled', False):
            override = RateOverride.coerce(getattr(trip, 'rate_override', None))
            if override is not None and override.rate_party_type == party_type:
                return to_decimal(override.total_rate_per_ton)
        return self.find_rate(
            party_type,
            getattr(trip, PARTY_NAME_FIELDS[party_type], ''),
            trip.material,
            trip.pickup_place,
            trip.drop_off_place,
            trip.date,
        )

    def resolve(self, trip):
        net_weight = non_negative(getattr(trip, 'net_weight', None))
        rates = {party_type: self.rate_for(trip, party_type) for party_type in RatePartyType}

        revenue = rates[RatePartyType.VENDOR_CUSTOMER] * net_weight
        material_cost = rates[RatePartyType.MINE_QUARRY] * net_weight
        transport_cost = rates[RatePartyType.TRANSPORT_OWNER] * net_weight
        royalty_cost = rates[RatePartyType.ROYALTY_OWNER] * net_weight
        profit = revenue - (material_cost + transport_cost + royalty_cost)

        return MoneyFields(
            revenue=revenue,
            material_cost=material_cost,
            transport_cost=transport_cost,
            royalty_cost=royalty_cost,
            profit=profit,
            rates=rates,
        )
