"""
Shared fixtures: workflow actors, in-memory trips and master data, and
logged-in API clients backed by the test database.
"""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.contrib.auth.models import Group, User
from django.test import Client

from trips.constants import RatePartyType, Role, TripStatus
from trips.directories import MasterData
from trips.models import MaterialRate, MaterialType, RateParty, SiteLocation, Trip
from trips.services import TripService
from trips.workflow import Actor

from tests.factories import entry, rate_record

TRIP_DATE = date(2024, 6, 15)


# --- Actors ---

@pytest.fixture
def admin():
    return Actor(name='Anita Admin', role=Role.ADMIN)


@pytest.fixture
def accountant():
    return Actor(name='Arun Accounts', role=Role.ACCOUNTANT)


@pytest.fixture
def pickup():
    return Actor(name='Ravi Pickup', role=Role.PICKUP_SUPERVISOR, contact='98400 11111')


@pytest.fixture
def dropoff():
    return Actor(name='Divya Dropoff', role=Role.DROPOFF_SUPERVISOR)


@pytest.fixture
def guest():
    return Actor(name='', role=Role.GUEST)


# --- In-memory trips and master data ---

@pytest.fixture
def make_trip():
    """Unsaved Trip with an id, enough for the pure workflow and rate code."""
    def factory(**fields):
        values = {
            'id': 7,
            'date': TRIP_DATE,
            'status': TripStatus.PENDING_UPLOAD,
            'created_by': 'Ravi Pickup',
            'customer': 'Sri Builders',
            'quarry_name': 'Hill Quarry',
            'transporter_name': 'Fast Movers',
            'royalty_owner_name': 'Crown Royalty',
            'material': 'M-Sand',
            'pickup_place': 'Hill Quarry Yard',
            'drop_off_place': 'City Site',
            'invoice_dc_number': 'INV-101',
            'gross_weight': Decimal('25.00'),
            'empty_weight': Decimal('15.00'),
            'net_weight': Decimal('10.00'),
        }
        values.update(fields)
        return Trip(**values)
    return factory


@pytest.fixture
def directory_lists():
    return {
        'parties': {
            RatePartyType.VENDOR_CUSTOMER: [entry(10, 'Sri Builders')],
            RatePartyType.MINE_QUARRY: [entry(20, 'Hill Quarry')],
            RatePartyType.TRANSPORT_OWNER: [entry(30, 'Fast Movers')],
            RatePartyType.ROYALTY_OWNER: [entry(40, 'Crown Royalty')],
        },
        'site_locations': [entry(1, 'Hill Quarry Yard'), entry(2, 'City Site')],
        'material_types': [entry(1, 'M-Sand')],
    }


@pytest.fixture
def master_data(directory_lists):
    """Four table rates in effect on the trip date: 500/200/100/50 per ton."""
    rates = [
        rate_record(1, RatePartyType.VENDOR_CUSTOMER, 10, '500', date(2024, 1, 1)),
        rate_record(2, RatePartyType.MINE_QUARRY, 20, '200', date(2024, 1, 1)),
        rate_record(3, RatePartyType.TRANSPORT_OWNER, 30, '100', date(2024, 1, 1)),
        rate_record(4, RatePartyType.ROYALTY_OWNER, 40, '50', date(2024, 1, 1)),
    ]
    return MasterData.from_lists(material_rates=rates, **directory_lists)


# --- Database fixtures ---

@pytest.fixture
def rate_table(db):
    """The same four rates as `master_data`, stored as master-data rows."""
    pickup_site = SiteLocation.objects.create(name='Hill Quarry Yard')
    drop_site = SiteLocation.objects.create(name='City Site')
    sand = MaterialType.objects.create(name='M-Sand')
    parties = {
        RatePartyType.VENDOR_CUSTOMER: ('Sri Builders', '500'),
        RatePartyType.MINE_QUARRY: ('Hill Quarry', '200'),
        RatePartyType.TRANSPORT_OWNER: ('Fast Movers', '100'),
        RatePartyType.ROYALTY_OWNER: ('Crown Royalty', '50'),
    }
    rates = {}
    for party_type, (name, total) in parties.items():
        party = RateParty.objects.create(party_type=party_type, name=name)
        rates[party_type] = MaterialRate.objects.create(
            rate_party_type=party_type,
            rate_party=party,
            material_type=sand,
            pickup_location=pickup_site,
            drop_off_location=drop_site,
            rate_per_ton=Decimal(total),
            effective_from=date(2024, 1, 1),
        )
    return SimpleNamespace(pickup_site=pickup_site, drop_site=drop_site, sand=sand, rates=rates)


def make_user(username, group_name=None, **extra):
    user = User.objects.create_user(username=username, password='secret', **extra)
    if group_name:
        group, _ = Group.objects.get_or_create(name=group_name)
        user.groups.add(group)
    return user


@pytest.fixture
def users(db):
    return SimpleNamespace(
        admin=make_user('anita', 'Admin', first_name='Anita', last_name='Admin'),
        pickup=make_user('ravi', 'Pickup Supervisor', first_name='Ravi', last_name='Pickup'),
        dropoff=make_user('divya', 'Dropoff Supervisor', first_name='Divya', last_name='Dropoff'),
        nobody=make_user('visitor'),
    )


@pytest.fixture
def login():
    def factory(user):
        client = Client()
        client.force_login(user)
        return client
    return factory


@pytest.fixture
def trip_payload():
    return {
        'date': '2024-06-15',
        'customer': 'Sri Builders',
        'quarry_name': 'Hill Quarry',
        'transporter_name': 'Fast Movers',
        'royalty_owner_name': 'Crown Royalty',
        'material': 'M-Sand',
        'pickup_place': 'Hill Quarry Yard',
        'drop_off_place': 'City Site',
        'invoice_dc_number': 'INV-101',
        'gross_weight': '25',
        'empty_weight': '15',
    }


@pytest.fixture
def stored_trip(rate_table, trip_payload, pickup):
    """A priced trip in 'pending upload', entered by the pick-up supervisor."""
    return TripService().create_trip(trip_payload, pickup)
