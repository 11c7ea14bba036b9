"""
Master-data snapshots for rate resolution.

Each directory is a small repository object that loads once and serves the
same list until invalidated. A MasterData bundle is built per request and
handed to whatever needs it; nothing here is module-level state.
"""
import logging

from .constants import RatePartyType
from .models import MaterialRate, MaterialType, RateParty, SiteLocation

logger = logging.getLogger(__name__)


class CachedDirectory:
    def __init__(self, loader, label=''):
        self._loader = loader
        self._items = None
        self.label = label

    @property
    def is_loaded(self):
        return self._items is not None

    def ensure_loaded(self):
        if self._items is None:
            self._items = list(self._loader())
            logger.debug("Loaded %d %s records", len(self._items), self.label or 'directory')

    def get(self):
        self.ensure_loaded()
        return self._items

    def invalidate(self):
        self._items = None


class MasterData:
    """Party, location, material-type and material-rate directories."""

    def __init__(self, parties, site_locations, material_types, material_rates):
        missing = set(RatePartyType) - set(parties)
        if missing:
            raise ValueError(f"Missing party directories: {sorted(missing)}")
        self.parties = dict(parties)
        self.site_locations = site_locations
        self.material_types = material_types
        self.material_rates = material_rates

    def directories(self):
        return [*self.parties.values(), self.site_locations, self.material_types, self.material_rates]

    def party_directory(self, party_type):
        return self.parties[RatePartyType(party_type)].get()

    def ensure_loaded(self):
        for directory in self.directories():
            directory.ensure_loaded()

    def invalidate(self):
        for directory in self.directories():
            directory.invalidate()

    @classmethod
    def from_lists(cls, parties=None, site_locations=(), material_types=(), material_rates=()):
        """Snapshot over in-memory lists, keyed by RatePartyType for parties."""
        parties = parties or {}

        def fixed(items, label):
            items = list(items)
            return CachedDirectory(lambda: items, label)

        return cls(
            parties={t: fixed(parties.get(t, ()), t.value) for t in RatePartyType},
            site_locations=fixed(site_locations, 'site location'),
            material_types=fixed(material_types, 'material type'),
            material_rates=fixed(material_rates, 'material rate'),
        )

    @classmethod
    def from_database(cls):
        def party_loader(party_type):
            return lambda: RateParty.objects.filter(party_type=party_type).only('id', 'name', 'party_type')

        return cls(
            parties={t: CachedDirectory(party_loader(t), t.value) for t in RatePartyType},
            site_locations=CachedDirectory(lambda: SiteLocation.objects.all(), 'site location'),
            material_types=CachedDirectory(lambda: MaterialType.objects.all(), 'material type'),
            material_rates=CachedDirectory(lambda: MaterialRate.objects.all(), 'material rate'),
        )
