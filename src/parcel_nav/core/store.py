from __future__ import annotations

import logging
from typing import Callable, Dict, FrozenSet, Iterator, Optional

from parcel_nav.core.errors import DataLoadFailure
from parcel_nav.core.models import Parcel
from parcel_nav.geo.parcels_io import parcels_from_geojson, read_feature_collection
from parcel_nav.providers.http import HTTPClient

log = logging.getLogger(__name__)


class ParcelStore:
    """
    Parcels loaded once at startup, read-only afterwards.

    A failed load leaves the store empty (``loaded`` stays False); callers
    use that to disable search.
    """

    def __init__(self, id_field: str = "parcel_num", acreage_field: str = "acreage"):
        self.id_field = id_field
        self.acreage_field = acreage_field
        self._parcels: Dict[str, Parcel] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, source: str, http: Optional[HTTPClient] = None) -> FrozenSet[Parcel]:
        if self._loaded:
            raise DataLoadFailure("Parcel store is already loaded")

        data = read_feature_collection(source, http=http)
        parcels = parcels_from_geojson(data, id_field=self.id_field, acreage_field=self.acreage_field)

        by_id: Dict[str, Parcel] = {}
        for p in parcels:
            if p.parcel_id in by_id:
                raise DataLoadFailure(f"Duplicate parcel identifier: {p.parcel_id}")
            by_id[p.parcel_id] = p

        self._parcels = by_id
        self._loaded = True
        log.info("Loaded %d parcel(s) from %s", len(by_id), source)
        return frozenset(by_id.values())

    def find_by_id(self, identifier: str) -> Optional[Parcel]:
        return self._parcels.get(identifier)

    def iter_parcels(self) -> Iterator[Parcel]:
        # fresh generator per call, so traversals are restartable
        return (p for p in self._parcels.values())

    __iter__ = iter_parcels

    def for_each(self, visitor: Callable[[Parcel], None]) -> None:
        for p in self.iter_parcels():
            visitor(p)

    def __len__(self) -> int:
        return len(self._parcels)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._parcels
