"""
Partition catalog.

Immutable mapping of partition keys (zero-padded `YYYY-MM` or `YYYY-MM-DD`)
to partition locations. Keys sort chronologically as strings, which every
range lookup relies on.

Exports:
    PartitionGranularity: MONTHLY or DAILY keys
    PartitionCatalog: Key -> location lookups and range queries
    build_catalog: Build the catalog from CatalogConfig
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from config import CatalogConfig
from exceptions import ConfigurationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.FACTORY, "PartitionCatalog")


class PartitionGranularity(str, Enum):
    MONTHLY = "monthly"
    DAILY = "daily"

    @property
    def key_length(self) -> int:
        return 7 if self is PartitionGranularity.MONTHLY else 10


class PartitionCatalog:
    """
    Read-only partition catalog, built once at startup.

    Usage:
        catalog = build_catalog(config.catalog)
        catalog.location("2010-01-08")
        catalog.resolve("2010-01")          # every day partition of January
        catalog.origin_window("2010-06")    # 5-year walk-back
    """

    def __init__(
        self,
        locations: Mapping[str, str],
        granularity: PartitionGranularity,
        default_key: Optional[str] = None,
    ):
        if not locations:
            raise ConfigurationError("Partition catalog is empty")

        bad = [k for k in locations if len(k) != granularity.key_length]
        if bad:
            raise ConfigurationError(f"Keys {bad} do not match {granularity.value} granularity")

        ordered = dict(sorted(locations.items()))
        self._locations = MappingProxyType(ordered)
        self._keys = tuple(ordered)
        self.granularity = granularity

        if default_key is not None and default_key not in self._locations:
            raise ConfigurationError(f"DEFAULT_PARTITION {default_key} is not in the catalog")
        self.default_key = default_key or self._keys[0]

    @property
    def min_year(self) -> int:
        return int(self._keys[0][:4])

    def location(self, key: str) -> str:
        return self._locations[key]

    def keys(self) -> List[str]:
        return list(self._keys)

    def items(self):
        return self._locations.items()

    def __contains__(self, key: object) -> bool:
        return key in self._locations

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def keys_between(self, start: str, end: str) -> List[str]:
        """
        Keys k with start <= k[:len(start)] and k[:len(end)] <= end, chronological.

        Bounds may be coarser than the keys: keys_between("2009-06", "2010-01")
        on a daily catalog includes every day partition of January 2010.
        """
        return [
            k for k in self._keys
            if start <= k[:len(start)] and k[:len(end)] <= end
        ]

    def resolve(self, selector: str) -> List[str]:
        """
        Keys named by a YYYY-MM or YYYY-MM-DD selector.

        A selector at least as precise as the catalog is truncated to one
        key; a coarser one (month on a daily catalog) names every key in
        that month. Unknown keys resolve to [].
        """
        length = self.granularity.key_length
        if len(selector) >= length:
            key = selector[:length]
            return [key] if key in self._locations else []
        return self.keys_between(selector, selector)

    def origin_window(self, month: str, years: int = 5) -> List[str]:
        """
        Keys of the months [month - years, month], chronological.

        Months below the catalog's minimum year simply have no keys.
        """
        month = month[:7]
        year = int(month[:4])
        start = f"{year - years:04d}{month[4:]}"
        return self.keys_between(start, month)


def build_catalog(config: CatalogConfig) -> PartitionCatalog:
    """
    Cartesian product of years x months (x days) formatted through the
    location template. Touches neither network nor filesystem.
    """
    granularity = PartitionGranularity.DAILY if config.days else PartitionGranularity.MONTHLY
    locations: Dict[str, str] = {}

    for year in config.years:
        for month in config.months:
            for day in (config.days or [1]):
                if granularity is PartitionGranularity.DAILY:
                    key = f"{year:04d}-{month:02d}-{day:02d}"
                else:
                    key = f"{year:04d}-{month:02d}"
                try:
                    locations[key] = config.location_template.format(
                        year=year, month=month, day=day, key=key
                    )
                except (KeyError, IndexError) as e:
                    raise ConfigurationError(
                        f"PARTITION_LOCATION_TEMPLATE has an unknown placeholder: {e}"
                    ) from e

    catalog = PartitionCatalog(locations, granularity, default_key=config.default_partition)
    logger.info(
        f"Partition catalog built: {len(catalog)} {granularity.value} partitions, "
        f"{catalog.keys()[0]} .. {catalog.keys()[-1]}, default {catalog.default_key}"
    )
    return catalog
