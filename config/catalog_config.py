"""
Partition catalog configuration.

Describes which GeoParquet partitions exist: the cartesian product of the
configured years x months (x days) and the template that turns one date
into a file location.

Exports:
    CatalogConfig: Pydantic model for catalog settings
"""

import os
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .defaults import CatalogDefaults, parse_int_list


class CatalogConfig(BaseModel):
    """
    Partition catalog settings.

    When `days` is empty the catalog has monthly granularity (keys
    `YYYY-MM`), otherwise daily granularity (keys `YYYY-MM-DD`).

    The location template is formatted with the unpadded integers
    `year`, `month`, `day` and the zero-padded partition `key`.
    """

    years: List[int] = Field(
        default_factory=lambda: list(CatalogDefaults.YEARS),
        min_length=1,
        description="Release years with data"
    )
    months: List[int] = Field(
        default_factory=lambda: list(CatalogDefaults.MONTHS),
        min_length=1,
        description="Release months (1-12)"
    )
    days: List[int] = Field(
        default_factory=lambda: list(CatalogDefaults.DAYS),
        description="Release days (1-31); empty for monthly partitions"
    )
    location_template: str = Field(
        default=CatalogDefaults.LOCATION_TEMPLATE,
        description="URL or path template for one partition"
    )
    default_partition: Optional[str] = Field(
        default=None,
        description="Partition key served by /tracks (first key when unset)"
    )

    @field_validator("months")
    @classmethod
    def validate_months(cls, v: List[int]) -> List[int]:
        bad = [m for m in v if not 1 <= m <= 12]
        if bad:
            raise ValueError(f"months must be within 1-12, got {bad}")
        return sorted(set(v))

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        bad = [d for d in v if not 1 <= d <= 31]
        if bad:
            raise ValueError(f"days must be within 1-31, got {bad}")
        return sorted(set(v))

    @field_validator("years")
    @classmethod
    def validate_years(cls, v: List[int]) -> List[int]:
        bad = [y for y in v if not 1000 <= y <= 9999]
        if bad:
            raise ValueError(f"years must have 4 digits, got {bad}")
        return sorted(set(v))

    @classmethod
    def from_environment(cls) -> "CatalogConfig":
        """
        Load catalog configuration from environment variables.

        Environment Variables:
        ---------------------
        PARTITION_YEARS: Comma-separated years (default: "2010")
        PARTITION_MONTHS: Comma-separated months (default: "1,...,12")
        PARTITION_DAYS: Comma-separated days, empty for monthly (default: "1,8,15,22")
        PARTITION_LOCATION_TEMPLATE: Location template (default: EDITO bucket)
        DEFAULT_PARTITION: Partition key for /tracks (default: first key)
        """
        def _ints(name: str, default: List[int]) -> List[int]:
            raw = os.environ.get(name)
            if raw is None:
                return list(default)
            return parse_int_list(raw)

        return cls(
            years=_ints("PARTITION_YEARS", CatalogDefaults.YEARS),
            months=_ints("PARTITION_MONTHS", CatalogDefaults.MONTHS),
            days=_ints("PARTITION_DAYS", CatalogDefaults.DAYS),
            location_template=os.environ.get("PARTITION_LOCATION_TEMPLATE", CatalogDefaults.LOCATION_TEMPLATE),
            default_partition=os.environ.get("DEFAULT_PARTITION") or None,
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration dictionary."""
        return {
            "years": self.years,
            "months": self.months,
            "days": self.days,
            "location_template": self.location_template,
            "default_partition": self.default_partition,
        }


__all__ = ["CatalogConfig"]
