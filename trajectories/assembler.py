"""
Feature assembler.

Merges partition results into one GeoJSON FeatureCollection:
    - partitions in plan order, rows in engine order, no global re-sort
    - properties: every projected column except geometry
    - 64-bit integer columns become decimal strings, timestamps ISO 8601
    - ids carry the partition's date tag; for Origin/Destination so does the
      trajectory value, so equal numbers from different releases stay apart
    - derived properties: locatedIn (continent) and, for Origin/Destination,
      plasticCode
    - output truncated at the effective limit

Exports:
    FeatureAssembler: PartitionResults -> FeatureCollection
    BIGINT_TYPES: Engine type names emitted as strings
"""

import json
import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from shapely.errors import GEOSException
from shapely.geometry import shape

from util_logger import LoggerFactory, ComponentType

from .geocoder import ContinentRegistry, UNKNOWN
from .models import (
    CollectionContext,
    FeatureCollection,
    Link,
    PartitionResult,
    PlasticCode,
    QueryIntent,
    TrajectoryRow,
)

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "FeatureAssembler")

BIGINT_TYPES = frozenset({"BIGINT", "UBIGINT", "HUGEINT", "UHUGEINT"})
PARQUET_MEDIA_TYPE = "application/vnd.apache.parquet"


def to_json_value(value: Any, column_type: str) -> Any:
    """Normalize one engine value for the JSON body."""
    if value is None:
        return None
    if column_type in BIGINT_TYPES:
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def iso_date(value: Any) -> Optional[str]:
    """YYYY-MM-DD of a timestamp value, or None when it has none."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    if isinstance(value, str) and len(value) >= 10:
        return value[:10]
    return None


class FeatureAssembler:
    """
    Builds the response collection of one request.

    Args:
        geocoder: Continent registry for locatedIn
        risk_threshold: RI above which plasticCode is HIGH_RISK
    """

    def __init__(self, geocoder: Optional[ContinentRegistry] = None, risk_threshold: float = 0.1):
        self.geocoder = geocoder or ContinentRegistry()
        self.risk_threshold = risk_threshold

    def assemble(
        self,
        results: List[PartitionResult],
        intent: QueryIntent,
        limit: Optional[int] = None,
        warnings: Optional[List[str]] = None,
    ) -> FeatureCollection:
        tagged = intent in (QueryIntent.ORIGIN, QueryIntent.DESTINATION)
        features: List[Dict[str, Any]] = []

        for result in results:
            if limit is not None and len(features) >= limit:
                break
            if not result.rows:
                continue

            # Date tag of this partition's result set
            iso_time = iso_date(result.rows[0].time) or result.key
            types = dict(zip(result.columns, result.column_types))

            for row in result.rows:
                if limit is not None and len(features) >= limit:
                    break
                features.append(self._feature(row, result.columns, types, iso_time, tagged))

        links = [
            Link(
                href=result.location,
                rel="data",
                title=f"GeoParquet file {result.key}",
                type=PARQUET_MEDIA_TYPE,
            )
            for result in results
        ]

        logger.debug(f"Assembled {len(features)} features from {len(results)} partitions")
        return FeatureCollection(
            features=features,
            links=links,
            context=CollectionContext(
                returned=len(features),
                limit=limit if limit is not None else -1,
            ),
            warnings=warnings or None,
        )

    def _feature(
        self,
        row: TrajectoryRow,
        columns: List[str],
        types: Dict[str, str],
        iso_time: str,
        tagged: bool,
    ) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        for column in columns:
            if column == "geometry":
                continue
            properties[column] = to_json_value(getattr(row, column), types.get(column, ""))

        feature_id = f"{iso_time}_{row.trajectory}_{row.obs}"
        if tagged:
            properties["trajectory"] = f"{iso_time}_{row.trajectory}"

        geometry = json.loads(row.geometry) if row.geometry else None
        properties["locatedIn"] = self._locate(geometry)
        if tagged:
            properties["plasticCode"] = self.plastic_code(row.RI).value

        return {
            "type": "Feature",
            "id": feature_id,
            "properties": properties,
            "geometry": geometry,
        }

    def plastic_code(self, risk_index: Any) -> PlasticCode:
        if risk_index is not None and float(risk_index) > self.risk_threshold:
            return PlasticCode.HIGH_RISK
        return PlasticCode.LOW_RISK

    def _locate(self, geometry: Optional[Dict[str, Any]]) -> str:
        """Continent of the geometry's representative point."""
        if not geometry:
            return UNKNOWN
        try:
            geom = shape(geometry)
            if geom.is_empty:
                return UNKNOWN
            point = geom.representative_point()
        except (GEOSException, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Cannot derive a representative point: {e}")
            return UNKNOWN
        return self.geocoder.locate(point.x, point.y)
