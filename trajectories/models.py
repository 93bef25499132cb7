"""
Trajectory API models.

Request, plan and response models shared by the parser, planner, executor
and assembler. Everything here is created and discarded within one request.

Exports:
    TRAJECTORY_COLUMNS: Full projection of a partition query
    MINIMAL_COLUMNS: Projection used when minimalist=true
    QueryIntent: Endpoint kind (tracks, track by id, origin, destination)
    PlasticCode: Risk class derived from the RI field
    QuerySpec: Validated request parameters
    PartitionQuery: One partition's executable query
    QueryPlan: All partition queries of one request
    TrajectoryRow: Fixed-column engine row
    PartitionResult: Rows returned by one partition query
    Link, QueryStats, CollectionContext, FeatureCollection: Response models
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from exceptions import ContractViolationError
from infrastructure.duckdb_query import QueryBuilder


TRAJECTORY_COLUMNS: Tuple[str, ...] = (
    "trajectory",
    "obs",
    "CI",
    "EEZ",
    "MPW",
    "RI",
    "RI_annual",
    "age",
    "distcoast",
    "time",
    "travelled_distance",
    "z",
    "geometry",
)

MINIMAL_COLUMNS: Tuple[str, ...] = ("trajectory", "obs", "time", "RI", "geometry")


class QueryIntent(str, Enum):
    """Endpoint kind; decides predicate shape and partition selection."""
    TRACKS = "tracks"
    TRACK_BY_ID = "track_by_id"
    ORIGIN = "origin"
    DESTINATION = "destination"


class PlasticCode(str, Enum):
    """Risk class of an observation, from its RI (risk index) field."""
    HIGH_RISK = "HIGH_RISK"
    LOW_RISK = "LOW_RISK"


# ============================================================================
# REQUEST
# ============================================================================

class QuerySpec(BaseModel):
    """
    Validated request parameters.

    polygon is WKT built from bbox or taken verbatim from intersects.
    time_selector is the leading YYYY-MM or YYYY-MM-DD of month/datetime.
    """
    model_config = ConfigDict(frozen=True)

    limit: Optional[int] = Field(default=None, ge=1)
    polygon: Optional[str] = None
    time_selector: Optional[str] = None
    include_trajectory: bool = False
    order_by: Optional[str] = None
    minimalist: bool = False

    @property
    def columns(self) -> Tuple[str, ...]:
        return MINIMAL_COLUMNS if self.minimalist else TRAJECTORY_COLUMNS


# ============================================================================
# PLAN
# ============================================================================

@dataclass(frozen=True)
class PartitionQuery:
    """A single partition's query; location and user values are bound parameters."""
    key: str
    location: str
    builder: QueryBuilder = field(compare=False)

    @property
    def sql(self) -> str:
        return self.builder.build()[0]

    @property
    def params(self) -> List[Any]:
        return self.builder.build()[1]


@dataclass
class QueryPlan:
    """
    Partition queries of one request, in plan order.

    explicit is True when the request named exactly one partition; an
    unavailable explicit partition is a client error instead of a skip.
    """
    intent: QueryIntent
    queries: List[PartitionQuery]
    columns: Tuple[str, ...]
    limit: Optional[int]
    explicit: bool = False
    selector: Optional[str] = None


# ============================================================================
# ENGINE ROWS
# ============================================================================

@dataclass(frozen=True)
class TrajectoryRow:
    """One observation of one trajectory. Columns outside the projection stay None."""
    trajectory: Any = None
    obs: Any = None
    CI: Any = None
    EEZ: Any = None
    MPW: Any = None
    RI: Any = None
    RI_annual: Any = None
    age: Any = None
    distcoast: Any = None
    time: Any = None
    travelled_distance: Any = None
    z: Any = None
    geometry: Optional[str] = None

    @classmethod
    def from_values(cls, columns: Sequence[str], values: Sequence[Any]) -> "TrajectoryRow":
        unknown = set(columns) - _ROW_FIELDS
        if unknown:
            raise ContractViolationError(f"Unexpected columns in trajectory row: {sorted(unknown)}")
        return cls(**dict(zip(columns, values)))


_ROW_FIELDS = frozenset(f.name for f in fields(TrajectoryRow))


@dataclass
class PartitionResult:
    """Rows of one partition query, with the engine's column type names."""
    key: str
    location: str
    columns: List[str]
    column_types: List[str]
    rows: List[TrajectoryRow] = field(default_factory=list)


# ============================================================================
# RESPONSE
# ============================================================================

class Link(BaseModel):
    """Web link (RFC 8288) to a queried partition file."""
    href: str
    rel: str
    type: Optional[str] = None
    title: Optional[str] = None


class QueryStats(BaseModel):
    processingTime: float = 0.0


class CollectionContext(BaseModel):
    """returned is the feature count; limit is -1 when no limit applied."""
    returned: int
    limit: int
    query: QueryStats = Field(default_factory=QueryStats)


class FeatureCollection(BaseModel):
    """GeoJSON FeatureCollection returned by every query endpoint."""
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[Dict[str, Any]]
    links: List[Link] = Field(default_factory=list)
    context: CollectionContext
    warnings: Optional[List[str]] = None

    def to_geojson(self) -> Dict[str, Any]:
        # Null properties inside features are kept; only top-level warnings is optional
        body = self.model_dump()
        if body["warnings"] is None:
            del body["warnings"]
        for link in body["links"]:
            for name in [k for k, v in link.items() if v is None]:
                del link[name]
        return body
