"""
Drift trajectory query core.

Answers spatial/temporal questions over time-partitioned GeoParquet files
of simulated ocean-drift particles: which trajectories pass through an area,
where particles found in an area came from, and where particles released in
an area ended up.

Modules:
    catalog: Partition keys -> file locations
    params: Query-string validation
    planner: Per-partition parameterized SQL
    executor: Existence probe and bounded concurrent fan-out
    assembler: GeoJSON FeatureCollection assembly
    geocoder: Continent point-in-polygon lookup
    service: End-to-end orchestration

Usage:
    from config import get_config
    from trajectories import build_service

    service = build_service(get_config())
    service.destination({"bbox": "-10,30,10,50", "datetime": "2010-01-08"})
"""

from .catalog import PartitionCatalog, PartitionGranularity, build_catalog
from .models import QueryIntent, QuerySpec, PlasticCode
from .service import TrajectoryService, build_service

__all__ = [
    "PartitionCatalog",
    "PartitionGranularity",
    "build_catalog",
    "QueryIntent",
    "QuerySpec",
    "PlasticCode",
    "TrajectoryService",
    "build_service",
]
