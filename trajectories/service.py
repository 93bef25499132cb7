"""
Trajectory service layer.

Business logic orchestration for the query endpoints:

    raw params -> parse_query_params -> QueryPlanner.plan
               -> PartitionExecutor.filter_available
               -> ResultCache lookup
               -> PartitionExecutor.execute -> FeatureAssembler.assemble

Exports:
    TrajectoryService: One method per endpoint, returning GeoJSON dicts
    build_service: Wire the service from AppConfig

Dependencies:
    trajectories.catalog: PartitionCatalog
    trajectories.planner: QueryPlanner
    trajectories.executor: PartitionExecutor
    trajectories.assembler: FeatureAssembler
    infrastructure: DuckDB repository, partition probe, result cache
"""

import time
import uuid
from typing import Any, Dict, Mapping, Optional

from config import AppConfig, ServiceConfig
from infrastructure.duckdb import DuckDBRepository, IDuckDBRepository
from infrastructure.partition_probe import IPartitionProbe, PartitionProbe
from infrastructure.result_cache import NullResultCache, ResultCache, create_result_cache
from util_logger import LoggerFactory, ComponentType, log_exceptions

from .assembler import FeatureAssembler
from .catalog import PartitionCatalog, build_catalog
from .executor import PartitionExecutor
from .geocoder import ContinentRegistry
from .models import QueryIntent
from .params import parse_query_params, parse_track_id
from .planner import QueryPlanner, query_fingerprint


class TrajectoryService:
    """
    Orchestrates one query request end to end.

    The catalog, repository, probe and cache are shared, read-only
    collaborators; everything else lives for one request.
    """

    def __init__(
        self,
        catalog: PartitionCatalog,
        repository: IDuckDBRepository,
        probe: Optional[IPartitionProbe],
        config: ServiceConfig,
        cache: Optional[ResultCache] = None,
        geocoder: Optional[ContinentRegistry] = None,
    ):
        self.catalog = catalog
        self.repository = repository
        self.probe = probe
        self.config = config
        self.cache = cache or NullResultCache()
        self.planner = QueryPlanner(catalog, config)
        self.executor = PartitionExecutor(repository, probe, config)
        self.assembler = FeatureAssembler(geocoder, config.plastic_risk_threshold)

    # ========================================================================
    # ENDPOINTS
    # ========================================================================

    def tracks(self, raw: Mapping[str, str], request_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query(QueryIntent.TRACKS, raw, request_id=request_id)

    def track_by_id(self, track_id: str, raw: Mapping[str, str], request_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query(QueryIntent.TRACK_BY_ID, raw, track_id=track_id, request_id=request_id)

    def origin(self, raw: Mapping[str, str], request_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query(QueryIntent.ORIGIN, raw, request_id=request_id)

    def destination(self, raw: Mapping[str, str], request_id: Optional[str] = None) -> Dict[str, Any]:
        return self.query(QueryIntent.DESTINATION, raw, request_id=request_id)

    def query(
        self,
        intent: QueryIntent,
        raw: Mapping[str, str],
        track_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run one query request.

        Args:
            intent: Endpoint kind
            raw: Query-string parameters
            track_id: Path parameter of /tracks/{id}
            request_id: Correlation id for logs

        Returns:
            GeoJSON FeatureCollection dict

        Raises:
            BusinessLogicError subclasses (mapped to HTTP errors by the API layer)
        """
        started = time.perf_counter()
        request_id = request_id or uuid.uuid4().hex[:12]

        spec = parse_query_params(raw)
        log = LoggerFactory.create_with_context(
            ComponentType.SERVICE, "TrajectoryService",
            request_id=request_id, intent=intent.value, selector=spec.time_selector,
        )

        parsed_id = parse_track_id(track_id) if intent is QueryIntent.TRACK_BY_ID else None
        plan = self.planner.plan(intent, spec, track_id=parsed_id)
        queries = self.executor.filter_available(plan.queries, explicit=plan.explicit, selector=plan.selector)
        plan.queries = queries

        cache_key = self.cache.key_for(query_fingerprint(plan)) if self.cache.enabled else None
        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                cached["context"]["query"]["processingTime"] = round(time.perf_counter() - started, 3)
                log.info(f"Cache hit {cache_key}")
                return cached

        log.info(
            f"Querying {len(queries)} partitions",
            extra={"custom_dimensions": {"partition_count": len(queries)}},
        )
        outcome = self.executor.execute(queries)
        collection = self.assembler.assemble(
            outcome.results, intent, limit=plan.limit, warnings=outcome.warnings
        )
        collection.context.query.processingTime = round(time.perf_counter() - started, 3)
        body = collection.to_geojson()

        if cache_key:
            self.cache.put(cache_key, body)

        log.info(
            f"Returned {collection.context.returned} features "
            f"in {collection.context.query.processingTime}s"
        )
        return body

    # ========================================================================
    # CATALOG & HEALTH
    # ========================================================================

    def list_partitions(self) -> Dict[str, Any]:
        return {
            "granularity": self.catalog.granularity.value,
            "default": self.catalog.default_key,
            "count": len(self.catalog),
            "partitions": [
                {"key": key, "location": location}
                for key, location in self.catalog.items()
            ],
        }

    def health(self) -> Dict[str, Any]:
        engine = self.repository.health_check()
        return {
            "status": engine.get("status", "unknown"),
            "engine": engine,
            "partitions": len(self.catalog),
            "cache": {"enabled": self.cache.enabled},
        }

    def close(self) -> None:
        """Close the probe client and the DuckDB connection."""
        if self.probe is not None:
            self.probe.close()
        self.repository.close()


@log_exceptions(ComponentType.FACTORY, "build_service")
def build_service(config: AppConfig) -> TrajectoryService:
    """Wire catalog, DuckDB, probe and cache from configuration."""
    catalog = build_catalog(config.catalog)
    repository = DuckDBRepository.instance(config.analytics)
    probe = PartitionProbe(timeout=config.service.probe_timeout_seconds) if config.service.check_partitions else None
    return TrajectoryService(
        catalog=catalog,
        repository=repository,
        probe=probe,
        config=config.service,
        cache=create_result_cache(config.service),
    )
