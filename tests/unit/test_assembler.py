"""
Feature assembler tests - ids, property typing, derived fields, limit.
"""

import math
from datetime import datetime
from decimal import Decimal

import pytest

from trajectories.assembler import FeatureAssembler, iso_date, to_json_value
from trajectories.models import PartitionResult, PlasticCode, QueryIntent, TrajectoryRow, TRAJECTORY_COLUMNS

from tests.factories.fakes import COLUMN_TYPES, make_partition_rows


def partition_result(key, rows, columns=TRAJECTORY_COLUMNS):
    columns = list(columns)
    return PartitionResult(
        key=key,
        location=f"/data/{key}.parquet",
        columns=columns,
        column_types=[COLUMN_TYPES[c] for c in columns],
        rows=[TrajectoryRow.from_values(columns, [row[c] for c in columns]) for row in rows],
    )


@pytest.fixture
def assembler():
    return FeatureAssembler(risk_threshold=0.1)


class TestJsonValues:

    def test_bigint_becomes_string(self):
        assert to_json_value(12345678901234, "BIGINT") == "12345678901234"

    def test_timestamp_is_iso(self):
        assert to_json_value(datetime(2010, 1, 2, 3, 4), "TIMESTAMP") == "2010-01-02T03:04:00"

    def test_decimal_becomes_float(self):
        assert to_json_value(Decimal("1.5"), "DECIMAL(4,1)") == 1.5

    def test_nan_becomes_null(self):
        assert to_json_value(math.nan, "DOUBLE") is None

    def test_null_stays_null(self):
        assert to_json_value(None, "BIGINT") is None

    def test_iso_date(self):
        assert iso_date(datetime(2010, 1, 8, 12)) == "2010-01-08"
        assert iso_date("2010-01-08T00:00:00") == "2010-01-08"
        assert iso_date(None) is None


class TestTracksAssembly:

    def test_feature_shape(self, assembler):
        result = partition_result("2010-01", make_partition_rows(1, 2, "2010-01-01"))
        body = assembler.assemble([result], QueryIntent.TRACKS, limit=10).to_geojson()

        assert body["type"] == "FeatureCollection"
        feature = body["features"][1]
        assert feature["type"] == "Feature"
        assert feature["id"] == "2010-01-01_0_1"
        assert feature["geometry"]["type"] == "Point"
        assert feature["geometry"]["coordinates"] == pytest.approx([2.1, 45.0])
        props = feature["properties"]
        assert "geometry" not in props
        assert props["trajectory"] == "0"
        assert props["obs"] == "1"
        assert props["time"] == "2010-01-02T00:00:00"
        assert props["RI"] == 0.5
        assert props["locatedIn"] == "Europe"
        assert "plasticCode" not in props

    def test_context_and_links(self, assembler):
        result = partition_result("2010-01", make_partition_rows(1, 2, "2010-01-01"))
        body = assembler.assemble([result], QueryIntent.TRACKS, limit=10).to_geojson()
        assert body["context"]["returned"] == 2
        assert body["context"]["limit"] == 10
        assert body["links"] == [{
            "href": "/data/2010-01.parquet",
            "rel": "data",
            "type": "application/vnd.apache.parquet",
            "title": "GeoParquet file 2010-01",
        }]
        assert "warnings" not in body

    def test_no_limit_is_minus_one(self, assembler):
        result = partition_result("2010-01", make_partition_rows(1, 1, "2010-01-01"))
        body = assembler.assemble([result], QueryIntent.TRACK_BY_ID).to_geojson()
        assert body["context"]["limit"] == -1

    def test_minimalist_properties(self, assembler):
        columns = ("trajectory", "obs", "time", "RI", "geometry")
        result = partition_result("2010-01", make_partition_rows(1, 1, "2010-01-01"), columns)
        props = assembler.assemble([result], QueryIntent.TRACKS).features[0]["properties"]
        assert set(props) == {"trajectory", "obs", "time", "RI", "locatedIn"}

    def test_null_properties_are_kept(self, assembler):
        rows = make_partition_rows(1, 1, "2010-01-01")
        rows[0]["EEZ"] = None
        body = assembler.assemble([partition_result("2010-01", rows)], QueryIntent.TRACKS).to_geojson()
        assert body["features"][0]["properties"]["EEZ"] is None

    def test_missing_geometry_is_unknown(self, assembler):
        rows = make_partition_rows(1, 1, "2010-01-01")
        rows[0]["geometry"] = None
        feature = assembler.assemble([partition_result("2010-01", rows)], QueryIntent.TRACKS).features[0]
        assert feature["geometry"] is None
        assert feature["properties"]["locatedIn"] == "Unknown"


class TestTaggedAssembly:

    def test_ids_carry_partition_date(self, assembler):
        results = [
            partition_result("2010-01", make_partition_rows(1, 1, "2010-01-08")),
            partition_result("2010-02", make_partition_rows(1, 1, "2010-02-15")),
        ]
        features = assembler.assemble(results, QueryIntent.DESTINATION).features
        assert [f["id"] for f in features] == ["2010-01-08_0_0", "2010-02-15_0_0"]
        assert [f["properties"]["trajectory"] for f in features] == ["2010-01-08_0", "2010-02-15_0"]

    def test_partition_order_is_kept(self, assembler):
        results = [
            partition_result("2010-02", make_partition_rows(1, 1, "2010-02-01")),
            partition_result("2010-01", make_partition_rows(1, 1, "2010-01-01")),
        ]
        features = assembler.assemble(results, QueryIntent.ORIGIN).features
        assert [f["id"][:7] for f in features] == ["2010-02", "2010-01"]

    @pytest.mark.parametrize("risk,code", [(0.5, "HIGH_RISK"), (0.1, "LOW_RISK"), (0.0, "LOW_RISK")])
    def test_plastic_code(self, assembler, risk, code):
        result = partition_result("2010-01", make_partition_rows(1, 1, "2010-01-01", risk=risk))
        feature = assembler.assemble([result], QueryIntent.ORIGIN).features[0]
        assert feature["properties"]["plasticCode"] == code

    def test_missing_risk_is_low(self, assembler):
        assert assembler.plastic_code(None) is PlasticCode.LOW_RISK

    def test_limit_truncates_across_partitions(self, assembler):
        results = [
            partition_result("2010-01", make_partition_rows(2, 2, "2010-01-01")),
            partition_result("2010-02", make_partition_rows(2, 2, "2010-02-01")),
        ]
        collection = assembler.assemble(results, QueryIntent.DESTINATION, limit=5)
        assert collection.context.returned == 5
        assert collection.features[-1]["id"] == "2010-02-01_0_0"
        assert len(collection.links) == 2

    def test_empty_partition_has_link_only(self, assembler):
        results = [partition_result("2010-01", []), partition_result("2010-02", make_partition_rows(1, 1, "2010-02-01"))]
        collection = assembler.assemble(results, QueryIntent.DESTINATION)
        assert collection.context.returned == 1
        assert len(collection.links) == 2

    def test_warnings(self, assembler):
        body = assembler.assemble([], QueryIntent.ORIGIN, warnings=["Partition 2010-01 failed: x"]).to_geojson()
        assert body["features"] == []
        assert body["warnings"] == ["Partition 2010-01 failed: x"]
