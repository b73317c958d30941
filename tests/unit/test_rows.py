"""Unit tests for COPY row building and geometry encoding."""

import struct
from datetime import timedelta

import pytest

from services.address_projector.app.events import (
    AccessAddressDeleted,
    EventEnvelope,
    UnitAddressDeleted,
)
from services.address_projector.app.output.geometry import decode_point, encode_point
from services.address_projector.app.output.rows import (
    ACCESS_ADDRESS_COLUMNS,
    UNIT_ADDRESS_COLUMNS,
    build_access_address_rows,
    build_unit_address_rows,
    optional_text,
)
from shared.utils.errors import DanglingReferenceError, EventFormatError
from tests.fixtures.sample_events import (
    ACCESS_ADDRESS_ID,
    BASE_TIME,
    POST_CODE_ID,
    ROAD_ID,
    UNIT_ADDRESS_ID,
    SampleEventGenerator,
    access_address_created,
    post_code_created,
    road_created,
    sample_id,
    unit_address_created,
    wrap,
)


def load(projection, events):
    for envelope in wrap(events):
        projection.apply(envelope)
    return projection.snapshot()


def as_dict(columns, row):
    return dict(zip(columns, row))


class TestGeometry:
    """EWKB point encoding."""

    def test_round_trip_keeps_east_north_order(self):
        data = encode_point(600000.0, 6200000.0, 25832)

        assert decode_point(data) == (600000.0, 6200000.0, 25832)

    def test_encoding_is_little_endian_ewkb_with_srid(self):
        data = encode_point(1.0, 2.0, 25832)

        assert data[0] == 1
        geometry_type, srid = struct.unpack("<II", data[1:9])
        assert geometry_type == 0x20000001
        assert srid == 25832
        assert struct.unpack("<dd", data[9:25]) == (1.0, 2.0)

    def test_non_finite_coordinates_are_rejected(self):
        with pytest.raises(EventFormatError):
            encode_point(float("nan"), 2.0, 25832)


class TestAccessAddressRows:
    """Denormalized access address rows."""

    def test_row_matches_projection(self, projection):
        snapshot = load(projection, [
            post_code_created(),
            road_created(),
            access_address_created(external_id="AA-1", plot_id="", town_name="Viby"),
        ])

        rows = build_access_address_rows(snapshot, 25832)

        assert len(rows) == 1
        row = as_dict(ACCESS_ADDRESS_COLUMNS, rows[0])
        assert row["id"] == ACCESS_ADDRESS_ID
        assert decode_point(row["coord"]) == (1.0, 2.0, 25832)
        assert row["status"] == "Active"
        assert row["house_number"] == "12"
        assert row["road_name"] == "Main St"
        assert row["road_external_id"] == "R-1"
        assert row["post_district_code"] == "8000"
        assert row["post_district_name"] == "Aarhus"
        assert row["town_name"] == "Viby"
        assert row["access_address_external_id"] == "AA-1"
        assert row["plot_external_id"] is None
        assert row["created"] == BASE_TIME + timedelta(minutes=3)
        assert row["updated"] is None
        assert row["deleted"] is False

    def test_missing_optional_text_is_null(self, projection):
        snapshot = load(projection, SampleEventGenerator.minimal_history())

        row = as_dict(ACCESS_ADDRESS_COLUMNS, build_access_address_rows(snapshot, 25832)[0])

        assert row["town_name"] is None
        assert row["access_address_external_id"] is None
        assert row["plot_external_id"] is None

    def test_tombstones_are_exported(self, projection):
        snapshot = load(projection, SampleEventGenerator.minimal_history() + [
            AccessAddressDeleted(id=ACCESS_ADDRESS_ID),
        ])

        rows = build_access_address_rows(snapshot, 25832)

        assert len(rows) == 1
        assert as_dict(ACCESS_ADDRESS_COLUMNS, rows[0])["deleted"] is True

    def test_dangling_road_is_fatal(self, projection):
        missing_road = sample_id("missing-road")
        snapshot = load(projection, [
            post_code_created(),
            access_address_created(road_id=missing_road),
        ])

        with pytest.raises(DanglingReferenceError) as exc_info:
            build_access_address_rows(snapshot, 25832)

        error = exc_info.value
        assert error.entity_id == ACCESS_ADDRESS_ID
        assert error.reference_type == "Road"
        assert error.reference_id == missing_road

    def test_dangling_post_code_is_fatal(self, projection):
        snapshot = load(projection, [road_created(), access_address_created()])

        with pytest.raises(DanglingReferenceError) as exc_info:
            build_access_address_rows(snapshot, 25832)

        assert exc_info.value.reference_id == POST_CODE_ID


class TestUnitAddressRows:
    """Unit address rows."""

    def test_row_carries_parent_external_id(self, projection):
        snapshot = load(projection, [
            post_code_created(),
            road_created(),
            access_address_created(external_id="AA-1"),
            unit_address_created(floor_name="2", suite_name="th", external_id="UA-1"),
        ])

        row = as_dict(UNIT_ADDRESS_COLUMNS, build_unit_address_rows(snapshot)[0])

        assert row["id"] == UNIT_ADDRESS_ID
        assert row["access_address_id"] == ACCESS_ADDRESS_ID
        assert row["floor_name"] == "2"
        assert row["suite_name"] == "th"
        assert row["unit_address_external_id"] == "UA-1"
        assert row["access_address_external_id"] == "AA-1"

    def test_parent_deleted_still_resolves(self, projection):
        snapshot = load(projection, SampleEventGenerator.minimal_history() + [
            UnitAddressDeleted(id=UNIT_ADDRESS_ID),
            AccessAddressDeleted(id=ACCESS_ADDRESS_ID),
        ])

        row = as_dict(UNIT_ADDRESS_COLUMNS, build_unit_address_rows(snapshot)[0])

        assert row["deleted"] is True
        assert row["access_address_id"] == ACCESS_ADDRESS_ID

    def test_missing_parent_is_fatal(self, projection):
        snapshot = load(projection, [unit_address_created()])

        with pytest.raises(DanglingReferenceError) as exc_info:
            build_unit_address_rows(snapshot)

        assert exc_info.value.entity_type == "UnitAddress"
        assert exc_info.value.reference_id == ACCESS_ADDRESS_ID


def test_optional_text():
    assert optional_text(None) is None
    assert optional_text("") is None
    assert optional_text("x") == "x"


def test_snapshot_rows_ignore_later_events(projection):
    load(projection, SampleEventGenerator.minimal_history())
    snapshot = projection.snapshot()
    projection.apply(EventEnvelope(event=AccessAddressDeleted(id=ACCESS_ADDRESS_ID), timestamp=BASE_TIME, position=99))

    row = as_dict(ACCESS_ADDRESS_COLUMNS, build_access_address_rows(snapshot, 25832)[0])

    assert row["deleted"] is False
