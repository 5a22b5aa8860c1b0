"""Tests for the A109 file set encoder/decoder."""

from __future__ import annotations

from datetime import date

import pytest

from rut.adapters import a109_records as rec
from rut.adapters.a109_fileset import (
    DecodeContext,
    airport_usage_counts,
    decode_a109_file_set,
    decode_table,
    detect_file_type,
    encode_a109_file_set,
    navaid_usage_counts,
    waypoint_route_membership,
)
from rut.adapters.errors import UnrecognizedFileTypeError
from rut.contracts import (
    A109FileType,
    NavigationDocument,
    Route,
    UserAirport,
    UserWaypoint,
    WaypointType,
)
from tests.factories import SA, UW, ref

DAY = date(2025, 11, 7)


# ---------------------------------------------------------------------------
# Usage derivation
# ---------------------------------------------------------------------------


class TestUsage:
    def test_airport_usage_counts_ends_twice(self, sample_document):
        counts = airport_usage_counts(sample_document.routes)
        assert counts["ESSA"] == 4
        assert counts["ESGG"] == 2

    def test_navaid_usage(self, sample_document):
        assert navaid_usage_counts(sample_document.routes) == {"ARL": 1}

    def test_waypoint_membership_first_route_wins(self, sample_document):
        assert waypoint_route_membership(sample_document.routes) == {"WPT01": 8, "WPT02": 8, "IP01": 16}

    def test_membership_capped(self):
        routes = [Route(route_id=f"R{i}", points=[ref(UW, f"W{i}")]) for i in range(40)]
        assert waypoint_route_membership(routes)["W39"] == 0xF8


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


class TestEncode:
    def test_file_sizes_and_order(self, sample_document):
        files = encode_a109_file_set(sample_document, DAY).files()
        assert list(files) == [
            "PILOTE.HD", "AIRPORT.P01", "NAVAID.P01", "WAYPOINT.P01", "ROUTE.P01", "CARACTER.P01",
        ]
        assert {name: len(data) for name, data in files.items()} == {
            "PILOTE.HD": 44,
            "AIRPORT.P01": 4020,
            "NAVAID.P01": 4020,
            "WAYPOINT.P01": 2820,
            "ROUTE.P01": 50020,
            "CARACTER.P01": 116,
        }

    def test_presence_headers(self, sample_document):
        file_set = encode_a109_file_set(sample_document, DAY)
        assert file_set.airport_p01[:16] == rec.presence_header(2)
        assert file_set.navaid_p01[:16] == rec.presence_header(1)
        assert file_set.waypoint_p01[:16] == rec.presence_header(3)
        assert file_set.route_p01[:16] == rec.presence_header(2)

    def test_derived_usage_written(self, sample_document):
        file_set = encode_a109_file_set(sample_document, DAY)
        assert file_set.airport_p01[16 + 17] == 30
        assert file_set.navaid_p01[16 + 2] == 0x70
        assert file_set.waypoint_p01[16 + 2 * 28 + 21] == 16

    def test_route_db_indexes_follow_table_order(self, sample_document):
        route_record = encode_a109_file_set(sample_document, DAY).route_p01[16:516]
        assert route_record[20] == 2  # ESSA, airport row 0
        assert route_record[20 + 12] == 2  # WPT01, waypoint row 0
        assert route_record[20 + 36] == 4  # WPT02, waypoint row 1

    def test_empty_document(self):
        file_set = encode_a109_file_set(NavigationDocument(), DAY)
        assert file_set.truncations == []
        assert file_set.route_p01[16 + 16] == 0x48

    def test_same_date_same_bytes(self, sample_document):
        assert encode_a109_file_set(sample_document, DAY).files() == encode_a109_file_set(sample_document, DAY).files()

    def test_table_overflow_truncated(self):
        doc = NavigationDocument(user_waypoints=[
            UserWaypoint(id=f"W{i:03d}", latitude=1.0, longitude=1.0) for i in range(101)
        ])
        file_set = encode_a109_file_set(doc, DAY)
        assert len(file_set.waypoint_p01) == 2820
        assert file_set.waypoint_p01[13] == 128
        assert len(file_set.truncations) == 1
        warning = file_set.truncations[0]
        assert (warning.filename, warning.count, warning.capacity) == ("WAYPOINT.P01", 101, 100)

    def test_long_route_truncated_with_warning(self, sample_document):
        sample_document.routes.append(Route(route_id="LONG", points=[ref(UW, "WPT01")] * 45))
        file_set = encode_a109_file_set(sample_document, DAY)
        assert [(t.subject, t.count, t.capacity) for t in file_set.truncations] == [("LONG", 45, 40)]
        assert "LONG" in str(file_set.truncations[0])

    def test_pilote_records_file_sizes(self, sample_document):
        pilote = encode_a109_file_set(sample_document, DAY).pilote_hd
        assert pilote[:10] == b"DTD7112025"
        assert int.from_bytes(pilote[24:28], "big") == 4020
        assert int.from_bytes(pilote[36:40], "big") == 50020


# ---------------------------------------------------------------------------
# File type detection
# ---------------------------------------------------------------------------


class TestDetectFileType:
    @pytest.mark.parametrize("filename,expected", [
        ("AIRPORT.P01", A109FileType.AIRPORT),
        ("navaid.p01", A109FileType.NAVAID),
        ("export/Waypoint.P01", A109FileType.WAYPOINT),
        ("ROUTE.P01", A109FileType.ROUTE),
        ("PILOTE.HD", A109FileType.PILOTE),
        ("caracter.p01", A109FileType.CARACTER),
    ])
    def test_by_name(self, filename, expected):
        assert detect_file_type(filename, b"") == expected

    @pytest.mark.parametrize("size,expected", [
        (2820, A109FileType.WAYPOINT),
        (50020, A109FileType.ROUTE),
        (116, A109FileType.CARACTER),
        (44, A109FileType.PILOTE),
        (136, A109FileType.AIRPORT),
        (156, A109FileType.WAYPOINT),
        (516, A109FileType.ROUTE),
        (160, A109FileType.WAYPOINT),
    ])
    def test_by_size(self, size, expected):
        assert detect_file_type("DATA.BIN", bytes(size)) == expected

    def test_name_wins_over_canonical_size(self):
        assert detect_file_type("DATA.BIN", bytes(44)) == A109FileType.PILOTE
        assert detect_file_type("WAYPOINT.P01", bytes(44)) == A109FileType.WAYPOINT

    def test_navaid_marker_at_canonical_size(self):
        data = bytearray(4020)
        data[16] = 0xE0
        assert detect_file_type("X.P01", bytes(data)) == A109FileType.NAVAID
        assert detect_file_type("X.P01", bytes(4020)) == A109FileType.AIRPORT

    def test_unrecognized(self):
        with pytest.raises(UnrecognizedFileTypeError, match="MYSTERY.BIN"):
            detect_file_type("MYSTERY.BIN", bytes(17))


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


class TestDecode:
    def test_round_trip(self, sample_document):
        files = encode_a109_file_set(sample_document, DAY).files()
        doc = decode_a109_file_set(files)

        assert [a.id for a in doc.user_airports] == ["ESSA", "ESGG"]
        assert doc.user_airports[0].name == "ARLANDA"
        assert [n.id for n in doc.user_navaids] == ["ARL"]
        assert [w.id for w in doc.user_waypoints] == ["WPT01", "WPT02", "IP01"]
        assert all(w.type == WaypointType.WPT for w in doc.user_waypoints)

        assert [r.route_id for r in doc.routes] == ["ESSA-ESG", "BROMMA"]
        assert [r.name for r in doc.routes] == ["ESSA-ESGG", "BROMMA"]
        assert doc.routes[0].points == sample_document.routes[0].points
        assert doc.routes[1].points == sample_document.routes[1].points

    def test_round_trip_is_stable(self, sample_document):
        first = encode_a109_file_set(sample_document, DAY).files()
        again = encode_a109_file_set(decode_a109_file_set(first), DAY).files()
        assert again["ROUTE.P01"] == first["ROUTE.P01"]
        assert again["WAYPOINT.P01"] == first["WAYPOINT.P01"]

    def test_accepts_pairs(self, sample_document):
        files = encode_a109_file_set(sample_document, DAY).files()
        doc = decode_a109_file_set([("AIRPORT.P01", files["AIRPORT.P01"])])
        assert len(doc.user_airports) == 2
        assert doc.routes == []

    def test_routes_only_resolve_against_context(self, sample_document):
        route_p01 = encode_a109_file_set(sample_document, DAY).route_p01
        doc = decode_a109_file_set(
            {"ROUTE.P01": route_p01}, context=DecodeContext.from_document(sample_document),
        )
        assert doc.user_waypoints == []
        assert [r.points for r in doc.routes] == [r.points for r in sample_document.routes]

    def test_routes_only_without_context(self, sample_document):
        route_p01 = encode_a109_file_set(sample_document, DAY).route_p01
        doc = decode_a109_file_set({"ROUTE.P01": route_p01})
        assert [r.points for r in doc.routes] == [[ref(SA, "ESSB")]]

    def test_checksum_mismatch_is_a_warning(self, sample_document):
        files = encode_a109_file_set(sample_document, DAY).files()
        airport = bytearray(files["AIRPORT.P01"])
        airport[4019] ^= 0x01
        files["AIRPORT.P01"] = bytes(airport)

        warnings: list[str] = []
        doc = decode_a109_file_set(files, warnings=warnings)
        assert warnings == ["AIRPORT.P01: checksum does not match CARACTER.P01"]
        assert len(doc.user_airports) == 2

    def test_intact_set_has_no_warnings(self, sample_document):
        warnings: list[str] = []
        decode_a109_file_set(encode_a109_file_set(sample_document, DAY).files(), warnings=warnings)
        assert warnings == []

    def test_unrecognized_file_raises(self):
        with pytest.raises(UnrecognizedFileTypeError):
            decode_a109_file_set({"notes.bin": b"hello"})


class TestDecodeTable:
    def test_duplicate_ids_first_kept(self):
        first = UserAirport(id="ESSA", name="First", latitude=59.0, longitude=18.0)
        second = UserAirport(id="ESSA", name="Second", latitude=58.0, longitude=17.0)
        data = rec.pack_table(rec.AIRPORT_TABLE, [rec.encode_airport(first), rec.encode_airport(second)])
        airports = decode_table(A109FileType.AIRPORT, data)
        assert [a.name for a in airports] == ["FIRST"]

    def test_empty_slots_skipped(self):
        wp = UserWaypoint(id="WPT05", latitude=1.0, longitude=2.0)
        data = rec.pack_table(rec.WAYPOINT_TABLE, [bytes(28), rec.encode_waypoint(wp)])
        assert [w.id for w in decode_table(A109FileType.WAYPOINT, data)] == ["WPT05"]

    def test_empty_route_table(self):
        data = rec.pack_table(rec.ROUTE_TABLE, [], empty_record=rec.EMPTY_ROUTE_RECORD)
        assert decode_table(A109FileType.ROUTE, data) == []

    def test_duplicate_route_names_get_unique_ids(self, sample_document):
        route = sample_document.routes[0]
        index = {"ESSA": 0, "ESGG": 1}
        record = rec.encode_route(route, index, {"ARL": 0}, {"WPT01": 0, "WPT02": 1})
        data = rec.pack_table(rec.ROUTE_TABLE, [record, record], empty_record=rec.EMPTY_ROUTE_RECORD)
        routes = decode_table(A109FileType.ROUTE, data, DecodeContext.from_document(sample_document))
        assert [r.route_id for r in routes] == ["ESSA-ESG", "ESSA-ESG-2"]

    def test_control_file_is_not_a_table(self):
        with pytest.raises(ValueError):
            decode_table(A109FileType.PILOTE, b"")
