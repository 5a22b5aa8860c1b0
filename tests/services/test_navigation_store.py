"""Tests for NavigationStore editing operations."""

from __future__ import annotations

import pytest

from rut.contracts import (
    GeoPoint,
    NavigationDocument,
    Route,
    UserAirport,
    UserNavaid,
    UserWaypoint,
    WaypointType,
)
from rut.services.navigation_store import (
    NavigationStore,
    NotFoundError,
    haversine_nm,
    looks_like_airport_id,
)
from tests.factories import SA, UA, UN, UW, make_sample_document, ref


@pytest.fixture
def store() -> NavigationStore:
    doc = make_sample_document()
    return NavigationStore(doc, active_route_id=doc.routes[0].id)


def _route(store: NavigationStore, route_id: str) -> Route:
    return next(r for r in store.routes if r.route_id == route_id)


class TestGeometry:
    def test_haversine_one_degree_longitude_at_equator(self):
        distance = haversine_nm(GeoPoint(latitude=0.0, longitude=0.0), GeoPoint(latitude=0.0, longitude=1.0))
        assert distance == pytest.approx(60.04, abs=0.01)

    def test_haversine_zero(self):
        p = GeoPoint(latitude=59.0, longitude=18.0)
        assert haversine_nm(p, p) == 0.0

    @pytest.mark.parametrize("value,expected", [
        ("ESSA", True), ("ES12", True), ("LFPG", False), ("ESS", False), ("ESSAX", False), ("ES-A", False),
    ])
    def test_looks_like_airport_id(self, value, expected):
        assert looks_like_airport_id(value) is expected

    def test_map_points(self, store):
        points = store.map_points(_route(store, "BROMMA"))
        assert [(p.name, p.index_in_route, p.kind) for p in points] == [("ESSB", 1, SA), ("IP01", 2, UW), ("ESSA", 3, UA)]

    def test_map_points_skip_unresolved(self, store):
        route = Route(route_id="X", points=[ref(UW, "GHOST"), ref(UW, "WPT01")])
        assert [p.index_in_route for p in store.map_points(route)] == [2]

    def test_leg_distances(self, store):
        legs = store.leg_distances_nm(_route(store, "ESSA-ESG"))
        assert len(legs) == 4
        assert all(leg > 0 for leg in legs)


class TestActiveRoute:
    def test_initial(self, store):
        assert store.active_route.route_id == "ESSA-ESG"

    def test_set_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.set_active_route("nope")

    def test_add_or_merge_activates_first_route(self):
        store = NavigationStore()
        store.add_or_merge(make_sample_document())
        assert store.active_route.route_id == "ESSA-ESG"

    def test_replace_document(self):
        store = NavigationStore()
        store.replace_document(make_sample_document())
        assert len(store.routes) == 2
        assert store.active_route is not None


class TestRoutes:
    def test_delete_route_removes_orphans_only(self, store):
        route = _route(store, "ESSA-ESG")
        store.delete_route(route.id)
        doc = store.document
        assert [r.route_id for r in doc.routes] == ["BROMMA"]
        assert [w.id for w in doc.user_waypoints] == ["IP01"]
        assert [a.id for a in doc.user_airports] == ["ESSA"]
        assert doc.user_navaids == []
        assert [a.id for a in doc.system_airports] == ["ESSB"]

    def test_delete_route_moves_active(self, store):
        store.delete_route(store.active_route_id)
        assert store.active_route.route_id == "BROMMA"

    def test_delete_unknown_route(self, store):
        before = store.document
        with pytest.raises(NotFoundError):
            store.delete_route("nope")
        assert store.document is before

    def test_unreferenced_entities_survive_delete(self, store):
        store.create_user_waypoint(UserWaypoint(id="LONE", latitude=1.0, longitude=1.0))
        store.delete_route(_route(store, "ESSA-ESG").id)
        assert store.document.find(UW, "LONE") is not None

    def test_rename_route(self, store):
        route = store.update_route_name(_route(store, "BROMMA").id, "Bromma Local")
        assert route.name == "BROMMALOCAL"
        assert route.route_id == "BROMMALO"

    def test_rename_route_collision(self, store):
        route = store.update_route_name(_route(store, "BROMMA").id, "ESSA-ESGG")
        assert route.route_id == "ESSA-ESG-2"


class TestCreate:
    def test_waypoint(self, store):
        wp = store.create_user_waypoint(UserWaypoint(id="HOME", name="Home", type=WaypointType.CUSTOM,
                                                     latitude=59.5, longitude=18.1))
        assert wp.id == "HOME"
        assert store.document.find(UW, "HOME") == wp

    def test_waypoint_id_collision(self, store):
        wp = store.create_user_waypoint(UserWaypoint(id="WPT01", latitude=1.0, longitude=1.0))
        assert wp.id == "WPT03"
        assert store.document.find(UW, "WPT01").latitude == 59.0

    def test_airport(self, store):
        ap = store.create_user_airport(UserAirport(id="ESSA", latitude=1.0, longitude=1.0))
        assert ap.id == "ESSA2"

    def test_navaid(self, store):
        nv = store.create_user_navaid(UserNavaid(id="NOR", latitude=59.7, longitude=18.7, frequency=112.5))
        assert store.document.find(UN, "NOR").frequency == 112.5
        assert nv.id == "NOR"


class TestUpdate:
    def test_waypoint_id_change_follows_into_routes(self, store):
        wp = store.update_waypoint("IP01", new_id="HOME", name="Home", type=WaypointType.CUSTOM,
                                   latitude=58.1, longitude=15.1)
        assert wp.id == "HOME"
        assert wp.name == "HOME"
        assert [p.ref_id for p in _route(store, "BROMMA").points] == ["ESSB", "HOME", "ESSA"]

    def test_waypoint_id_conflict_resolved(self, store):
        wp = store.update_waypoint("IP01", new_id="WPT01", name="X", type=WaypointType.CUSTOM,
                                   latitude=58.0, longitude=15.0)
        assert wp.id == "WPT03"
        assert store.document.find(UW, "WPT01").latitude == 59.0

    def test_waypoint_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.update_waypoint("NOPE", new_id="NOPE", name="", type=WaypointType.WPT,
                                  latitude=0.0, longitude=0.0)

    def test_invalid_coordinate_leaves_store_untouched(self, store):
        before = store.document
        with pytest.raises(ValueError):
            store.update_waypoint("WPT01", new_id="WPT01", name="WPT01", type=WaypointType.WPT,
                                  latitude=123.0, longitude=0.0)
        assert store.document is before

    def test_airport_rename(self, store):
        ap = store.update_airport("ESGG", new_id="ESGP", name="Save", latitude=57.77, longitude=11.87,
                                  elevation=59.0, magnetic_variation=4.0)
        assert ap.id == "ESGP"
        assert _route(store, "ESSA-ESG").points[-1].ref_id == "ESGP"
        assert store.document.find(UA, "ESGP").magnetic_variation == 4.0

    def test_navaid_frequency(self, store):
        nv = store.update_navaid("ARL", new_id="ARL", name="Arlanda", latitude=59.65, longitude=17.95,
                                 frequency=116.3)
        assert nv.frequency == 116.3
        assert [p.ref_id for p in _route(store, "ESSA-ESG").points][2] == "ARL"


class TestRoutePointEdits:
    def test_type_change_renumbers(self, store):
        route = _route(store, "ESSA-ESG")
        wp = store.update_waypoint_type(route.id, 3, WaypointType.IP)
        assert wp.id == "IP02"
        assert wp.type == WaypointType.IP
        assert [p.ref_id for p in _route(store, "ESSA-ESG").points] == ["ESSA", "WPT01", "ARL", "IP02", "ESGG"]

    def test_type_custom_with_free_id(self, store):
        route = _route(store, "ESSA-ESG")
        wp = store.update_waypoint_type(route.id, 1, WaypointType.CUSTOM, custom_id="gate")
        assert wp.id == "GATE"
        assert wp.type == WaypointType.CUSTOM
        assert _route(store, "ESSA-ESG").points[1].ref_id == "GATE"

    def test_type_custom_with_taken_id_keeps_id(self, store):
        route = _route(store, "ESSA-ESG")
        wp = store.update_waypoint_type(route.id, 1, WaypointType.CUSTOM, custom_id="WPT02")
        assert wp.id == "WPT01"

    def test_type_change_on_airport_ignored(self, store):
        route = _route(store, "ESSA-ESG")
        assert store.update_waypoint_type(route.id, 0, WaypointType.IP) is None

    def test_index_out_of_range(self, store):
        with pytest.raises(NotFoundError):
            store.update_waypoint_type(_route(store, "ESSA-ESG").id, 9, WaypointType.IP)

    def test_coordinate(self, store):
        wp = store.update_waypoint_coordinate(_route(store, "BROMMA").id, 1, 58.2, 15.2)
        assert (wp.latitude, wp.longitude) == (58.2, 15.2)
        assert store.document.find(UW, "IP01").latitude == 58.2


class TestDelete:
    def test_waypoint_removed_from_routes(self, store):
        assert store.delete_user_waypoint("WPT01") is True
        assert [p.ref_id for p in _route(store, "ESSA-ESG").points] == ["ESSA", "ARL", "WPT02", "ESGG"]

    def test_airport_removed_from_routes_kind_aware(self, store):
        store.create_user_waypoint(UserWaypoint(id="ESSA", latitude=1.0, longitude=1.0))
        store.document.routes[1].points.append(ref(UW, "ESSA"))
        assert store.delete_user_airport("ESSA") is True
        assert [p.key for p in _route(store, "BROMMA").points] == [(SA, "ESSB"), (UW, "IP01"), (UW, "ESSA")]

    def test_navaid(self, store):
        assert store.delete_user_navaid("ARL") is True
        assert len(_route(store, "ESSA-ESG").points) == 4

    def test_unknown(self, store):
        assert store.delete_user_waypoint("NOPE") is False


class TestIds:
    def test_next_available_id(self, store):
        assert store.next_available_id(WaypointType.WPT) == "WPT03"
        assert store.next_available_id(WaypointType.TGT) == "TGT01"

    def test_renumber_waypoints(self, store):
        store.update_waypoint_coordinate(_route(store, "ESSA-ESG").id, 1, 59.1, 18.1)
        doc = store.document
        doc.routes[0].points.reverse()
        store.renumber_waypoints([doc.routes[0].id])
        assert [p.ref_id for p in _route(store, "ESSA-ESG").points] == ["ESGG", "WPT01", "ARL", "WPT02", "ESSA"]
        assert store.document.find(UW, "WPT02").latitude == 59.1


class TestDeriveUserAirports:
    def test_airport_like_waypoint_becomes_airport(self):
        doc = NavigationDocument(
            user_waypoints=[
                UserWaypoint(id="ESOW", latitude=59.589, longitude=16.633),
                UserWaypoint(id="WPT01", latitude=59.0, longitude=17.0),
            ],
            routes=[Route(route_id="R", points=[ref(UW, "ESOW"), ref(UW, "WPT01")])],
        )
        store = NavigationStore(doc)
        added = store.derive_user_airports()
        assert [a.id for a in added] == ["ESOW"]
        assert store.document.find(UA, "ESOW").latitude == 59.589

    def test_existing_airports_skipped(self, store):
        assert store.derive_user_airports() == []
        assert len(store.document.user_airports) == 2
