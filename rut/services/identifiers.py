"""Short-identifier allocation for waypoints, airports, navaids and routes.

A109 keys are at most 5 characters of the 6-bit alphabet (15 for route
ids). Every allocator here is deterministic and never fails: each
collision path ends in a fallback that is guaranteed unused.
"""

from __future__ import annotations

import hashlib
import logging
import re
import string
from collections.abc import Iterable, Set

from rut.adapters.sixbit import sanitize
from rut.contracts.document import NavigationDocument
from rut.contracts.enums import RoutePointKind, WaypointType

logger = logging.getLogger(__name__)

MAX_ID_LENGTH = 5
MAX_ROUTE_ID_LENGTH = 15
ROUTE_ID_BASE_LENGTH = 8
DEFAULT_ROUTE_ID = "ROUTE"
DEFAULT_ID = "ID"

# Passed as ``kind`` to allocate_id() for route ids.
ROUTE_KIND = "route"

_DISAMBIGUATORS = [str(d) for d in range(2, 10)] + list(string.ascii_uppercase)
_NUMERIC_SUFFIX = re.compile(r"\d+$")


def sanitized_name(raw: str, max_length: int) -> str:
    """Upper-case, keep A-Z/0-9/-, truncate to *max_length*.

    >>> sanitized_name("Stockholm/Arlanda", 15)
    'STOCKHOLMARLAND'
    """
    return sanitize(raw)[:max_length]


def _serial(waypoint_type: WaypointType, n: int) -> str:
    return f"{waypoint_type.prefix}{n:02}"


def next_available_id(waypoint_type: WaypointType, used: Set[str]) -> str:
    """Lowest unused ``{prefix}{NN}`` for *waypoint_type*.

    >>> next_available_id(WaypointType.WPT, {"WPT01", "WPT03"})
    'WPT02'
    """
    n = 1
    while len(candidate := _serial(waypoint_type, n)) <= MAX_ID_LENGTH:
        if candidate not in used:
            return candidate
        n += 1
    return make_unique_id(waypoint_type.prefix, used)


def make_unique_id(preferred: str, used: Set[str]) -> str:
    """Closest id to *preferred* that is not in *used* (at most 5 characters).

    Tried in order: *preferred* itself, its 5-character prefix, the next
    value of a numeric suffix (zero padding kept), one disambiguating
    character (``2``-``9``, ``A``-``Z``) replacing the tail, and finally a
    5-character token hashed from *preferred*.

    >>> make_unique_id("WPT01", {"WPT01"})
    'WPT02'
    >>> make_unique_id("ESSA", {"ESSA"})
    'ESSA2'
    """
    base = sanitize(preferred) or DEFAULT_ID
    if base not in used and len(base) <= MAX_ID_LENGTH:
        return base

    if len(base) > MAX_ID_LENGTH:
        base = base[:MAX_ID_LENGTH]
        if base not in used:
            return base

    match = _NUMERIC_SUFFIX.search(base)
    if match:
        prefix, digits = base[: match.start()], match.group()
        for i in range(int(digits) + 1, 1000):
            number = str(i).zfill(len(digits)) if digits.startswith("0") else str(i)
            candidate = prefix + number
            if len(candidate) <= MAX_ID_LENGTH and candidate not in used:
                return candidate

    for suffix in _DISAMBIGUATORS:
        candidate = base[: MAX_ID_LENGTH - len(suffix)] + suffix
        if candidate not in used:
            return candidate

    attempt = 0
    while True:
        token = hashlib.md5(f"{preferred}:{attempt}".encode()).hexdigest()[:MAX_ID_LENGTH].upper()
        if token not in used:
            logger.debug("Id %r exhausted its variants, using token %s", preferred, token)
            return token
        attempt += 1


def route_id_base(name: str) -> str:
    """Route-id stem: first 8 sanitized characters of *name*, or ``ROUTE``."""
    cleaned = sanitized_name(name, MAX_ROUTE_ID_LENGTH)
    return cleaned[:ROUTE_ID_BASE_LENGTH] if cleaned else DEFAULT_ROUTE_ID


def make_unique_route_id(base: str, used: Set[str]) -> str:
    """*base*, else ``base-2`` .. ``base-99`` (base truncated to fit 15), else ``base-X``.

    >>> make_unique_route_id("ESSAESGG", {"ESSAESGG", "ESSAESGG-2"})
    'ESSAESGG-3'
    """
    if base not in used:
        return base
    for n in range(2, 100):
        suffix = f"-{n}"
        candidate = base[: max(1, MAX_ROUTE_ID_LENGTH - len(suffix))] + suffix
        if candidate not in used:
            return candidate
    return base + "-X"


def allocate_id(
    kind: WaypointType | RoutePointKind | str,
    used: Set[str],
    preferred: str | None = None,
) -> str:
    """Single entry point for id allocation.

    - ``ROUTE_KIND``: route id derived from *preferred* (the route name)
    - a ``WaypointType`` with no *preferred*: next free serial number
    - anything else: ``make_unique_id(preferred)``
    """
    if kind == ROUTE_KIND:
        return make_unique_route_id(route_id_base(preferred or ""), used)
    if isinstance(kind, WaypointType) and not preferred:
        return next_available_id(kind, used)
    return make_unique_id(preferred or "", used)


# ---------------------------------------------------------------------------
# Renumbering
# ---------------------------------------------------------------------------


def renumber_managed_waypoints(
    document: NavigationDocument,
    route_ids: Iterable[str],
) -> NavigationDocument:
    """Reassign serial ids to the managed waypoints of the given routes.

    The ids of managed waypoints on those routes are released first. Each
    route is then walked in point order and every managed waypoint gets
    the next unused ``{prefix}{NN}`` of its type (id and name both);
    counters run across the whole call. A waypoint listed twice keeps its
    first new id. All route references are rewritten in one pass at the
    end, so swapped serials never collide midway.

    Custom waypoints and unresolved references are left alone. Returns a
    new document; *document* is not modified.
    """
    doc = document.model_copy(deep=True)

    waypoints = {}
    for wp in doc.user_waypoints:
        waypoints.setdefault(wp.id, wp)

    routes = []
    for route_id in dict.fromkeys(route_ids):
        route = doc.route_by_id(route_id)
        if route is not None:
            routes.append(route)

    managed_refs = [
        ref.ref_id
        for route in routes
        for ref in route.points
        if ref.kind == RoutePointKind.USER_WAYPOINT
        and ref.ref_id in waypoints
        and waypoints[ref.ref_id].is_managed
    ]

    used = {wp.id for wp in doc.user_waypoints} - set(managed_refs)
    counters: dict[WaypointType, int] = {}
    mapping: dict[str, str] = {}

    for old_id in managed_refs:
        if old_id in mapping:
            continue
        wp = waypoints[old_id]
        candidate = _next_serial(wp.type, counters, used)
        wp.id = candidate
        wp.name = candidate
        mapping[old_id] = candidate
        used.add(candidate)

    doc.replace_references(RoutePointKind.USER_WAYPOINT, mapping)
    logger.debug("Renumbered %d waypoints on %d routes", len(mapping), len(routes))
    return doc


def _next_serial(waypoint_type: WaypointType, counters: dict[WaypointType, int], used: Set[str]) -> str:
    while True:
        counters[waypoint_type] = counters.get(waypoint_type, 0) + 1
        candidate = _serial(waypoint_type, counters[waypoint_type])
        if len(candidate) > MAX_ID_LENGTH:
            return make_unique_id(candidate, used)
        if candidate not in used:
            return candidate
