"""Tests for the route selection gate."""

from datetime import datetime, timezone

from narrative import ProgressRecord, RouteCatalog, RouteTag, available_routes, can_select_route


def _record(cleared: list[str], catalog: RouteCatalog | None = None) -> ProgressRecord:
    return ProgressRecord.restore(
        "s1", "", 0, cleared, datetime(2026, 1, 1, tzinfo=timezone.utc), catalog=catalog
    )


def test_empty_route_is_rejected():
    decision = can_select_route(RouteTag(""), _record([]))
    assert decision.can_select is False
    assert decision.reason == "no route specified"
    assert not decision


def test_whitespace_route_is_rejected():
    assert not can_select_route(RouteTag("  "), _record([]))


def test_true_route_locked_until_all_base_routes_cleared():
    decision = can_select_route(RouteTag("trueRoute"), _record(["route1", "route2"]))
    assert decision.can_select is False
    assert decision.reason
    assert "route3" in decision.reason


def test_true_route_allowed_once_unlocked():
    decision = can_select_route(RouteTag("trueRoute"), _record(["route1", "route2", "route3"]))
    assert decision.can_select is True
    assert decision.reason == ""


def test_base_and_extension_routes_are_allowed():
    catalog = RouteCatalog(dlc_routes=["dlc1"], special_routes=["sp"])
    record = _record([], catalog)
    for name in ("route1", "route3", "dlc1", "sp"):
        assert can_select_route(RouteTag(name), record).can_select


def test_unknown_route_is_rejected():
    decision = can_select_route(RouteTag("route9"), _record([]))
    assert decision.can_select is False
    assert decision.reason == "route does not exist"


def test_explicit_catalog_overrides_record_catalog():
    record = _record([])
    catalog = RouteCatalog(dlc_routes=["dlc1"])
    assert not can_select_route(RouteTag("dlc1"), record)
    assert can_select_route(RouteTag("dlc1"), record, catalog)


def test_policy_does_not_mutate_record():
    record = _record(["route1"])
    saved = record.last_save_time
    can_select_route(RouteTag("route2"), record)
    assert record.current_route.is_empty()
    assert record.last_save_time == saved


def test_available_routes_lists_catalog_order():
    catalog = RouteCatalog(dlc_routes=["dlc1"])
    assert available_routes(catalog) == ["route1", "route2", "route3", "dlc1"]


def test_true_route_decision_uses_the_given_catalog():
    catalog = RouteCatalog(base_routes=["a"], true_route="T")
    record = _record(["a"])

    decision = can_select_route(RouteTag("T"), record, catalog)
    assert decision.can_select is True

    locked = can_select_route(RouteTag("T"), _record([]), catalog)
    assert locked.can_select is False
    assert "(a)" in locked.reason
