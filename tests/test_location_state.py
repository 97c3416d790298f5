"""Browser history bookkeeping: MemoryLocation and the history state manager."""

import asyncio

import pytest

from smartnav import MemoryLocation, Route, Router


class Home:
    pass


class Admin:
    pass


def deny(route, state):
    return False


def _routes():
    return [
        Route(path="home", component=Home),
        Route(path="open", component=Admin),
        Route(path="admin", component=Admin, can_activate=[deny]),
    ]


def test_memory_location_stack():
    location = MemoryLocation()
    location.go("/a", {"n": 1})
    location.go("b")
    location.replace_state("/c")

    assert location.path() == "/c"
    assert location.history_length == 3
    assert location.url_changes == ["/a", "/b", "replace: /c"]
    assert location.is_current_path_equal_to("/c")


def test_memory_location_pops_synchronously_without_loop():
    location = MemoryLocation()
    location.go("/a", {"n": 1})
    events = []
    unsubscribe = location.subscribe(events.append)

    location.back()
    location.forward()
    unsubscribe()
    location.back()

    assert events == [
        {"type": "popstate", "url": "/", "state": None},
        {"type": "popstate", "url": "/a", "state": {"n": 1}},
    ]
    assert location.path() == "/"


def test_go_truncates_forward_entries():
    location = MemoryLocation()
    location.go("/a")
    location.go("/b")
    location.back()
    location.go("/c")
    assert location.history_length == 3
    location.forward()
    assert location.path() == "/c"


@pytest.mark.asyncio
async def test_replace_url_rewrites_current_entry():
    router = Router(_routes())
    assert await router.navigate_by_url("/home") is True
    assert await router.navigate_by_url("/open", replace_url=True, state={"from": "menu"}) is True

    assert router.location.history_length == 2
    assert router.location.get_state() == {"from": "menu", "navigation_id": 2}


@pytest.mark.asyncio
async def test_skip_location_change_leaves_history_alone():
    router = Router(_routes())
    assert await router.navigate_by_url("/home") is True
    assert await router.navigate_by_url("/open", skip_location_change=True) is True

    assert router.url == "/open"
    assert router.location.path() == "/home"


@pytest.mark.asyncio
async def test_computed_mode_records_page_ids():
    router = Router(_routes(), canceled_navigation_resolution="computed")
    assert await router.navigate_by_url("/home") is True
    assert router.location.get_state() == {"navigation_id": 1, "router_page_id": 1}

    assert await router.navigate_by_url("/admin") is False
    assert router.location.path() == "/home"
    assert router.location.get_state()["router_page_id"] == 1


@pytest.mark.asyncio
async def test_eager_rejection_goes_back_in_computed_mode():
    router = Router(_routes(), canceled_navigation_resolution="computed", url_update_strategy="eager")
    assert await router.navigate_by_url("/home") is True
    changes = []
    router.location.subscribe(changes.append)

    assert await router.navigate_by_url("/admin") is False
    await asyncio.sleep(0)

    assert router.location.path() == "/home"
    assert changes == [{"type": "popstate", "url": "/home", "state": {"navigation_id": 1, "router_page_id": 1}}]
    assert router.url == "/home"


@pytest.mark.asyncio
async def test_eager_rejection_replaces_url_in_replace_mode():
    router = Router(_routes(), url_update_strategy="eager")
    assert await router.navigate_by_url("/home") is True

    assert await router.navigate_by_url("/admin") is False

    assert router.location.url_changes == ["/home", "/admin", "replace: /home"]
    assert router.location.path() == "/home"
