"""Resolver phase tests."""

import asyncio

import pytest

from smartnav import NavigationCancel, NavigationCancellationCode, Route, Router, RoutesRecognized


class Team:
    pass


class User:
    pass


def team_title(route, state):
    return f"Team {route.params['id']}"


async def load_user(route, state):
    await asyncio.sleep(0)
    return {"name": route.params["name"]}


async def starve(route, state):
    return
    yield


def fail(route, state):
    raise LookupError("no such user")


def _routes(user_resolve=None, team_mode="params-change", counter=None):
    def counted_title(route, state):
        if counter is not None:
            counter.append(route.params["id"])
        return team_title(route, state)

    return [
        Route(
            path="team/:id",
            component=Team,
            data={"section": "teams"},
            resolve={"title": counted_title},
            run_guards_and_resolvers=team_mode,
            children=[
                Route(path="user/:name", component=User, resolve=user_resolve or {"user": load_user}),
            ],
        ),
    ]


@pytest.mark.asyncio
async def test_resolved_values_land_in_data():
    router = Router(_routes())
    assert await router.navigate_by_url("/team/33/user/11") is True

    team = router.router_state.snapshot.root.first_child
    assert team.data == {"section": "teams", "title": "Team 33"}
    assert team.first_child.data == {"user": {"name": "11"}}
    live = router.router_state.root.first_child
    assert live.data.value == {"section": "teams", "title": "Team 33"}


@pytest.mark.asyncio
async def test_reused_parent_keeps_resolved_data():
    calls = []
    router = Router(_routes(counter=calls))
    assert await router.navigate_by_url("/team/33/user/11") is True
    assert await router.navigate_by_url("/team/33/user/12") is True

    assert calls == ["33"]
    team = router.router_state.snapshot.root.first_child
    assert team.data["title"] == "Team 33"
    assert team.first_child.data == {"user": {"name": "12"}}


@pytest.mark.asyncio
async def test_always_mode_reruns_resolvers():
    calls = []
    router = Router(_routes(team_mode="always", counter=calls))
    assert await router.navigate_by_url("/team/33/user/11") is True
    assert await router.navigate_by_url("/team/33/user/12") is True
    assert calls == ["33", "33"]


@pytest.mark.asyncio
async def test_starved_resolver_cancels_navigation():
    router = Router(_routes(user_resolve={"user": starve}))
    events = []
    router.events.subscribe(events.append)

    assert await router.navigate_by_url("/team/33/user/11") is False

    cancel = [event for event in events if isinstance(event, NavigationCancel)][0]
    assert cancel.code == NavigationCancellationCode.NO_DATA_FROM_RESOLVER
    assert router.url == "/"


@pytest.mark.asyncio
async def test_resolver_error_propagates():
    router = Router(_routes(user_resolve={"user": fail}))
    with pytest.raises(LookupError, match="no such user"):
        await router.navigate_by_url("/team/33/user/11")


class Profile:
    pass


async def load_permissions(route, state):
    await asyncio.sleep(0.01)
    return ["read", "write"]


async def permissions_missing(route, state):
    await asyncio.sleep(0.01)
    return
    yield


def _profile_routes(perms):
    return [Route(path="profile/:name", component=Profile, resolve={"user": load_user, "perms": perms})]


@pytest.mark.asyncio
async def test_all_resolver_keys_are_written_together():
    router = Router(_profile_routes(load_permissions))
    assert await router.navigate_by_url("/profile/ada") is True
    profile = router.router_state.snapshot.root.first_child
    assert profile.data == {"user": {"name": "ada"}, "perms": ["read", "write"]}


@pytest.mark.asyncio
async def test_one_starved_key_discards_the_others():
    router = Router(_profile_routes(permissions_missing))
    recognized = []
    router.events.subscribe(
        lambda event: recognized.append(event.state) if isinstance(event, RoutesRecognized) else None
    )

    assert await router.navigate_by_url("/profile/ada") is False

    target = recognized[0].root.first_child
    assert "user" not in target.data
    assert "perms" not in target.data
    assert router.url == "/"
