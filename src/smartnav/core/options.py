"""Router-wide configuration validated with pydantic."""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict

__all__ = ["RouterOptions"]


class RouterOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    params_inheritance_strategy: Literal[
        "inherit-until-component-boundary", "inherit-always"
    ] = "inherit-until-component-boundary"
    on_same_url_navigation: Literal["ignore", "reload"] = "ignore"
    canceled_navigation_resolution: Literal["replace", "computed"] = "replace"
    url_update_strategy: Literal["deferred", "eager"] = "deferred"
    default_query_params_handling: Optional[Literal["merge", "preserve", ""]] = None
    resolve_navigation_promise_on_error: bool = False
    malformed_uri_error_handler: Optional[Callable[..., Any]] = None
    navigation_error_handler: Optional[Callable[..., Any]] = None
