# =============================================================================
# app/routing.py - Route Table and Handler Group Mounting
# =============================================================================
# The gateway does not implement business endpoints itself. It mounts
# "handler groups" - APIRouters living in an external package, one module per
# group - under fixed path prefixes, plus the built-in health check and the
# static uploads directory.
#
# The route table is fixed at startup. Lookups use the longest matching
# prefix on path-segment boundaries, and routers are mounted longest prefix
# first so FastAPI's first-match routing gives the same answer. Every prefix
# is closed off by fallback routes, so a path the owning group does not route
# is a 404 and never reaches a group with a shorter prefix.
#
# Usage:
#   groups = load_handler_groups(settings.HANDLERS_PACKAGE)
#   mount_routes(app, DEFAULT_ROUTE_TABLE, groups, settings.UPLOADS_DIR)
# =============================================================================

import importlib
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import URL
from starlette.responses import RedirectResponse
from starlette.routing import BaseRoute, Match, Route
from starlette.types import Receive, Scope, Send

logger = logging.getLogger(__name__)


class RouteKind(str, Enum):
    """What sits behind a route prefix."""
    HANDLER_GROUP = "handler_group"
    HEALTH = "health"
    STATIC = "static"


@dataclass(frozen=True)
class RouteEntry:
    """A path prefix and the group that owns it."""
    name: str
    prefix: str
    kind: RouteKind = RouteKind.HANDLER_GROUP

    def matches(self, path: str) -> bool:
        """True if `path` is the prefix itself or lies beneath it."""
        return path == self.prefix or path.startswith(self.prefix + "/")


class RouteTable:
    """Ordered, immutable mapping of path prefixes to route groups."""

    def __init__(self, entries: Iterable[RouteEntry]):
        self._entries = tuple(entries)

        seen: set[str] = set()
        for entry in self._entries:
            if not entry.prefix.startswith("/") or entry.prefix.endswith("/"):
                raise ValueError(
                    f"Route prefix must start with '/' and have no trailing slash: {entry.prefix!r}"
                )
            if entry.prefix in seen:
                raise ValueError(f"Duplicate route prefix: {entry.prefix}")
            seen.add(entry.prefix)

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return self._entries

    def handler_groups(self) -> list[RouteEntry]:
        """Entries served by external handler groups, in table order."""
        return [e for e in self._entries if e.kind is RouteKind.HANDLER_GROUP]

    def get(self, name: str) -> RouteEntry | None:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def resolve(self, path: str) -> RouteEntry | None:
        """
        Find the entry owning `path`.

        Returns:
            The entry with the longest matching prefix (ties go to the
            earliest entry), or None if nothing matches.
        """
        best: RouteEntry | None = None
        for entry in self._entries:
            if entry.matches(path) and (best is None or len(entry.prefix) > len(best.prefix)):
                best = entry
        return best

    def mount_order(self) -> list[RouteEntry]:
        """Entries sorted longest prefix first (stable)."""
        return sorted(self._entries, key=lambda e: len(e.prefix), reverse=True)


DEFAULT_ROUTE_TABLE = RouteTable([
    RouteEntry("auth", "/api/auth"),
    RouteEntry("users", "/api/users"),
    RouteEntry("announcements", "/api/announcements"),
    RouteEntry("team", "/api/team"),
    RouteEntry("events", "/api/events"),
    RouteEntry("admin", "/api/admin"),
    RouteEntry("upload", "/api/upload"),
    RouteEntry("resources", "/api/resources"),
    RouteEntry("code", "/api/code"),
    RouteEntry("aptitude", "/api/aptitude"),
    RouteEntry("concept", "/api/concept"),
    RouteEntry("contact", "/api"),
    RouteEntry("health", "/api/health", RouteKind.HEALTH),
    RouteEntry("uploads", "/uploads", RouteKind.STATIC),
])


# =============================================================================
# Handler Groups
# =============================================================================

def load_handler_groups(
    package: str,
    table: RouteTable = DEFAULT_ROUTE_TABLE,
) -> dict[str, APIRouter]:
    """
    Import the router of every handler group in the table.

    Each group is the module `<package>.<name>` exposing `router`.
    A group whose module does not exist is skipped with a warning;
    errors raised while importing an existing module propagate.

    Returns:
        Mapping of group name -> APIRouter for the groups found
    """
    groups: dict[str, APIRouter] = {}

    for entry in table.handler_groups():
        module_name = f"{package}.{entry.name}"
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name not in (package, module_name):
                raise
            logger.warning(f"Handler group '{entry.name}' not found ({module_name}); {entry.prefix} will return 404")
            continue

        router = getattr(module, "router", None)
        if not isinstance(router, APIRouter):
            raise TypeError(f"{module_name}.router must be a fastapi.APIRouter")
        groups[entry.name] = router

    logger.info(f"Loaded {len(groups)}/{len(table.handler_groups())} handler groups from '{package}'")
    return groups


# =============================================================================
# Static Files
# =============================================================================

def mount_uploads(app: FastAPI, prefix: str, directory: Path) -> bool:
    """
    Serve `directory` read-only under `prefix`.

    A missing or unreadable directory is logged and skipped so the rest of
    the API keeps working.

    Returns:
        True if the directory was mounted
    """
    if not os.access(directory, os.R_OK | os.X_OK):
        logger.warning(f"Could not serve uploads directory: {directory} is missing or not readable")
        return False

    try:
        static = StaticFiles(directory=directory)
    except RuntimeError as e:
        logger.warning(f"Could not serve uploads directory: {e}")
        return False

    app.mount(prefix, static, name="uploads")
    logger.info(f"Serving {directory} at {prefix}")
    return True


# =============================================================================
# Mounting
# =============================================================================

async def _not_found(request: Request):
    raise HTTPException(status_code=404)


class PrefixFallbackRoute(Route):
    """
    Catch-all for one route prefix, placed right after the routes it guards.

    A path one of `owned_routes` serves under another method is handed back
    to that route (405), a path it serves with the other trailing-slash form
    is redirected, and anything else under the prefix is a 404.
    """

    def __init__(self, path: str, owned_routes: Iterable[BaseRoute] = ()):
        super().__init__(path, endpoint=_not_found, include_in_schema=False)
        # Claim the path for every method
        self.methods = None
        self.owned_routes = tuple(owned_routes)

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        for route in self.owned_routes:
            match, child_scope = route.matches(scope)
            if match is Match.PARTIAL:
                scope.update(child_scope)
                await route.handle(scope, receive, send)
                return

        path = scope["path"]
        redirect_scope = dict(scope)
        redirect_scope["path"] = path.rstrip("/") if path.endswith("/") else path + "/"
        if any(route.matches(redirect_scope)[0] is not Match.NONE for route in self.owned_routes):
            response = RedirectResponse(url=str(URL(scope=redirect_scope)))
            await response(scope, receive, send)
            return

        await super().handle(scope, receive, send)


def prefix_fallback_routes(prefix: str, owned_routes: Iterable[BaseRoute] = ()) -> list[PrefixFallbackRoute]:
    """Fallbacks covering `prefix` itself and every path beneath it."""
    owned = tuple(owned_routes)
    return [
        PrefixFallbackRoute(prefix, owned),
        PrefixFallbackRoute(prefix + "/{path:path}", owned),
    ]


def mount_routes(
    app: FastAPI,
    table: RouteTable,
    handler_groups: Mapping[str, APIRouter],
    uploads_dir: Path,
    health_router: APIRouter,
) -> None:
    """
    Attach every route group in the table to `app`, longest prefix first.

    Handler groups are included as-is under their prefix; the gateway never
    inspects their requests or responses. Each prefix is then closed off
    with fallback routes, also for groups that were not found, so every
    path is answered by exactly one group or not at all.
    """
    for entry in table.mount_order():
        if entry.kind is RouteKind.STATIC:
            mount_uploads(app, entry.prefix, uploads_dir)
            continue

        first = len(app.router.routes)
        if entry.kind is RouteKind.HEALTH:
            app.include_router(health_router, prefix=entry.prefix, tags=["Health"])
        elif entry.name in handler_groups:
            app.include_router(
                handler_groups[entry.name],
                prefix=entry.prefix,
                tags=[entry.name.capitalize()],
            )
        owned = app.router.routes[first:]
        app.router.routes.extend(prefix_fallback_routes(entry.prefix, owned))
