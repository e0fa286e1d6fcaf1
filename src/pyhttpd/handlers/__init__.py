"""
=============================================================================
ENDPOINT HANDLERS
=============================================================================

The server's route table, in match order:

    ┌───┬────────────────┬──────────────────────────┬──────────────────┐
    │ # │ Pattern        │ Handler                  │ Meta             │
    ├───┼────────────────┼──────────────────────────┼──────────────────┤
    │ 1 │ /              │ endpoints.root           │                  │
    │ 2 │ /user-agent    │ endpoints.user_agent     │                  │
    │ 3 │ /echo/*value   │ endpoints.echo           │ compress=True    │
    │ 4 │ /files/*name   │ FilesHandler.handle      │                  │
    │ - │ anything else  │ 404 (Router.handle)      │                  │
    └───┴────────────────┴──────────────────────────┴──────────────────┘

Every route accepts every method.

=============================================================================
"""

from ..core.file_store import FileStore
from ..http.router import Router
from .endpoints import root, user_agent, echo
from .files import FilesHandler


def build_router(store: FileStore) -> Router:
    """Compile the route table once; the result is shared by all connections."""
    router = Router()
    router.add_route("/", root, name="root")
    router.add_route("/user-agent", user_agent, name="user_agent")
    router.add_route("/echo/*value", echo, name="echo", compress=True)
    router.add_route("/files/*name", FilesHandler(store).handle, name="files")
    return router


__all__ = [
    "build_router",
    "FilesHandler",
    "root",
    "user_agent",
    "echo",
]
