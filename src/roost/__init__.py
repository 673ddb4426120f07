"""Roost: an HTTP server assembled from the files in a directory.

Services, pipes, schemas, middlewares, and controllers are discovered on
disk, loaded concurrently, and bound onto an ordered handler chain.

Basic usage::

    from roost import Server, ServerConfig

    server = Server(ServerConfig(workdir="src", port=3000))
    await server.initialize()

A controller lives at ``src/controllers/users.[id].controller.py``::

    from roost import Controller

    class UserController(Controller):
        async def GET(self, request, reply, next):
            return {"id": request.params["id"]}

    default = UserController
"""

__version__ = "0.1.0"
__all__ = [
    "CircularDependencyError",
    "ConfigurationError",
    "Controller",
    "DiscoveryError",
    "Fields",
    "HTTPError",
    "LoadStatus",
    "Middleware",
    "MethodNotAllowed",
    "NotFound",
    "Pipe",
    "Reply",
    "Request",
    "RoostError",
    "Schema",
    "Server",
    "ServerConfig",
    "Service",
    "ServiceNotRegisteredError",
    "TestClient",
    "ValidationError",
    "create_schema",
    "import_file",
]

# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "CircularDependencyError": "roost.errors",
    "ConfigurationError": "roost.errors",
    "Controller": "roost.pieces",
    "DiscoveryError": "roost.errors",
    "Fields": "roost.validation.fields",
    "HTTPError": "roost.errors",
    "LoadStatus": "roost.loading.outcome",
    "Middleware": "roost.pieces",
    "MethodNotAllowed": "roost.errors",
    "NotFound": "roost.errors",
    "Pipe": "roost.pieces",
    "Reply": "roost.http.reply",
    "Request": "roost.http.request",
    "RoostError": "roost.errors",
    "Schema": "roost.pieces",
    "Server": "roost.server",
    "ServerConfig": "roost.config",
    "Service": "roost.pieces",
    "ServiceNotRegisteredError": "roost.errors",
    "TestClient": "roost.testing",
    "ValidationError": "roost.errors",
    "create_schema": "roost.pieces",
    "import_file": "roost.loading.module",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    import importlib

    return getattr(importlib.import_module(module_name), name)
