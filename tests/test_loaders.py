"""Tests for roost.loading: import, classify, and construct discovered files."""

import anyio
import pytest

from roost.errors import ConstructionError, ModuleImportError, ShapeError
from roost.loading import (
    ControllerLoader,
    LoadStatus,
    MiddlewareLoader,
    PipeLoader,
    SchemaLoader,
    ServiceLoader,
    forget_file,
    import_file,
)
from roost.pieces import Controller, Middleware, Pipe, Schema

CONTROLLER = """
from roost import Controller

class Users(Controller):
    def GET(self, request, reply, next):
        return {"ok": True}

default = Users
"""


async def load_one(loader_cls, project):
    server = project.server()
    [outcome] = await loader_cls(server).load_all()
    return outcome


class TestClassification:
    async def test_loaded(self, project) -> None:
        project.write("controllers/users.controller.py", CONTROLLER)
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.LOADED
        assert outcome.ok
        assert isinstance(outcome.module, Controller)
        assert list(outcome.members) == ["GET"]
        assert outcome.elapsed >= 0
        assert outcome.route.transport_path == "/users"
        outcome.raise_for_status()

    async def test_missing_default(self, project) -> None:
        project.write("controllers/users.controller.py", "x = 1\n")
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.MISSING_DEFAULT_EXPORT
        assert outcome.module is None

    async def test_none_default_is_missing(self, project) -> None:
        project.write("controllers/users.controller.py", "default = None\n")
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.MISSING_DEFAULT_EXPORT

    async def test_wrong_type(self, project) -> None:
        project.write("controllers/users.controller.py", "default = 42\n")
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.NOT_EXTENDS_VALID_CLASS
        with pytest.raises(ShapeError, match="not-extends-valid-class"):
            outcome.raise_for_status()

    async def test_base_class_itself_is_rejected(self, project) -> None:
        project.write(
            "controllers/users.controller.py",
            "from roost import Controller\ndefault = Controller\n",
        )
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.NOT_EXTENDS_VALID_CLASS

    async def test_other_kind_is_rejected(self, project) -> None:
        project.write(
            "controllers/users.controller.py",
            """
            from roost import Pipe

            class Auth(Pipe):
                def handler(self, request, reply, next):
                    next()

            default = Auth
            """,
        )
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.NOT_EXTENDS_VALID_CLASS

    async def test_failed_import(self, project) -> None:
        project.write("controllers/users.controller.py", "def broken(:\n")
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.FAILED_IMPORT
        assert isinstance(outcome.error, SyntaxError)
        with pytest.raises(ModuleImportError):
            outcome.raise_for_status()

    async def test_failed_import_is_not_cached(self, project) -> None:
        path = project.write("controllers/users.controller.py", "raise RuntimeError('boom')\n")
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.FAILED_IMPORT

        project.write("controllers/users.controller.py", CONTROLLER)
        outcome = await load_one(ControllerLoader, project)
        assert outcome.ok
        forget_file(path)

    async def test_constructor_error(self, project) -> None:
        project.write(
            "controllers/users.controller.py",
            """
            from roost import Controller

            class Users(Controller):
                def __init__(self, server):
                    raise ValueError("no database")

            default = Users
            """,
        )
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.CONSTRUCTOR_ERROR
        assert isinstance(outcome.error, ConstructionError)
        assert isinstance(outcome.error.cause, ValueError)
        with pytest.raises(ConstructionError, match="no database"):
            outcome.raise_for_status()

    async def test_member_access_error(self, project) -> None:
        project.write(
            "controllers/users.controller.py",
            """
            from roost import Controller

            class Users(Controller):
                @property
                def GET(self):
                    raise RuntimeError("boom")

            default = Users
            """,
        )
        project.write("controllers/posts.controller.py", CONTROLLER)
        server = project.server()
        outcomes = await ControllerLoader(server).load_all()
        by_path = {o.route.relative_path: o for o in outcomes}
        assert by_path["posts.controller.py"].ok
        broken = by_path["users.controller.py"]
        assert broken.status is LoadStatus.CONSTRUCTOR_ERROR
        assert isinstance(broken.error, ConstructionError)
        assert isinstance(broken.error.cause, RuntimeError)

    async def test_exit_at_import_is_failed_import(self, project) -> None:
        project.write("pipes/@.pipe.py", "import sys\nsys.exit(1)\n")
        outcome = await load_one(PipeLoader, project)
        assert outcome.status is LoadStatus.FAILED_IMPORT
        assert isinstance(outcome.error, SystemExit)

    async def test_shape_fault_status(self, project) -> None:
        project.write(
            "controllers/users.controller.py",
            """
            from roost import Controller

            class Users(Controller):
                POST = []

            default = Users
            """,
        )
        outcome = await load_one(ControllerLoader, project)
        assert outcome.status is LoadStatus.ARRAY_EMPTY
        assert outcome.faults[0].member == "POST"
        with pytest.raises(ShapeError, match="array-empty"):
            outcome.raise_for_status()


class TestOrdering:
    async def test_outcomes_keep_discovery_order(self, project) -> None:
        for name in ("a", "c", "b", "d"):
            project.write(f"controllers/{name}.controller.py", CONTROLLER)
        finished: list[str] = []
        # Later-discovered files finish first
        delays = {"d": 0.3, "c": 0.2, "b": 0.1, "a": 0.0}

        class Staggered(ControllerLoader):
            async def load(self, route):
                await anyio.sleep(delays[route.relative_path[0]])
                outcome = await super().load(route)
                finished.append(route.relative_path)
                return outcome

        outcomes = await Staggered(project.server()).load_all()
        expected = [
            "d.controller.py",
            "c.controller.py",
            "b.controller.py",
            "a.controller.py",
        ]
        assert finished == expected[::-1]
        assert [o.route.relative_path for o in outcomes] == expected

    async def test_explicit_routes(self, project) -> None:
        project.write("controllers/a.controller.py", CONTROLLER)
        server = project.server()
        loader = ControllerLoader(server)
        routes = await loader.discover()
        assert await loader.load_all(routes[:0]) == []


class TestServiceLoader:
    async def test_returns_class(self, project) -> None:
        project.write(
            "services/db.service.py",
            """
            from roost import Service

            class Database(Service):
                pass

            default = Database
            """,
        )
        outcome = await load_one(ServiceLoader, project)
        assert outcome.ok
        assert isinstance(outcome.module, type)
        assert outcome.module.__name__ == "Database"

    async def test_services_always_compact(self, project) -> None:
        project.write("services/db.service.py", "default = 1\n")
        server = project.server(mode="tree")
        loader = ServiceLoader(server)
        assert loader.mode == "compact"
        assert loader.directory == project.root.resolve() / "services"


class TestPipeLoader:
    async def test_function_export(self, project) -> None:
        project.write(
            "pipes/@.pipe.py",
            """
            def default(request, reply, next):
                next()
            """,
        )
        outcome = await load_one(PipeLoader, project)
        assert outcome.ok
        assert isinstance(outcome.module, Pipe)
        assert type(outcome.module).__name__ == "@.pipe.py"
        [handler] = outcome.members["handler"]
        assert handler.__name__ == "default"

    async def test_list_export(self, project) -> None:
        project.write(
            "pipes/@.pipe.py",
            """
            def first(request, reply, next):
                next()

            async def second(request, reply, next):
                next()

            default = [first, second]
            """,
        )
        outcome = await load_one(PipeLoader, project)
        assert outcome.ok
        assert len(outcome.members["handler"]) == 2

    async def test_class_without_handler(self, project) -> None:
        project.write(
            "pipes/@.pipe.py",
            """
            from roost import Pipe

            class Empty(Pipe):
                pass

            default = Empty
            """,
        )
        outcome = await load_one(PipeLoader, project)
        assert outcome.status is LoadStatus.MISSING_SOME_MEMBER_DECLARATION


class TestMiddlewareLoader:
    async def test_neither_member_fails_construction(self, project) -> None:
        project.write(
            "middlewares/@.middleware.py",
            """
            from roost import Middleware

            class Nothing(Middleware):
                pass

            default = Nothing
            """,
        )
        outcome = await load_one(MiddlewareLoader, project)
        assert outcome.status is LoadStatus.CONSTRUCTOR_ERROR
        assert isinstance(outcome.error, ShapeError)

    async def test_list_split_by_arity(self, project) -> None:
        project.write(
            "middlewares/@.middleware.py",
            """
            def log(request, reply, next):
                next()

            def recover(error, request, reply, next):
                reply.json({"recovered": True})

            default = [log, recover]
            """,
        )
        outcome = await load_one(MiddlewareLoader, project)
        assert outcome.ok
        assert isinstance(outcome.module, Middleware)
        assert len(outcome.members["handler"]) == 1
        assert len(outcome.members["errors"]) == 1

    async def test_errors_only(self, project) -> None:
        project.write(
            "middlewares/@.middleware.py",
            """
            from roost import Middleware

            class Recover(Middleware):
                def errors(self, error, request, reply, next):
                    next(error)

            default = Recover
            """,
        )
        outcome = await load_one(MiddlewareLoader, project)
        assert outcome.ok
        assert list(outcome.members) == ["errors"]


class TestSchemaLoader:
    async def test_mapping_export(self, project) -> None:
        project.write(
            "schemas/users.schema.py",
            """
            from roost.validation import required

            default = {"post": {"body": {"name": [required]}}}
            """,
        )
        outcome = await load_one(SchemaLoader, project)
        assert outcome.ok
        assert isinstance(outcome.module, Schema)
        assert list(outcome.members) == ["POST"]

    async def test_empty_verb_schema(self, project) -> None:
        project.write(
            "schemas/users.schema.py",
            """
            from roost import Schema

            class Users(Schema):
                GET = {}

            default = Users
            """,
        )
        outcome = await load_one(SchemaLoader, project)
        assert outcome.status is LoadStatus.MISSING_VALIDATION_SCHEMAS


class TestImportFile:
    def test_cached_by_path(self, project) -> None:
        path = project.write("shared/thing.service.py", "VALUE = object()\n")
        first = import_file(path)
        second = import_file(str(path))
        assert first is second
        forget_file(path)
        assert import_file(path) is not first
        forget_file(path)
