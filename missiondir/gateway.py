# missiondir/gateway.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from graphql import GraphQLError, build_schema, execute_sync, parse, validate
from pydantic import BaseModel

from missiondir.auth_scopes import CallerIdentity, Operation, Surface, authorize, require_caller
from missiondir.errors import Forbidden, GenerationError, StoreError, ValidationError
from missiondir.metrics import MISSION_OPERATIONS
from missiondir.missions import MissionService

log = logging.getLogger("missiondir.gateway")

SCHEMA_SDL = """\
type Query {
  GetMission(id: ID!): MissionOutput
}

type MissionOutput {
  id: String
  name: String
  description: String
}

input CreateMissionInput {
  name: String!
  description: String!
}

type CreateMissionOutput {
  id: ID!
  name: String!
}

type Mutation {
  createMission(input: CreateMissionInput!): CreateMissionOutput!
}
"""


class QueryRequest(BaseModel):
    query: str
    operationName: Optional[str] = None
    variables: Optional[dict[str, Any]] = None


# =============================================================================
# Resolvers
# =============================================================================


def _counted(operation: Operation, fn: Callable[..., Any]) -> Callable[..., Any]:
    """Authorize, run, and count one root field."""

    def _resolve(_root: Any, info: Any, **kwargs: Any) -> Any:
        ctx = info.context
        op = operation.value
        try:
            authorize(ctx["caller"].scope, operation)
            result = fn(ctx["service"], **kwargs)
        except ValidationError:
            MISSION_OPERATIONS.labels(operation=op, outcome="invalid").inc()
            raise
        except Forbidden:
            MISSION_OPERATIONS.labels(operation=op, outcome="forbidden").inc()
            raise
        except (StoreError, GenerationError):
            MISSION_OPERATIONS.labels(operation=op, outcome="error").inc()
            raise
        MISSION_OPERATIONS.labels(operation=op, outcome="ok" if result is not None else "not_found").inc()
        return result

    return _resolve


def _get_mission(service: MissionService, *, id: str) -> Any:
    return service.get_mission(id)


def _create_mission(service: MissionService, *, input: dict) -> Any:
    return service.create_mission(input["name"], input["description"])


def _build_schema():
    schema = build_schema(SCHEMA_SDL)
    schema.query_type.fields["GetMission"].resolve = _counted(Operation.GET_MISSION, _get_mission)
    schema.mutation_type.fields["createMission"].resolve = _counted(
        Operation.CREATE_MISSION, _create_mission
    )
    return schema


SCHEMA = _build_schema()


# =============================================================================
# Execution
# =============================================================================

# (code, http status) per domain error; anything unknown is an opaque 500
_ERROR_CODES: dict[type, tuple[str, int]] = {
    ValidationError: ("BAD_USER_INPUT", 400),
    Forbidden: ("FORBIDDEN", 403),
    StoreError: ("INTERNAL_SERVER_ERROR", 500),
    GenerationError: ("INTERNAL_SERVER_ERROR", 500),
}


def _format_error(err: GraphQLError, *, default_code: str) -> tuple[dict, int]:
    original = err.original_error
    if original is None:
        # graphql-core's own errors (validation, variable coercion) describe caller input
        code, status, message = default_code, 400, err.message
    else:
        code, status = _ERROR_CODES.get(type(original), ("INTERNAL_SERVER_ERROR", 500))
        message = getattr(original, "public_message", "internal error")
        if status == 500:
            log.error("operation failed path=%s: %s: %s", err.path, type(original).__name__, original)

    body = dict(err.formatted)
    body["message"] = message
    body["extensions"] = {"code": code}
    return body, status


def _error_response(errors: list[GraphQLError], *, data: Any = None, default_code: str) -> tuple[int, dict]:
    formatted = [_format_error(e, default_code=default_code) for e in errors]
    status = max(s for _, s in formatted)
    return status, {"data": data, "errors": [body for body, _ in formatted]}


def execute(service: MissionService, caller: CallerIdentity, req: QueryRequest) -> tuple[int, dict]:
    """
    Run one GraphQL request: parse, validate against the schema, execute.
    Resolvers authorize before touching the mission service.
    Returns (http_status, response_body).
    """
    try:
        document = parse(req.query)
    except GraphQLError as e:
        return _error_response([e], default_code="GRAPHQL_PARSE_FAILED")

    validation_errors = validate(SCHEMA, document)
    if validation_errors:
        return _error_response(validation_errors, default_code="GRAPHQL_VALIDATION_FAILED")

    result = execute_sync(
        SCHEMA,
        document,
        context_value={"service": service, "caller": caller},
        variable_values=req.variables,
        operation_name=req.operationName,
    )
    if result.errors:
        return _error_response(result.errors, data=result.data, default_code="BAD_USER_INPUT")
    return 200, {"data": result.data}


# =============================================================================
# Routes
# =============================================================================


def get_service(request: Request) -> MissionService:
    return request.app.state.mission_service


def build_router(surface: Surface) -> APIRouter:
    """One gateway, mounted once per surface; the surface only caps the scope."""
    router = APIRouter(prefix=f"/{surface.value}", tags=[surface.value])
    caller_dep = require_caller(surface)

    @router.post("/graphql")
    def graphql(
        req: QueryRequest,
        caller: CallerIdentity = Depends(caller_dep),
        service: MissionService = Depends(get_service),
    ) -> JSONResponse:
        status_code, body = execute(service, caller, req)
        return JSONResponse(body, status_code=status_code)

    @router.get("/schema", response_class=PlainTextResponse)
    def schema(_: CallerIdentity = Depends(caller_dep)) -> str:
        return SCHEMA_SDL

    return router
