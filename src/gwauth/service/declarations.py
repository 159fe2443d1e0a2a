from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

import pydantic

from gwauth.domain.models import AuthMode, EndpointDeclaration, ResourceTable
from gwauth.errors import ServiceLoadError, ValidationError

logger = logging.getLogger(__name__)


def _read_json(path: Path, what: str) -> dict[str, Any]:
    if not path.exists():
        raise ServiceLoadError(f"{what} not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ServiceLoadError(f"{what} is not valid JSON: {path} ({exc})") from exc
    if not isinstance(data, dict):
        raise ServiceLoadError(f"{what} must be a JSON object: {path}")
    return data


def load_service(path: Path) -> dict[str, Any]:
    return _read_json(path, "Service definition")


def load_template(path: Path) -> dict[str, Any]:
    tmpl = _read_json(path, "Compiled template")
    if not isinstance(tmpl.get("Resources"), dict):
        raise ServiceLoadError(f"Compiled template has no Resources mapping: {path}")
    return tmpl


def template_resources(template: dict[str, Any]) -> ResourceTable:
    return template["Resources"]


def _from_http_string(fn_name: str, http: str) -> EndpointDeclaration:
    # "GET users/{id}" shorthand; carries no auth flags
    parts = http.split()
    if len(parts) < 2:
        raise ValidationError([f"function {fn_name}: http event '{http}' is not 'METHOD path'"])
    return EndpointDeclaration(path=parts[1], method=parts[0], function_name=fn_name)


def _from_http_mapping(fn_name: str, http: dict[str, Any]) -> EndpointDeclaration:
    path = http.get("path")
    method = http.get("method")
    if path is None or not method:
        raise ValidationError([f"function {fn_name}: http event needs both path and method"])

    # useIAMAuth takes precedence over useCognitoAuth
    if http.get("useIAMAuth"):
        mode = AuthMode.IAM
    elif http.get("useCognitoAuth"):
        mode = AuthMode.COGNITO_POOLS
    else:
        mode = AuthMode.NONE

    try:
        return EndpointDeclaration(
            path=str(path),
            method=str(method).strip(),
            auth_mode=mode,
            authorizer_id=http.get("authorizerId"),
            delegate_caller_credentials=bool(http.get("invokeWithCallerCredentials")),
            function_name=fn_name,
        )
    except pydantic.ValidationError as exc:
        problems = [
            f"function {fn_name}: {'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ValidationError(problems) from exc


def declarations_from_service(service: dict[str, Any]) -> List[EndpointDeclaration]:
    """
    Collect http events from a service definition, in function/event order.

    Accepts both the mapping form and the "METHOD path" string form.
    """
    out: List[EndpointDeclaration] = []
    functions = service.get("functions") or {}

    for fn_name, fn in functions.items():
        for event in (fn or {}).get("events") or []:
            if not isinstance(event, dict) or "http" not in event:
                continue
            http = event["http"]
            if isinstance(http, str):
                out.append(_from_http_string(fn_name, http))
            elif isinstance(http, dict):
                out.append(_from_http_mapping(fn_name, http))
            else:
                raise ValidationError([f"function {fn_name}: unsupported http event {http!r}"])

    logger.debug("collected %d http declarations from %d functions", len(out), len(functions))
    return out
