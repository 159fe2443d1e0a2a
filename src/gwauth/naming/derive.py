from __future__ import annotations

import re


DEFAULT_PREFIX = "ApiGatewayMethod"

_PLACEHOLDER = re.compile(r"\{(.*)\}")
_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")


def normalize_path_segment(segment: str) -> str:
    # items -> Items, {id} -> IdVar, user-profile -> UserDashprofile
    s = segment.lower()
    s = s.replace("-", "Dash")
    s = _PLACEHOLDER.sub(r"\1Var", s)
    s = _NON_ALNUM.sub("", s)
    return s[:1].upper() + s[1:]


def normalize_path(path: str) -> str:
    # empty segments normalize to "" so extra slashes drop out
    return "".join(normalize_path_segment(seg) for seg in path.split("/"))


def normalize_method(method: str) -> str:
    method = method.strip()
    return method[:1].upper() + method[1:].lower()


def derive_resource_id(path: str, method: str, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Map an http event's (path, method) to the logical id of the
    AWS::ApiGateway::Method resource the framework compiled for it.

    GET /items/{id} -> ApiGatewayMethodItemsIdVarGet
    """
    return f"{prefix}{normalize_path(path)}{normalize_method(method)}"
