from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from gwauth.domain.models import (
    AWS_IAM,
    CALLER_CREDENTIALS_ARN,
    COGNITO_USER_POOLS,
    AppliedPatch,
    AuthMode,
    EndpointDeclaration,
    ResourceTable,
)
from gwauth.errors import GwAuthError, ResourceNotFound, ValidationError
from gwauth.naming.derive import DEFAULT_PREFIX, derive_resource_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedPatch:
    resource_id: str
    declaration: EndpointDeclaration


@dataclass(frozen=True)
class PatchOutcome:
    """Either a fully resolved plan or the error that stopped planning."""

    plan: Tuple[PlannedPatch, ...] = ()
    error: Optional[GwAuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Tuple[PlannedPatch, ...]:
        if self.error is not None:
            raise self.error
        return self.plan


def validate_declarations(endpoints: Iterable[EndpointDeclaration]) -> List[str]:
    problems: List[str] = []
    for i, e in enumerate(endpoints):
        if not e.needs_patch:
            continue
        where = f"endpoint #{i} ({e.method} {e.path})"
        if not e.method.strip():
            problems.append(f"{where}: method is empty")
        if e.auth_mode is AuthMode.COGNITO_POOLS and not e.authorizer_id:
            problems.append(f"{where}: useCognitoAuth requires authorizerId")
    return problems


def _shape_problem(resource: Any, e: EndpointDeclaration) -> Optional[str]:
    # anything the mutation phase would trip over has to fail here, before any write
    if not isinstance(resource, dict):
        return "resource is not a mapping"
    props = resource.get("Properties", {})
    if not isinstance(props, dict):
        return "Properties is not a mapping"
    if e.delegate_caller_credentials and not isinstance(props.get("Integration", {}), dict):
        return "Properties.Integration is not a mapping"
    return None


def plan_auth_patches(
    endpoints: Iterable[EndpointDeclaration],
    resources: ResourceTable,
    prefix: str = DEFAULT_PREFIX,
) -> PatchOutcome:
    """
    Validate every declaration, then resolve every derived id against the table
    and check the matched resource can take the writes.

    Nothing is mutated here. Stops at the first unresolvable id in declared order.
    """
    endpoints = list(endpoints)

    problems = validate_declarations(endpoints)
    if problems:
        return PatchOutcome(error=ValidationError(problems))

    plan: List[PlannedPatch] = []
    for e in endpoints:
        if not e.needs_patch:
            continue
        resource_id = derive_resource_id(e.path, e.method, prefix=prefix)
        if resource_id not in resources:
            return PatchOutcome(error=ResourceNotFound(resource_id))
        problem = _shape_problem(resources[resource_id], e)
        if problem:
            return PatchOutcome(error=ValidationError([f"{resource_id}: {problem}"]))
        plan.append(PlannedPatch(resource_id=resource_id, declaration=e))

    return PatchOutcome(plan=tuple(plan))


def planned_fields(e: EndpointDeclaration) -> Tuple[str, ...]:
    fields: List[str] = []
    if e.auth_mode is AuthMode.IAM:
        fields.append("AuthorizationType")
    elif e.auth_mode is AuthMode.COGNITO_POOLS:
        fields.extend(["AuthorizerId", "AuthorizationType"])
    if e.delegate_caller_credentials:
        fields.append("Integration.Credentials")
    return tuple(fields)


def _patch_resource(
    resource: dict[str, Any],
    e: EndpointDeclaration,
    credentials_arn: str,
) -> Tuple[str, ...]:
    props = resource.setdefault("Properties", {})

    if e.auth_mode is AuthMode.IAM:
        props["AuthorizationType"] = AWS_IAM
    elif e.auth_mode is AuthMode.COGNITO_POOLS:
        props["AuthorizerId"] = e.authorizer_id
        props["AuthorizationType"] = COGNITO_USER_POOLS

    if e.delegate_caller_credentials:
        props.setdefault("Integration", {})["Credentials"] = credentials_arn

    return planned_fields(e)


def apply_auth_patches(
    endpoints: Iterable[EndpointDeclaration],
    resources: ResourceTable,
    *,
    credentials_arn: str = CALLER_CREDENTIALS_ARN,
    prefix: str = DEFAULT_PREFIX,
) -> List[AppliedPatch]:
    """
    Patch AuthorizationType / AuthorizerId / Integration.Credentials on the
    compiled method resources, in place.

    All-or-nothing: raises ValidationError or ResourceNotFound before any
    resource is touched.
    """
    plan = plan_auth_patches(endpoints, resources, prefix=prefix).unwrap()

    applied: List[AppliedPatch] = []
    seen: dict[str, EndpointDeclaration] = {}

    for p in plan:
        e = p.declaration
        prev = seen.get(p.resource_id)
        if prev is not None:
            logger.warning(
                "%s %s and %s %s both map to %s; later declaration wins",
                prev.method, prev.path, e.method, e.path, p.resource_id,
            )
        seen[p.resource_id] = e

        fields = _patch_resource(resources[p.resource_id], e, credentials_arn)
        logger.debug("patched %s: %s", p.resource_id, ", ".join(fields))
        applied.append(
            AppliedPatch(resource_id=p.resource_id, method=e.method, path=e.path, fields=fields)
        )

    return applied
