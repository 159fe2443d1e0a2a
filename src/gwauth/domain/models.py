from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

# Resources section of a compiled CloudFormation template, keyed by logical id
ResourceTable = dict[str, dict[str, Any]]

# plain string id or a CloudFormation intrinsic like {"Ref": "MyAuthorizer"}
AuthorizerRef = Union[str, dict[str, Any]]

AWS_IAM = "AWS_IAM"
COGNITO_USER_POOLS = "COGNITO_USER_POOLS"
CALLER_CREDENTIALS_ARN = "arn:aws:iam::*:user/*"


class AuthMode(str, Enum):
    NONE = "none"
    IAM = "iam"
    COGNITO_POOLS = "cognito_pools"


class EndpointDeclaration(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    auth_mode: AuthMode = AuthMode.NONE
    authorizer_id: Optional[AuthorizerRef] = None
    delegate_caller_credentials: bool = False

    function_name: str = ""

    @property
    def needs_patch(self) -> bool:
        return self.auth_mode is not AuthMode.NONE or self.delegate_caller_credentials


@dataclass(frozen=True)
class AppliedPatch:
    resource_id: str
    method: str
    path: str
    fields: tuple[str, ...]  # e.g. ("AuthorizationType", "Integration.Credentials")
