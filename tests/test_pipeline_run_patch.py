import json
from pathlib import Path

import pytest

from gwauth.config import load_settings
from gwauth.errors import ResourceNotFound
from gwauth.orchestrator.pipeline import run_patch


def write_json(p: Path, data: dict) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data), encoding="utf-8")


def method(http_method: str) -> dict:
    return {
        "Type": "AWS::ApiGateway::Method",
        "Properties": {
            "HttpMethod": http_method,
            "AuthorizationType": "NONE",
            "Integration": {"Type": "AWS_PROXY"},
        },
    }


SERVICE = {
    "service": "items",
    "functions": {
        "getItem": {
            "events": [
                {
                    "http": {
                        "method": "GET",
                        "path": "items/{id}",
                        "useIAMAuth": True,
                        "invokeWithCallerCredentials": True,
                    }
                }
            ]
        },
        "listItems": {"events": [{"http": "GET items"}]},
    },
}


def test_run_patch_writes_patched_template(tmp_path: Path):
    service_p = tmp_path / "service.json"
    tmpl_p = tmp_path / ".serverless" / "cloudformation-template-update-stack.json"
    out_p = tmp_path / "out" / "patched.json"

    write_json(service_p, SERVICE)
    write_json(
        tmpl_p,
        {"Resources": {"ApiGatewayMethodItemsIdVarGet": method("GET"), "ApiGatewayMethodItemsGet": method("GET")}},
    )

    result = run_patch(service_p, tmpl_p, out_path=out_p)

    assert result.written
    assert result.patched == 1
    assert len(result.declarations) == 2

    data = json.loads(out_p.read_text(encoding="utf-8"))
    props = data["Resources"]["ApiGatewayMethodItemsIdVarGet"]["Properties"]
    assert props["AuthorizationType"] == "AWS_IAM"
    assert props["Integration"]["Credentials"] == "arn:aws:iam::*:user/*"
    assert data["Resources"]["ApiGatewayMethodItemsGet"]["Properties"]["AuthorizationType"] == "NONE"

    # source template stays as compiled when --out is given
    original = json.loads(tmpl_p.read_text(encoding="utf-8"))
    assert original["Resources"]["ApiGatewayMethodItemsIdVarGet"]["Properties"]["AuthorizationType"] == "NONE"


def test_run_patch_dry_run_writes_nothing(tmp_path: Path):
    service_p = tmp_path / "service.json"
    tmpl_p = tmp_path / "template.json"
    write_json(service_p, SERVICE)
    write_json(tmpl_p, {"Resources": {"ApiGatewayMethodItemsIdVarGet": method("GET")}})
    before = tmpl_p.read_text(encoding="utf-8")

    result = run_patch(service_p, tmpl_p, dry_run=True)

    assert not result.written
    assert result.patched == 1
    assert tmpl_p.read_text(encoding="utf-8") == before


def test_run_patch_missing_resource_does_not_write(tmp_path: Path):
    service_p = tmp_path / "service.json"
    tmpl_p = tmp_path / "template.json"
    write_json(service_p, SERVICE)
    write_json(tmpl_p, {"Resources": {"SomethingElse": method("GET")}})
    before = tmpl_p.read_text(encoding="utf-8")

    with pytest.raises(ResourceNotFound):
        run_patch(service_p, tmpl_p)

    assert tmpl_p.read_text(encoding="utf-8") == before


def test_run_patch_uses_configured_credentials(tmp_path: Path):
    service_p = tmp_path / "service.json"
    tmpl_p = tmp_path / "template.json"
    write_json(service_p, SERVICE)
    write_json(tmpl_p, {"Resources": {"ApiGatewayMethodItemsIdVarGet": method("GET")}})

    settings = load_settings(credentials_arn="arn:aws:iam::111122223333:role/invoker")
    run_patch(service_p, tmpl_p, settings=settings)

    data = json.loads(tmpl_p.read_text(encoding="utf-8"))
    creds = data["Resources"]["ApiGatewayMethodItemsIdVarGet"]["Properties"]["Integration"]["Credentials"]
    assert creds == "arn:aws:iam::111122223333:role/invoker"
