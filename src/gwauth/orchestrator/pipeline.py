from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gwauth.config import Settings, load_settings
from gwauth.domain.models import AppliedPatch, EndpointDeclaration
from gwauth.patch.applier import apply_auth_patches
from gwauth.service.declarations import (
    declarations_from_service,
    load_service,
    load_template,
    template_resources,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatchRunResult:
    declarations: list[EndpointDeclaration]
    applied: list[AppliedPatch]
    out_path: str
    written: bool

    @property
    def patched(self) -> int:
        return len(self.applied)


def run_patch(
    service_path: Path,
    template_path: Path,
    out_path: Optional[Path] = None,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
) -> PatchRunResult:
    settings = settings or load_settings()

    service = load_service(service_path)
    template = load_template(template_path)
    declarations = declarations_from_service(service)

    # raises before touching the template if anything is off
    applied = apply_auth_patches(
        declarations,
        template_resources(template),
        credentials_arn=settings.credentials_arn,
        prefix=settings.resource_prefix,
    )

    target = (out_path or template_path).expanduser()
    written = False
    if not dry_run:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(template, indent=2) + "\n", encoding="utf-8")
        written = True
        logger.info("wrote patched template to %s", target)

    return PatchRunResult(
        declarations=declarations,
        applied=applied,
        out_path=str(target),
        written=written,
    )
