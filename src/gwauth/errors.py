from __future__ import annotations

from typing import Iterable


class GwAuthError(Exception):
    """Base class for everything gwauth raises on purpose."""


class ResourceNotFound(GwAuthError):
    """
    A derived logical id has no entry in the compiled template.

    Means our naming and the framework's naming disagree, or the endpoint was
    never compiled. Deterministic, so retrying is pointless.
    """

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Bad methodName: {identifier} not found in template resources")
        self.identifier = identifier


class ValidationError(GwAuthError, ValueError):
    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid endpoint declarations")


class ServiceLoadError(GwAuthError):
    pass
