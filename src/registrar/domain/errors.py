"""Failures raised while reconciling foundations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable


class ManifestFetchError(RuntimeError):
    """Raised when a foundation manifest cannot be retrieved or understood."""

    def __init__(self, message: str, *, data_url: str) -> None:
        super().__init__(message)
        self.data_url = data_url


class ManifestUnavailableError(ManifestFetchError):
    """The manifest endpoint could not be reached."""


class ManifestStatusError(ManifestFetchError):
    """The manifest endpoint answered with something other than 200 OK."""

    def __init__(self, message: str, *, data_url: str, status_code: int) -> None:
        super().__init__(message, data_url=data_url)
        self.status_code = status_code


class ManifestFormatError(ManifestFetchError):
    """The manifest body does not match the expected structure."""


class FoundationTimeoutError(RuntimeError):
    """Raised when a foundation pass exceeds its time budget."""

    def __init__(self, foundation_id: str, timeout_seconds: float) -> None:
        super().__init__(
            f"processing foundation {foundation_id} timed out after {timeout_seconds:g}s"
        )
        self.foundation_id = foundation_id
        self.timeout_seconds = timeout_seconds


@dataclass(frozen=True, slots=True)
class ProjectWriteError:
    """A register or unregister call that failed for a single project."""

    foundation_id: str
    project_name: str
    operation: Literal["register", "unregister"]
    message: str

    def __str__(self) -> str:
        return f"error {self.operation}ing project {self.project_name}: {self.message}"


@dataclass(frozen=True, slots=True)
class FoundationFailure:
    """One failure attributed to a foundation in a run."""

    foundation_id: str
    message: str

    def __str__(self) -> str:
        return f"foundation {self.foundation_id}: {self.message}"


class RegistrarRunError(RuntimeError):
    """Aggregate of every failure observed during a run."""

    def __init__(self, failures: Iterable[FoundationFailure]) -> None:
        self.failures = tuple(failures)
        super().__init__("\n".join(str(failure) for failure in self.failures))

    @property
    def foundation_ids(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for failure in self.failures:
            seen.setdefault(failure.foundation_id, None)
        return tuple(seen)
