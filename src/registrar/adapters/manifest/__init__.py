"""Public interface for the foundation manifest adapter."""

from __future__ import annotations

from .fetcher import HttpManifestFetcher, parse_manifest
from .schema import ManifestPayload, ProjectPayload, RepositoryPayload
from .translator import translate_project

__all__ = [
    "HttpManifestFetcher",
    "ManifestPayload",
    "ProjectPayload",
    "RepositoryPayload",
    "parse_manifest",
    "translate_project",
]
