"""
JSON file loaders for catalog snapshots and projects.

Catalog data is fetched by the caller ahead of time and saved as JSON;
these helpers turn such files into domain objects.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

from domain.catalog.entities import Project
from domain.catalog.snapshot import InMemoryCatalogSnapshot, project_from_dict
from domain.shared.exceptions import MalformedSnapshotException, ValidationException

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_json(path: PathLike) -> Any:
    path = Path(path)
    try:
        with path.open(encoding='utf-8') as fh:
            return json.load(fh)
    except json.JSONDecodeError as e:
        raise MalformedSnapshotException(f"{path.name} is not valid JSON: {e}", str(path)) from e


def load_catalog_snapshot(path: PathLike) -> InMemoryCatalogSnapshot:
    snapshot = InMemoryCatalogSnapshot.from_dict(read_json(path))
    logger.info(f"Loaded catalog snapshot from {path}: {snapshot!r}")
    return snapshot


def load_projects(path: PathLike) -> List[Project]:
    """
    Projects from a JSON file holding either a list of projects or an
    object with a ``projects`` list.
    """
    payload = read_json(path)
    if isinstance(payload, dict):
        payload = payload.get('projects')
    if not isinstance(payload, list):
        raise MalformedSnapshotException("Projects file must hold a list of projects", str(path))

    projects = []
    for index, row in enumerate(payload):
        try:
            projects.append(project_from_dict(row))
        except ValidationException as e:
            e.details['path'] = f"projects[{index}]"
            raise
    return projects
