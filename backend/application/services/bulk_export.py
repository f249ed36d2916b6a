"""
Bulk BOM export.

Runs the BOM pipeline for many projects in parallel. Every project gets
its own pipeline run; a failure in one project is recorded in its outcome
and never aborts the others.
"""

from __future__ import annotations
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from domain.catalog.entities import Project
from domain.catalog.repositories import CatalogSnapshotRepository

from .bom_service import BomReport, BomService, engine_setting

logger = logging.getLogger(__name__)

CatalogProvider = Callable[[Project], CatalogSnapshotRepository]


@dataclass
class ProjectOutcome:
    project_id: str
    project_name: str
    report: Optional[BomReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BulkExportResult:
    outcomes: List[ProjectOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> List[ProjectOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[ProjectOutcome]:
        return [o for o in self.outcomes if not o.ok]


def run_bulk_export(
    projects: Iterable[Project],
    catalog_for: CatalogProvider,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> BulkExportResult:
    """
    Build the BOM report of every project.

    At most ``max_workers`` pipelines run at once (``BULK_MAX_WORKERS``
    by default). Setting ``cancel_event`` stops dispatching new projects;
    pipelines already running finish and keep their outcome, the rest are
    listed in ``skipped``. Outcomes follow the input order of ``projects``.
    """
    projects = list(projects)
    workers = max(1, int(max_workers or engine_setting('BULK_MAX_WORKERS', 4)))
    cancel_event = cancel_event or threading.Event()
    result = BulkExportResult()
    outcomes: Dict[int, ProjectOutcome] = {}

    logger.info(f"Bulk export of {len(projects)} projects with {workers} workers")

    queue = iter(enumerate(projects))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='bom-export') as executor:
        running = {}

        def dispatch():
            while len(running) < workers and not cancel_event.is_set():
                entry = next(queue, None)
                if entry is None:
                    return
                index, project = entry
                running[executor.submit(_export_project, project, catalog_for)] = index

        dispatch()
        while running:
            done, _ = wait(running, return_when=FIRST_COMPLETED)
            for future in done:
                outcomes[running.pop(future)] = future.result()
            dispatch()

    for index, project in enumerate(projects):
        if index in outcomes:
            result.outcomes.append(outcomes[index])
        else:
            result.skipped.append(project.id)

    result.cancelled = cancel_event.is_set()
    if result.cancelled:
        logger.warning(f"Bulk export cancelled, {len(result.skipped)} projects skipped")
    logger.info(
        f"Bulk export finished: {len(result.succeeded)} succeeded, {len(result.failed)} failed"
    )
    return result


def _export_project(project: Project, catalog_for: CatalogProvider) -> ProjectOutcome:
    outcome = ProjectOutcome(project_id=project.id, project_name=project.name)
    try:
        catalog = catalog_for(project)
        outcome.report = BomService(catalog).report_for_project(project)
    except Exception as e:
        logger.error(f"Error exporting materials for project {project.id}: {e}")
        outcome.error = str(e)
    return outcome
