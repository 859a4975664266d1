from __future__ import annotations

from dataclasses import dataclass, field

from .api.connection import ApiConfig, ApiConnection
from .approval.service import ApprovalWorkflow, StagedApproval
from .attendance.manual_entry import ManualEntryService
from .attendance.repository import AttendanceRepository
from .attendance.rest_attendance_repository import RestAttendanceRepository
from .core.constants import DEFAULT_END_TIME, DEFAULT_START_TIME
from .directory.rest_directory_repository import RestDirectoryRepository
from .directory.service import DirectoryService
from .reconciliation.service import ReconciliationController
from .staging.repository import StagingRepository
from .staging.rest_staging_repository import RestStagingRepository
from .staging.store import StagingStore


@dataclass(frozen=True)
class CompanyDesk:
    """Per-company working state: the staging batch and the pending-approval list."""

    store: StagingStore
    staged_approval: StagedApproval
    workflow: ApprovalWorkflow


@dataclass
class DeskRegistry:
    attendance: AttendanceRepository
    staging: StagingRepository
    directory: DirectoryService
    default_start_time: str = DEFAULT_START_TIME
    default_end_time: str = DEFAULT_END_TIME
    _desks: dict[str, CompanyDesk] = field(default_factory=dict)

    def for_company(self, company_id: str) -> CompanyDesk:
        key = str(company_id)
        desk = self._desks.get(key)
        if desk is None:
            store = StagingStore(
                key,
                self.staging,
                self.directory,
                default_start_time=self.default_start_time,
                default_end_time=self.default_end_time,
            )
            desk = CompanyDesk(
                store=store,
                staged_approval=StagedApproval(store, self.attendance),
                workflow=ApprovalWorkflow(key, self.attendance),
            )
            self._desks[key] = desk
        return desk

    def close_company(self, company_id: str) -> None:
        desk = self._desks.pop(str(company_id), None)
        if desk:
            desk.store.close()
            desk.workflow.close()


@dataclass(frozen=True)
class Container:
    conn: ApiConnection

    attendance_repo: RestAttendanceRepository
    staging_repo: RestStagingRepository
    directory_repo: RestDirectoryRepository

    directory_service: DirectoryService
    reconciliation: ReconciliationController
    manual_entry_service: ManualEntryService
    desks: DeskRegistry


def build_container(*, api_config: dict, defaults: dict | None = None) -> Container:
    config = ApiConfig(
        base_url=str(api_config["base_url"]),
        token=api_config.get("token") or None,
        timeout=float(api_config["timeout"]) if api_config.get("timeout") else None,
    )
    conn = ApiConnection.get_instance(config)
    defaults = defaults or {}

    attendance_repo = RestAttendanceRepository(conn)
    staging_repo = RestStagingRepository(conn)
    directory_repo = RestDirectoryRepository(conn)

    directory_service = DirectoryService(directory_repo)
    reconciliation = ReconciliationController(attendance_repo)
    manual_entry_service = ManualEntryService(attendance_repo)
    desks = DeskRegistry(
        attendance=attendance_repo,
        staging=staging_repo,
        directory=directory_service,
        default_start_time=defaults.get("start_time", DEFAULT_START_TIME),
        default_end_time=defaults.get("end_time", DEFAULT_END_TIME),
    )

    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        staging_repo=staging_repo,
        directory_repo=directory_repo,
        directory_service=directory_service,
        reconciliation=reconciliation,
        manual_entry_service=manual_entry_service,
        desks=desks,
    )
