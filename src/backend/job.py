"""作業選択と端末のプレス作業情報

JobSelectionGuard: 班・作業者・工法の選択状態で操作を制限する
PressJobContext: 端末IPから特定したプレス作業と設備一覧を保持する
"""

import asyncio

from backend.logging import job_logger as logger
from backend.mes_client import MesApiClient, MesApiError
from schemas.job import JobSelection, ModbusDevice, PressJob
from schemas.result import ValidationResult


class JobSelectionGuard:
    """作業選択のガード

    Attributes:
        selection (JobSelection): 作業選択フォーム
        device_id (str): 対象設備ID (PressJobContext から設定される)
    """

    def __init__(self, device_id: str = "") -> None:
        self.selection = JobSelection()
        self.device_id = device_id

    def update_selection(
        self,
        team_id: str | None = None,
        personnel_id: str | None = None,
        process_id: str | None = None,
    ) -> JobSelection:
        """作業選択を置き換える"""
        self.selection = JobSelection(
            team_id=team_id, personnel_id=personnel_id, process_id=process_id
        )
        logger.debug(f"Job selection updated: {self.selection.model_dump()}")
        return self.selection

    def reset_selection(self) -> None:
        self.selection = JobSelection()

    @property
    def current_user_name(self) -> str:
        """金型ロック/解除の操作者名 (作業者ID)"""
        return self.selection.personnel_id or ""

    def can_open_mold_panel(self) -> bool:
        """班・作業者・設備IDがすべて揃っている場合のみTrue"""
        return bool(
            self.selection.team_id and self.selection.personnel_id and self.device_id
        )

    def validate_job_selection(self) -> ValidationResult:
        """作業選択が揃っているか検証する (班 → 作業者 → 工法 の順)"""
        if not self.selection.team_id:
            return ValidationResult.fail("班を選択してください")
        if not self.selection.personnel_id:
            return ValidationResult.fail("作業者を選択してください")
        if not self.selection.process_id:
            return ValidationResult.fail("予定工法を選択してください")
        return ValidationResult.ok()


class PressJobContext:
    """端末のプレス作業情報

    Attributes:
        press_jobs (list[PressJob]): 端末IPに対応するプレス作業
        devices (list[ModbusDevice]): Modbus設備一覧
        loading (bool): 読み込み中フラグ
    """

    def __init__(self, client: MesApiClient) -> None:
        self._client = client
        self.press_jobs: list[PressJob] = []
        self.devices: list[ModbusDevice] = []
        self.loading = False

    @property
    def current_device_id(self) -> str:
        """最初に設備IDを持つプレス作業の設備ID"""
        for job in self.press_jobs:
            if job.device_id:
                return job.device_id
        return ""

    @property
    def locked_mold_codes(self) -> list[str]:
        """プレス作業に記録されたロック中の金型番号"""
        for job in self.press_jobs:
            if job.mould_code:
                return job.locked_codes
        return []

    async def fetch_press_jobs(self) -> None:
        try:
            self.press_jobs = await self._client.get_press_job_by_handle_ip()
        except MesApiError as e:
            logger.error(f"Failed to load press jobs: {e.message}")
            self.press_jobs = []
            return
        logger.debug(
            f"Press jobs loaded (device={self.current_device_id!r}, "
            f"locked={len(self.locked_mold_codes)})"
        )

    async def fetch_devices(self) -> None:
        try:
            self.devices = await self._client.list_modbus_device()
        except MesApiError as e:
            logger.error(f"Failed to load device list: {e.message}")
            self.devices = []
            return
        logger.debug(f"Device list loaded ({len(self.devices)} devices)")

    async def init_data(self) -> None:
        """プレス作業と設備一覧を並行して読み込む"""
        self.loading = True
        try:
            await asyncio.gather(self.fetch_press_jobs(), self.fetch_devices())
        finally:
            self.loading = False
        logger.info(f"Job data loaded (device={self.current_device_id!r})")
