"""作業選択・参照データ関連エンドポイント

/api/job/selection  - 作業選択 (班・作業者・工法)
/api/job/validation - 作業選択の検証
/api/job/reload     - 端末のプレス作業情報の再読み込み
/api/erp/*          - 班・作業者・工法の一覧
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import get_session
from backend.logging import api_logger as logger
from backend.mes_client import MesApiError
from backend.session import ConsoleSession
from schemas.job import JobSelection, ModbusDevice, Personnel, PressJob, Process, Team
from schemas.result import ValidationResult

router = APIRouter()


class JobSelectionResponse(BaseModel):
    """作業選択レスポンス"""

    selection: JobSelection
    device_id: str
    user_name: str
    can_open_mold_panel: bool


class JobContextResponse(BaseModel):
    """プレス作業情報レスポンス"""

    device_id: str
    locked_mold_codes: list[str]
    press_jobs: list[PressJob]
    devices: list[ModbusDevice]


def _selection_response(session: ConsoleSession) -> JobSelectionResponse:
    guard = session.guard
    return JobSelectionResponse(
        selection=guard.selection,
        device_id=guard.device_id,
        user_name=guard.current_user_name,
        can_open_mold_panel=guard.can_open_mold_panel(),
    )


@router.get("/job/selection", response_model=JobSelectionResponse)
async def get_job_selection(
    session: ConsoleSession = Depends(get_session),
) -> JobSelectionResponse:
    return _selection_response(session)


@router.put("/job/selection", response_model=JobSelectionResponse)
async def update_job_selection(
    selection: JobSelection, session: ConsoleSession = Depends(get_session)
) -> JobSelectionResponse:
    """作業選択を更新"""
    session.guard.update_selection(
        team_id=selection.team_id,
        personnel_id=selection.personnel_id,
        process_id=selection.process_id,
    )
    return _selection_response(session)


@router.get("/job/validation", response_model=ValidationResult)
async def validate_job_selection(
    session: ConsoleSession = Depends(get_session),
) -> ValidationResult:
    """作業選択が揃っているか検証 (班 → 作業者 → 工法 の順)"""
    return session.guard.validate_job_selection()


@router.post("/job/reload", response_model=JobContextResponse)
async def reload_job_data(
    session: ConsoleSession = Depends(get_session),
) -> JobContextResponse:
    """端末IPに対応するプレス作業と設備一覧を読み込み直す"""
    await session.reload_job_data()
    context = session.job_context
    return JobContextResponse(
        device_id=context.current_device_id,
        locked_mold_codes=context.locked_mold_codes,
        press_jobs=context.press_jobs,
        devices=context.devices,
    )


@router.get("/erp/teams", response_model=list[Team])
async def get_teams(session: ConsoleSession = Depends(get_session)) -> list[Team]:
    """班一覧を取得

    Raises:
        HTTPException: MES API エラー時 (502)
    """
    try:
        return await session.client.get_team_list()
    except MesApiError as e:
        logger.error(f"Failed to get teams: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/erp/personnel", response_model=list[Personnel])
async def get_personnel(
    team_id: str | None = None, session: ConsoleSession = Depends(get_session)
) -> list[Personnel]:
    """作業者一覧を取得 (班IDで絞り込み可)"""
    try:
        return await session.client.get_personnel_list(team_id)
    except MesApiError as e:
        logger.error(f"Failed to get personnel: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/erp/processes", response_model=list[Process])
async def get_processes(
    session: ConsoleSession = Depends(get_session),
) -> list[Process]:
    """工法一覧を取得"""
    try:
        return await session.client.get_process_list()
    except MesApiError as e:
        logger.error(f"Failed to get processes: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)
