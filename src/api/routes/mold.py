"""金型ロック関連エンドポイント

/api/mold/options          - 金型番号の候補検索
/api/mold/info             - 金型詳細の検索
/api/mold/selection        - ロック候補の選択
/api/mold/selection/craft  - ロック候補の工法変更
/api/mold/validation       - ロック候補の検証
/api/mold/lock             - ロック
/api/mold/unlock           - ロック解除
/api/mold/locked           - ロック済み金型
/api/mold/panel/*          - ロックパネルの開閉
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import get_session
from backend.logging import api_logger as logger
from backend.mold_lock import MoldLockCoordinator
from backend.session import ConsoleSession
from schemas.mold import LockedMold, MoldLockPhase, MoldSearchInfo
from schemas.result import OperationResult, ValidationResult

router = APIRouter()


class MoldOptionsResponse(BaseModel):
    keyword: str
    options: list[str]


class MoldStateResponse(BaseModel):
    """金型ロックの状態レスポンス"""

    phase: MoldLockPhase
    last_failure: MoldLockPhase | None
    panel_visible: bool
    selected_mold: MoldSearchInfo | None
    locked_molds: list[LockedMold]
    locked_count: int
    can_lock_more: bool


class SelectMoldRequest(BaseModel):
    mold: MoldSearchInfo | None = None


class CraftRequest(BaseModel):
    craft_code: str
    craft_name: str


class LockRequest(BaseModel):
    """ロック要求 (省略時は作業選択の作業者ID・設備IDを使う)"""

    user_name: str | None = None
    device_id: str | None = None


class UnlockRequest(LockRequest):
    mould_codes: str


def _state_response(mold: MoldLockCoordinator) -> MoldStateResponse:
    return MoldStateResponse(
        phase=mold.phase,
        last_failure=mold.last_failure,
        panel_visible=mold.panel_visible,
        selected_mold=mold.selected_mold,
        locked_molds=mold.locked_molds,
        locked_count=mold.locked_count,
        can_lock_more=mold.can_lock_more,
    )


@router.get("/mold/options", response_model=MoldOptionsResponse)
async def search_mold_options(
    keyword: str = "", session: ConsoleSession = Depends(get_session)
) -> MoldOptionsResponse:
    """金型番号の候補を検索 (2文字未満は空)"""
    options = await session.mold.search_mold_options(keyword)
    return MoldOptionsResponse(keyword=keyword, options=options)


@router.get("/mold/info", response_model=list[MoldSearchInfo])
async def fetch_mold_info(
    mould_code: str = "",
    device_id: str | None = None,
    session: ConsoleSession = Depends(get_session),
) -> list[MoldSearchInfo]:
    """金型詳細を検索 (ロック済みの金型は除外される)"""
    return await session.mold.fetch_mold_info(mould_code, device_id)


@router.put("/mold/selection", response_model=OperationResult)
async def select_mold(
    request: SelectMoldRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    """ロック候補を選択 (mold=null で選択解除)"""
    if session.mold.select_mold(request.mold):
        return OperationResult(success=True)
    return OperationResult(success=False, message="ロック済みの金型は選択できません")


@router.put("/mold/selection/craft", response_model=MoldStateResponse)
async def update_selected_craft(
    request: CraftRequest, session: ConsoleSession = Depends(get_session)
) -> MoldStateResponse:
    session.mold.update_selected_craft(request.craft_code, request.craft_name)
    return _state_response(session.mold)


@router.get("/mold/validation", response_model=ValidationResult)
async def validate_selection(
    session: ConsoleSession = Depends(get_session),
) -> ValidationResult:
    return session.mold.validate_selection()


@router.post("/mold/lock", response_model=OperationResult)
async def confirm_lock(
    request: LockRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    """ロック候補をロック

    検証失敗・ロック失敗はステータス200で success=false を返す。

    Raises:
        HTTPException: 予期しないエラー時 (500)
    """
    try:
        return await session.mold.confirm_lock(request.user_name, request.device_id)
    except Exception as e:
        logger.error(f"Failed to lock mold: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/mold/unlock", response_model=OperationResult)
async def cancel_lock(
    request: UnlockRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    """金型のロックを解除 (mould_codes はカンマ区切り)"""
    try:
        return await session.mold.cancel_lock(
            request.mould_codes, request.user_name, request.device_id
        )
    except Exception as e:
        logger.error(f"Failed to unlock mold: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/mold/locked", response_model=MoldStateResponse)
async def get_locked_molds(
    refresh: bool = False, session: ConsoleSession = Depends(get_session)
) -> MoldStateResponse:
    """ロック済み金型を取得 (refresh=true でサーバーから取得し直す)"""
    if refresh:
        await session.mold.fetch_locked_molds()
    return _state_response(session.mold)


@router.post("/mold/panel/open", response_model=OperationResult)
async def open_panel(session: ConsoleSession = Depends(get_session)) -> OperationResult:
    """ロックパネルを開く (班・作業者・設備IDが必要)"""
    if await session.mold.open_panel():
        return OperationResult(success=True)
    return OperationResult(
        success=False, message="班・作業者を選択してからロックしてください"
    )


@router.post("/mold/panel/close", response_model=MoldStateResponse)
async def close_panel(
    session: ConsoleSession = Depends(get_session),
) -> MoldStateResponse:
    session.mold.close_panel()
    return _state_response(session.mold)
