"""信号関連エンドポイント

/api/signals               - 信号設定一覧
/api/signals/values        - 最新の信号値
/api/signals/reload        - 信号設定の再読み込み
/api/signals/{code}/value  - 信号値の読み取り・書き込み
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_session
from backend.session import ConsoleSession
from schemas.result import OperationResult
from schemas.signal import SignalConfig, SignalScalar, SignalValuesMap

router = APIRouter()


class SignalValuesResponse(BaseModel):
    """信号値レスポンス"""

    values: SignalValuesMap
    polling: bool


class SignalReloadResponse(BaseModel):
    count: int
    active_count: int


class SignalValueResponse(BaseModel):
    code: str
    value: SignalScalar | None


class SignalWriteRequest(BaseModel):
    value: SignalScalar


@router.get("/signals", response_model=list[SignalConfig])
async def get_signals(
    group: str | None = None,
    session: ConsoleSession = Depends(get_session),
) -> list[SignalConfig]:
    """信号設定一覧を取得

    Args:
        group: パラメータグループで絞り込む (省略時は全件)
    """
    if group is None:
        return session.registry.signals
    return session.registry.signals_by_group.get(group, [])


@router.get("/signals/values", response_model=SignalValuesResponse)
async def get_signal_values(
    session: ConsoleSession = Depends(get_session),
) -> SignalValuesResponse:
    """最新の信号値を取得 (ブリッジからの通知を間引いて反映した値)"""
    return SignalValuesResponse(
        values=session.registry.values, polling=session.registry.polling
    )


@router.post("/signals/reload", response_model=SignalReloadResponse)
async def reload_signals(
    session: ConsoleSession = Depends(get_session),
) -> SignalReloadResponse:
    """信号設定をブリッジから読み込み直す"""
    await session.registry.load_signals()
    return SignalReloadResponse(
        count=len(session.registry.signals),
        active_count=session.registry.active_count,
    )


@router.get("/signals/{code}/value", response_model=SignalValueResponse)
async def read_signal(
    code: str, session: ConsoleSession = Depends(get_session)
) -> SignalValueResponse:
    """信号値を1件読み取る (失敗時は value=null)"""
    return SignalValueResponse(
        code=code, value=await session.registry.read_signal(code)
    )


@router.put("/signals/{code}/value", response_model=OperationResult)
async def write_signal(
    code: str,
    request: SignalWriteRequest,
    session: ConsoleSession = Depends(get_session),
) -> OperationResult:
    """信号値を1件書き込む"""
    if await session.registry.write_signal(code, request.value):
        return OperationResult(success=True, message=f"{code} に書き込みました")
    return OperationResult(success=False, message=f"{code} への書き込みに失敗しました")
