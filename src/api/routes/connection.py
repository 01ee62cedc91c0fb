"""接続・加工状態関連エンドポイント

/api/connection          - 接続確立 (MES通信状態ハンドシェイク)
/api/status              - 接続状態
/api/processing/start    - 加工開始
/api/processing/complete - 加工完了
/api/polling/start       - 信号ポーリング開始
/api/polling/stop        - 信号ポーリング停止
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import get_session
from backend.logging import api_logger as logger
from backend.session import ConsoleSession
from schemas.job import DeviceOperationStatus
from schemas.result import HandshakeResult, OperationResult

router = APIRouter()


class StatusResponse(BaseModel):
    """接続状態レスポンス"""

    state: DeviceOperationStatus
    status_label: str
    connected: bool
    polling: bool
    bridge: str | None
    signal_count: int
    last_result: HandshakeResult | None


@router.post("/connection", response_model=HandshakeResult)
async def establish_connection(
    session: ConsoleSession = Depends(get_session),
) -> HandshakeResult:
    """接続を確立する

    信号ブリッジを初期化し、MES通信状態信号を書き込む。
    失敗してもステータス200で結果を返す。

    Raises:
        HTTPException: 予期しないエラー時 (500)
    """
    try:
        return await session.connection.establish_connection()
    except Exception as e:
        logger.error(f"Failed to establish connection: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/status", response_model=StatusResponse)
async def get_status(session: ConsoleSession = Depends(get_session)) -> StatusResponse:
    """接続状態を取得

    Returns:
        StatusResponse: 操作状態、ブリッジの接続・ポーリング状態
    """
    coordinator = session.connection
    bridge = coordinator.bridge
    return StatusResponse(
        state=coordinator.state,
        status_label=coordinator.status_label,
        connected=coordinator.connected,
        polling=coordinator.polling,
        bridge=type(bridge).__name__ if bridge is not None else None,
        signal_count=len(session.registry.signals),
        last_result=coordinator.last_result,
    )


@router.post("/processing/start", response_model=OperationResult)
async def start_processing(
    session: ConsoleSession = Depends(get_session),
) -> OperationResult:
    """加工開始"""
    return session.connection.start_processing()


@router.post("/processing/complete", response_model=OperationResult)
async def complete_processing(
    session: ConsoleSession = Depends(get_session),
) -> OperationResult:
    """加工完了"""
    return session.connection.complete_processing()


@router.post("/polling/start", response_model=OperationResult)
async def start_polling(
    session: ConsoleSession = Depends(get_session),
) -> OperationResult:
    """信号ポーリングを開始 (POLLING_INTERVAL_MS 間隔)"""
    if await session.connection.start_polling():
        return OperationResult(success=True, message="ポーリングを開始しました")
    return OperationResult(success=False, message="ポーリングを開始できません")


@router.post("/polling/stop", response_model=OperationResult)
async def stop_polling(
    session: ConsoleSession = Depends(get_session),
) -> OperationResult:
    """信号ポーリングを停止"""
    if await session.connection.stop_polling():
        return OperationResult(success=True, message="ポーリングを停止しました")
    return OperationResult(success=False, message="ポーリングを停止できません")
