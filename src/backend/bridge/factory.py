"""信号ブリッジの取得

ホスト環境が提供するブリッジを BRIDGE_FACTORY ("module:attr") から生成する。
ホスト環境が無い・生成に失敗した場合はスタブにフォールバックし、
警告ログのみ出して処理を継続する (作業者向けのエラーにはしない)。
"""

import importlib
import inspect
from typing import Any, Callable

from backend.logging import bridge_logger as logger
from config.settings import Settings
from .base import SignalBridge
from .stub import StubSignalBridge


class BridgeUnavailableError(Exception):
    """ホストブリッジを利用できない"""

    pass


def load_bridge_factory(path: str) -> Callable[..., Any]:
    """"module:attr" 形式の指定からブリッジ生成関数を取得する

    Args:
        path: 生成関数の場所 (例: "press_host.bridge:create_bridge")

    Returns:
        Callable: Settingsを受け取りSignalBridgeを返す関数

    Raises:
        BridgeUnavailableError: 形式不正、import失敗、属性が無い場合
    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise BridgeUnavailableError(
            f"Invalid BRIDGE_FACTORY {path!r} (expected 'module:attr')"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise BridgeUnavailableError(f"Cannot import {module_name}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise BridgeUnavailableError(f"{module_name} has no {attr}") from e


async def acquire_bridge(settings: Settings) -> SignalBridge:
    """信号ブリッジを取得する

    Args:
        settings: アプリケーション設定

    Returns:
        SignalBridge: ホストブリッジ、または StubSignalBridge
    """
    if not settings.USE_BRIDGE:
        logger.info("USE_BRIDGE=false, using stub bridge")
        return StubSignalBridge.from_profile(settings.SIGNAL_PROFILE)

    if not settings.BRIDGE_FACTORY:
        logger.warning("Host bridge not configured, using stub bridge")
        return StubSignalBridge.from_profile(settings.SIGNAL_PROFILE)

    try:
        factory = load_bridge_factory(settings.BRIDGE_FACTORY)
        bridge = factory(settings)
        if inspect.isawaitable(bridge):
            bridge = await bridge
        if not isinstance(bridge, SignalBridge):
            raise BridgeUnavailableError(
                f"{settings.BRIDGE_FACTORY} returned {type(bridge).__name__}, "
                "not a SignalBridge"
            )
    except Exception as e:
        # ホスト環境が無い場合はスタブで動作を継続する
        logger.warning(f"Host bridge unavailable, falling back to stub: {e}")
        return StubSignalBridge.from_profile(settings.SIGNAL_PROFILE)

    logger.info(
        f"Host bridge acquired: {type(bridge).__name__} "
        f"(connected={bridge.is_connected}, polling={bridge.is_polling})"
    )
    return bridge
