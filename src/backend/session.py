"""コンソールセッション

信号レジストリ、接続コーディネータ、作業選択ガード、
プレス作業情報、金型ロックコーディネータ、MES APIクライアントを
1つにまとめ、生成と破棄を管理する。
"""

from backend.bridge import acquire_bridge
from backend.connection import BridgeFactory, ConnectionCoordinator
from backend.job import JobSelectionGuard, PressJobContext
from backend.logging import launcher_logger as logger
from backend.mes_client import MesApiClient
from backend.mold_lock import MoldLockCoordinator
from backend.signal_registry import SignalRegistry
from config.settings import Settings


class ConsoleSession:
    """1台のプレス機に対する操作コンソールのセッション

    使用例:
        >>> session = await ConsoleSession.create(settings)
        >>> result = await session.connection.establish_connection()
        >>> session.dispose()
    """

    def __init__(
        self,
        settings: Settings,
        client: MesApiClient,
        bridge_factory: BridgeFactory = acquire_bridge,
    ) -> None:
        self.settings = settings
        self.client = client
        self.registry = SignalRegistry()
        self.connection = ConnectionCoordinator(
            self.registry, settings, bridge_factory=bridge_factory
        )
        self.guard = JobSelectionGuard()
        self.job_context = PressJobContext(client)
        self.mold = MoldLockCoordinator(
            client,
            self.guard,
            max_lock_count=settings.MAX_MOLD_LOCK_COUNT,
            search_min_length=settings.MOLD_SEARCH_MIN_LENGTH,
        )

    @classmethod
    async def create(
        cls,
        settings: Settings,
        client: MesApiClient | None = None,
        bridge_factory: BridgeFactory = acquire_bridge,
        load_job_data: bool = True,
    ) -> "ConsoleSession":
        """セッションを生成する

        Args:
            settings: アプリケーション設定
            client: MES APIクライアント (省略時は設定から生成)
            bridge_factory: 信号ブリッジの取得関数
            load_job_data: 生成時にプレス作業情報を読み込むか
        """
        session = cls(
            settings,
            client or MesApiClient.from_settings(settings),
            bridge_factory=bridge_factory,
        )
        if load_job_data:
            await session.reload_job_data()
        logger.info("Console session created")
        return session

    async def reload_job_data(self) -> None:
        """プレス作業情報を読み込み直し、作業選択の設備IDに反映する"""
        await self.job_context.init_data()
        self.guard.device_id = self.job_context.current_device_id

    def dispose(self) -> None:
        """購読と予約中の更新を破棄する"""
        self.connection.dispose()
        self.registry.dispose()
        self.mold.reset()
        logger.info("Console session disposed")
