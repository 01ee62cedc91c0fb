from abc import ABC, abstractmethod
from typing import Any

from schemas.signal import SignalScalar, SignalValuesMap
from .channel import PushChannel


class SignalBridge(ABC):
    """PLC信号ブリッジの抽象基底クラス

    PLC/Modbus通信そのものはブリッジ側の責務で、このクラスは
    コンソールから見た窓口 (信号コード単位の読み書きと通知) だけを定める。
    ホスト環境のブリッジはこのクラスを継承して実装する。
    現在の実装: StubSignalBridge (ホストが無い開発環境用)

    Attributes:
        connection_changed: 接続状態の変化通知 (bool)
        values_changed: 信号値の変化通知 (信号コード → 値)
        config_changed: 信号設定の変化通知 (設定件数)
        polling_changed: ポーリング状態の変化通知 (bool)
    """

    def __init__(self) -> None:
        self.connection_changed: PushChannel[bool] = PushChannel("connection_changed")
        self.values_changed: PushChannel[SignalValuesMap] = PushChannel(
            "values_changed"
        )
        self.config_changed: PushChannel[int] = PushChannel("config_changed")
        self.polling_changed: PushChannel[bool] = PushChannel("polling_changed")

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """PLCとの接続状態"""
        ...

    @property
    @abstractmethod
    def is_polling(self) -> bool:
        """ポーリング実行中かどうか"""
        ...

    @abstractmethod
    async def read_signal(self, code: str) -> SignalScalar:
        """信号コードを指定して値を読み取る

        Args:
            code: 信号コード

        Returns:
            SignalScalar: 読み取った値
        """
        ...

    @abstractmethod
    async def write_signal(self, code: str, value: SignalScalar) -> bool:
        """信号コードを指定して値を書き込む

        Args:
            code: 信号コード
            value: 書き込む値

        Returns:
            bool: PLCが書き込みを受け付けた場合True
        """
        ...

    @abstractmethod
    async def batch_read(self, codes: list[str]) -> SignalValuesMap:
        """複数の信号値をまとめて読み取る

        Args:
            codes: 信号コードのリスト

        Returns:
            SignalValuesMap: 信号コード → 値
        """
        ...

    @abstractmethod
    async def get_signal_config(self) -> list[dict[str, Any]]:
        """全信号設定を取得する

        Returns:
            list[dict]: 信号設定 (signalCode, signalName, dataType, ...) の一覧
        """
        ...

    @abstractmethod
    async def refresh_signal_config(self) -> None:
        """信号設定の再同期を要求する (完了は config_changed で通知される)"""
        ...

    @abstractmethod
    async def start_polling(self, interval_ms: int = 100) -> None:
        """信号値のポーリングを開始する

        Args:
            interval_ms: ポーリング間隔(ミリ秒)
        """
        ...

    @abstractmethod
    async def stop_polling(self) -> None:
        """信号値のポーリングを停止する"""
        ...

    def close(self) -> None:
        """全ての通知チャネルの購読を解除する"""
        for channel in (
            self.connection_changed,
            self.values_changed,
            self.config_changed,
            self.polling_changed,
        ):
            channel.clear()
