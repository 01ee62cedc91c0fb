"""スタブ信号プロファイル管理モジュール

責務:
- SIGNAL_PROFILE に対応するJSONファイル読み込み
- スタブブリッジが返す信号設定一覧の検証・保持
"""

from pathlib import Path
import json
from schemas.signal import SignalConfig

# プロジェクトルート/config/signals/ を参照
_DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config" / "signals"


class SignalProfileLoader:
    """スタブ信号プロファイル読み込みクラス

    ホストブリッジが無い開発環境で、スタブブリッジが返す信号設定一覧を
    config/signals/{profile_name}.json から読み込む。

    使用例:
        >>> loader = SignalProfileLoader("default")
        >>> [s.code for s in loader.get_signals()]
        ['PRESSURE', 'TEMPERATURE', 'MES_STATUS']
    """

    def __init__(self, profile_name: str, config_dir: Path | None = None) -> None:
        """
        Args:
            profile_name: プロファイル名 (JSONファイル名と対応)
            config_dir: 設定ディレクトリ (Noneの場合は config/signals)
        """
        self._profile_name = profile_name
        self._config_dir = config_dir or _DEFAULT_CONFIG_DIR
        self._signals = self._load_signals()

    def _load_signals(self) -> list[SignalConfig]:
        """JSONファイルから信号設定を読み込み

        Returns:
            list[SignalConfig]: 信号設定の一覧

        Raises:
            FileNotFoundError: 対応するJSONファイルが見つからない場合
            ValueError: JSON形式または信号設定が不正な場合
        """
        config_file = self._config_dir / f"{self._profile_name}.json"

        if not config_file.exists():
            raise FileNotFoundError(
                f"Signal profile not found: {config_file}\n"
                f"Please create config/signals/{self._profile_name}.json"
            )

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON format in {config_file}: {e}")

        if not isinstance(data, list):
            raise ValueError(f"Signal profile must be a JSON array: {config_file}")

        try:
            # Pydanticで検証しながら一覧を構築
            signals = [SignalConfig.model_validate(item) for item in data]
        except Exception as e:
            raise ValueError(f"Failed to load signals from {config_file}: {e}")

        codes = [s.code for s in signals]
        if len(codes) != len(set(codes)):
            raise ValueError(f"Duplicate signal code in {config_file}")
        return signals

    def get_signals(self) -> list[SignalConfig]:
        """全信号設定を取得

        Returns:
            list[SignalConfig]: 信号設定一覧のコピー
        """
        return list(self._signals)

    @property
    def profile_name(self) -> str:
        return self._profile_name
