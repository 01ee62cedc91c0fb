"""
Press Operator Console - プレス機操作コンソール (信号取得・MES連携・金型ロック)

## アーキテクチャ概要

レイヤー構造 (依存関係は下位→上位のみ):

┌─────────────────────────────────────────────────────┐
│ api/                                                │  最上位層
│  ├── main.py - FastAPI アプリ (ConsoleSession保持) │
│  └── routes/ - connection / signals / job / mold   │
├─────────────────────────────────────────────────────┤
│ backend/                                            │  中間層
│  ├── session.py - ConsoleSession (生成・破棄)      │
│  ├── connection.py - 接続・MESハンドシェイク       │
│  ├── mold_lock.py - 金型ロック状態管理             │
│  ├── job.py - 作業選択ガード・プレス作業情報       │
│  ├── signal_registry.py - 信号設定と最新値         │
│  ├── mes_client.py - MES API クライアント (httpx)  │
│  ├── throttle.py - 通知の間引き                    │
│  ├── bridge/ - 信号ブリッジ (抽象・スタブ・取得)   │
│  └── logging/ - アプリケーションロガー             │
├─────────────────────────────────────────────────────┤
│ config/                                             │  設定層
│  ├── settings.py - 環境変数管理 (Pydantic Settings)│
│  └── signal_profile.py - スタブ用信号リスト        │
├─────────────────────────────────────────────────────┤
│ schemas/                                            │  最下位層
│  ├── signal.py - SignalConfig                      │
│  ├── job.py - JobSelection, PressJob, 操作状態     │
│  ├── mold.py - MoldSearchInfo, LockedMold          │
│  └── result.py - ValidationResult, OperationResult │
└─────────────────────────────────────────────────────┘

## 依存ルール

1. **上位層 → 下位層**: 許可 (api → backend → config → schemas)
2. **下位層 → 上位層**: 禁止 (循環参照防止)
3. **schemas/**: 外部ライブラリ (pydantic) のみに依存
4. **同一層内**: 相互依存は最小限に (必要なら分割を検討)

## 使用例

```python
# 推奨: 各層から必要なものだけimport
from schemas import SignalConfig
from config import Settings
from backend.session import ConsoleSession
```

## 設計原則

- **Single Responsibility**: 各モジュールは単一の責務を持つ
- **Dependency Inversion**: 具象ではなく抽象に依存 (SignalBridge等)
- **Open/Closed**: 拡張に開き、修正に閉じる
"""

__version__ = "0.1.0"
