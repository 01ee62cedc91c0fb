from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """入力検証の結果

    Attributes:
        valid: 検証成功フラグ
        message: 失敗理由 (作業者向けメッセージ)
    """

    valid: bool
    message: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(valid=False, message=message)


class OperationResult(BaseModel):
    """操作結果 (ロック、解除、状態遷移など)"""

    success: bool
    message: str = ""


class HandshakeResult(OperationResult):
    """MES通信状態ハンドシェイクの結果

    Attributes:
        retry_count: 成功までの再試行回数、または失敗時の総試行回数。
            信号設定が見つからない場合など、書き込みを行わなかった場合はNone
    """

    retry_count: int | None = Field(default=None, ge=0)
