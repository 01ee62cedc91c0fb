from enum import Enum
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

# PLC信号値 (bool は int より先に判定させる)
SignalScalar: TypeAlias = bool | int | float | str
SignalValuesMap: TypeAlias = dict[str, SignalScalar]


class DataType(str, Enum):
    """信号のデータ型

    Attributes:
        BIT: ビット (コイル)
        WORD: 16ビットワード
        UINT16: 符号なし16ビット整数
        FLOAT: 32ビット浮動小数点
        DOUBLE: 64ビット浮動小数点
        INT32: 符号付き32ビット整数
    """

    BIT = "bit"
    WORD = "word"
    UINT16 = "uint16"
    FLOAT = "float"
    DOUBLE = "double"
    INT32 = "int32"


class SignalConfig(BaseModel):
    """信号設定のスキーマ

    ブリッジから取得した信号設定1件分。ブリッジ側のキー名
    (signalCode, signalName, ...) のままでも読み込める。
    設定変更時は一覧ごと差し替えるため、インスタンスは不変とする。

    Attributes:
        code: 信号コード (一意キー)
        display_name: 信号の表示名
        data_type: データ型
        polling_group: パラメータグループ
        is_active: 有効フラグ
        signal_type: 読み取り/書き込み区分
        unit: 単位
        register_address: レジスタアドレス

    Examples:
        >>> SignalConfig.model_validate(
        ...     {"signalCode": "PRESSURE", "signalName": "圧力", "dataType": "float"}
        ... )
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        json_schema_extra={
            "example": {
                "signalCode": "PRESSURE",
                "signalName": "圧力",
                "dataType": "float",
                "paramGroup": "press",
                "isActive": True,
                "unit": "MPa",
            }
        },
    )

    code: str = Field(..., alias="signalCode", min_length=1, description="信号コード")
    display_name: str = Field(default="", alias="signalName", description="表示名")
    data_type: DataType = Field(
        default=DataType.WORD, alias="dataType", description="データ型"
    )
    polling_group: str | None = Field(
        default=None, alias="paramGroup", description="パラメータグループ"
    )
    is_active: bool = Field(default=True, alias="isActive", description="有効フラグ")
    signal_type: Literal["read", "write"] | None = Field(
        default=None, alias="signalType", description="読み書き区分"
    )
    unit: str | None = Field(default=None, description="単位")
    register_address: int | None = Field(
        default=None, alias="registerAddress", description="レジスタアドレス"
    )

    @field_validator("data_type", mode="before")
    @classmethod
    def _normalize_data_type(cls, value: Any) -> Any:
        """大文字小文字を区別せず、未設定 ("") はWORDとして扱う"""
        if isinstance(value, str):
            value = value.strip().lower()
            if not value:
                return DataType.WORD
        return value

    @field_validator("signal_type", mode="before")
    @classmethod
    def _normalize_signal_type(cls, value: Any) -> Any:
        """大文字小文字を区別せず、未設定 ("") はNoneとして扱う"""
        if isinstance(value, str):
            value = value.strip().lower()
            if not value:
                return None
        return value
