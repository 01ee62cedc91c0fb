from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# 1設備あたりの最大金型ロック数
MAX_MOLD_LOCK_COUNT = 5


def parse_project_code(mould_code: str | None) -> str:
    """金型番号からプロジェクト番号を取り出す

    金型番号は "プロジェクト番号-連番" の形式を前提とする (例: "PRJ001-003")。

    Args:
        mould_code: 金型番号

    Returns:
        str: 最初の "-" より前の部分。空入力の場合は空文字列
    """
    if not mould_code:
        return ""
    return mould_code.split("-", 1)[0]


class MoldLockPhase(str, Enum):
    """ロック候補の処理段階"""

    NONE = "none"
    SEARCHING = "searching"
    SELECTED = "selected"
    VALIDATING = "validating"
    LOCKING = "locking"
    LOCKED = "locked"
    VALIDATION_FAILED = "validation_failed"
    LOCK_FAILED = "lock_failed"


_MOLD_MODEL_CONFIG = ConfigDict(
    populate_by_name=True,
    extra="ignore",
    coerce_numbers_to_str=True,
)


class MoldSearchInfo(BaseModel):
    """金型検索結果 (ロック候補)

    Attributes:
        mould_code: 金型番号
        name: 金型名
        make_order_number: 製造指令番号
        stages: 工程番号
        craft_code: 工法コード (作業者が選択する)
        craft_name: 工法名
        project_code: プロジェクト番号
    """

    model_config = _MOLD_MODEL_CONFIG

    mould_code: str = Field(..., alias="mouldCode", description="金型番号")
    name: str | None = Field(default=None, description="金型名")
    make_order_number: str | None = Field(
        default=None, alias="makeOrderNumber", description="製造指令番号"
    )
    stages: str | None = Field(default=None, description="工程番号")
    craft_code: str | None = Field(
        default=None, alias="craftCode", description="工法コード"
    )
    craft_name: str | None = Field(
        default=None, alias="craftName", description="工法名"
    )
    project_code: str | None = Field(
        default=None, alias="projectCode", description="プロジェクト番号"
    )

    def to_payload(self) -> dict[str, Any]:
        """MESバックエンド向けの辞書 (camelCase) に変換する"""
        return self.model_dump(by_alias=True, exclude_none=True)


class LockedMold(BaseModel):
    """設備にロック済みの金型

    Attributes:
        mould_code: 金型番号 (設備内で一意)
        make_order_number: 製造指令番号
        stages: 工程番号
        craft_code: 工法コード
        craft_name: 工法名
        work_time_type: 工数区分
        start_time: 開始時刻
        operator: 作業者
        lock_time: ロック時刻
    """

    model_config = _MOLD_MODEL_CONFIG

    mould_code: str = Field(..., alias="mouldCode", description="金型番号")
    make_order_number: str | None = Field(
        default=None, alias="makeOrderNumber", description="製造指令番号"
    )
    stages: str | None = Field(default=None, description="工程番号")
    craft_code: str | None = Field(
        default=None, alias="craftCode", description="工法コード"
    )
    craft_name: str | None = Field(
        default=None, alias="craftName", description="工法名"
    )
    work_time_type: str | None = Field(
        default=None, alias="workTimeType", description="工数区分"
    )
    start_time: str | None = Field(default=None, alias="startTime")
    operator: str | None = Field(default=None)
    lock_time: str | None = Field(default=None, alias="lockTime")

    @classmethod
    def from_selection(cls, mold: MoldSearchInfo) -> "LockedMold":
        """ロックに成功した候補からロック済み金型を作る"""
        return cls(
            mould_code=mold.mould_code,
            make_order_number=mold.make_order_number,
            stages=mold.stages,
            craft_code=mold.craft_code,
            craft_name=mold.craft_name,
        )
