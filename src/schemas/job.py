from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DeviceOperationStatus(str, Enum):
    """設備の操作状態 (接続状態)

    Attributes:
        IDLE: 待機中
        CONNECTING: 接続中
        CONNECTED: 接続済み (MES通信状態の書き込み完了)
        PROCESSING: 加工中
        COMPLETED: 加工完了
        ERROR: 異常
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


STATUS_LABELS: dict[DeviceOperationStatus, str] = {
    DeviceOperationStatus.IDLE: "待機中",
    DeviceOperationStatus.CONNECTING: "接続中",
    DeviceOperationStatus.CONNECTED: "接続済み",
    DeviceOperationStatus.PROCESSING: "加工中",
    DeviceOperationStatus.COMPLETED: "完了",
    DeviceOperationStatus.ERROR: "異常",
}

_JOB_MODEL_CONFIG = ConfigDict(
    populate_by_name=True,
    extra="ignore",
    coerce_numbers_to_str=True,
)


class JobSelection(BaseModel):
    """作業選択フォーム

    Attributes:
        team_id: 班ID
        personnel_id: 作業者ID (金型ロック時の操作者名にも使う)
        process_id: 予定工法ID
    """

    model_config = _JOB_MODEL_CONFIG

    team_id: str | None = Field(default=None, alias="teamId")
    personnel_id: str | None = Field(default=None, alias="personnelId")
    process_id: str | None = Field(default=None, alias="processId")


class Team(BaseModel):
    """班"""

    model_config = _JOB_MODEL_CONFIG

    id: str
    name: str
    code: str | None = None


class Personnel(BaseModel):
    """作業者"""

    model_config = _JOB_MODEL_CONFIG

    id: str
    name: str
    team_id: str | None = Field(default=None, alias="teamId")
    role: str | None = None


class Process(BaseModel):
    """工法"""

    model_config = _JOB_MODEL_CONFIG

    id: str
    name: str
    code: str | None = None
    duration: float | None = Field(default=None, description="予定時間(時間)")


class PressJob(BaseModel):
    """プレス機の作業情報 (端末IPから特定される)

    Attributes:
        device_id: 設備ID
        mould_code: ロック中の金型番号 (カンマ区切り)
        status: 作業状態
        start_time: 開始時刻
        expected_duration: 予定時間(時間)
    """

    model_config = _JOB_MODEL_CONFIG

    device_id: str | None = Field(default=None, alias="deviceId")
    mould_code: str | None = Field(default=None, alias="mouldCode")
    status: str | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    expected_duration: float | None = Field(default=None, alias="expectedDuration")
    need_parameter_records: bool | None = Field(
        default=None, alias="needParameterRecords"
    )

    @property
    def locked_codes(self) -> list[str]:
        """カンマ区切りの金型番号をリストに変換する"""
        if not self.mould_code:
            return []
        return [s.strip() for s in self.mould_code.split(",") if s.strip()]


class ModbusDevice(BaseModel):
    """Modbus設備"""

    model_config = _JOB_MODEL_CONFIG

    device_id: str = Field(..., alias="deviceId")
    device_name: str = Field(default="", alias="deviceName")
    device_type: str | None = Field(default=None, alias="deviceType")
    status: str | None = None
