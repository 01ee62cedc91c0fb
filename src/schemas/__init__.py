from .job import (
    STATUS_LABELS,
    DeviceOperationStatus,
    JobSelection,
    ModbusDevice,
    Personnel,
    PressJob,
    Process,
    Team,
)
from .mold import (
    MAX_MOLD_LOCK_COUNT,
    LockedMold,
    MoldLockPhase,
    MoldSearchInfo,
    parse_project_code,
)
from .result import HandshakeResult, OperationResult, ValidationResult
from .signal import DataType, SignalConfig, SignalScalar, SignalValuesMap

__all__ = [
    "STATUS_LABELS",
    "DeviceOperationStatus",
    "JobSelection",
    "ModbusDevice",
    "Personnel",
    "PressJob",
    "Process",
    "Team",
    "MAX_MOLD_LOCK_COUNT",
    "LockedMold",
    "MoldLockPhase",
    "MoldSearchInfo",
    "parse_project_code",
    "HandshakeResult",
    "OperationResult",
    "ValidationResult",
    "DataType",
    "SignalConfig",
    "SignalScalar",
    "SignalValuesMap",
]
