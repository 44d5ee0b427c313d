"""
ReduxMachine 錯誤處理模組。

此模組定義庫內使用的所有異常類別、未綁定 Action 的警告，
以及集中式的錯誤處理器 ErrorHandler。
"""
import json
import sys
import time
import traceback
from typing import Any, Callable, Dict, List, Optional, Union

from typing_extensions import TypedDict


class ErrorInfo(TypedDict):
    """to_dict() 輸出的結構。"""
    error_type: str
    message: str
    details: Dict[str, Any]
    traceback: str


class ReduxMachineError(Exception):
    """所有 ReduxMachine 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        # 僅在處理異常的過程中建立時才保存堆疊
        if sys.exc_info()[0] is not None:
            self.traceback = traceback.format_exc()
        else:
            self.traceback = ""

    def to_dict(self) -> ErrorInfo:
        """
        將錯誤轉換為可序列化的字典。

        Returns:
            包含錯誤類型、訊息、細節與堆疊的字典
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": {k: repr(v) for k, v in self.details.items()},
            "traceback": self.traceback,
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({details})"


class ActionError(ReduxMachineError):
    """與 Action 相關的錯誤。"""

    def __init__(self, message: str, action_name: str, payload: Any = None, **kwargs: Any):
        details = {"action_name": action_name}
        if payload is not None:
            details["payload"] = payload
        details.update(kwargs)
        super().__init__(message, details)
        self.action_name = action_name
        self.payload = payload


class CyclicChainError(ActionError):
    """Reducer 試圖串接同名的 Action，這會造成無限迴圈。"""

    def __init__(self, action_name: str, **kwargs: Any):
        super().__init__(
            f'Action "{action_name}" attempts to chain an action of the same name, '
            "which would cause an infinite loop",
            action_name,
            **kwargs,
        )


class ValidationError(ReduxMachineError):
    """資料驗證錯誤。"""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None,
                 expected_type: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {}
        if field is not None:
            details["field"] = field
        if value is not None:
            details["value"] = value
        if expected_type is not None:
            details["expected_type"] = expected_type
        details.update(kwargs)
        super().__init__(message, details)
        self.field = field
        self.value = value
        self.expected_type = expected_type


class ReducerError(ReduxMachineError):
    """與 Reducer 相關的錯誤。"""

    def __init__(self, message: str, reducer_name: str, action_name: str, state: Any = None, **kwargs: Any):
        details = {"reducer_name": reducer_name, "action_name": action_name}
        if state is not None:
            details["state"] = state
        details.update(kwargs)
        super().__init__(message, details)
        self.reducer_name = reducer_name
        self.action_name = action_name
        self.state = state


class ConfigurationError(ReduxMachineError):
    """配置相關的錯誤，例如無效的 reducer 綁定。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any):
        details = {"component": component}
        if config_key is not None:
            details["config_key"] = config_key
        details.update(kwargs)
        super().__init__(message, details)
        self.component = component
        self.config_key = config_key


class DisposedStoreError(ReduxMachineError):
    """在已釋放的 Store 上進行操作。"""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        details = {"operation": operation}
        details.update(kwargs)
        super().__init__(message, details)
        self.operation = operation


class UnboundActionWarning(UserWarning):
    """分發了一個沒有綁定 reducer 的 Action。狀態不變，但事件仍會發出。"""


class ErrorHandler:
    """集中式錯誤處理器，用於捕獲、日誌記錄和錯誤報告。"""

    def __init__(self, log_to_console: bool = True, log_to_file: bool = False, log_file: Optional[str] = None):
        """
        初始化錯誤處理器。

        Args:
            log_to_console: 是否將錯誤打印到控制台
            log_to_file: 是否將錯誤寫入日誌文件
            log_file: 日誌文件路徑，log_to_file 為 True 時必須提供
        """
        if log_to_file and not log_file:
            raise ConfigurationError(
                "log_file is required when log_to_file is enabled",
                component="ErrorHandler",
                config_key="log_file",
            )
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file = log_file
        self.handlers: List[Callable[[ReduxMachineError], None]] = []

    def register_handler(self, handler: Callable[[ReduxMachineError], None]) -> None:
        """
        註冊一個額外的錯誤處理回調。

        Args:
            handler: 接收 ReduxMachineError 的函數
        """
        self.handlers.append(handler)

    def handle(self, error: Union[ReduxMachineError, Exception]) -> None:
        """
        處理一個錯誤：記錄到控制台、文件，並通知所有已註冊的處理器。

        Args:
            error: 要處理的錯誤，非 ReduxMachineError 會先被包裝
        """
        if not isinstance(error, ReduxMachineError):
            wrapped = ReduxMachineError(str(error), {"original_type": type(error).__name__})
            wrapped.__cause__ = error
            error = wrapped

        if self.log_to_console:
            print(f"❌ {error.__class__.__name__}: {error}")

        if self.log_to_file:
            record = dict(error.to_dict())
            record["timestamp"] = time.time()
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")

        for handler in self.handlers:
            handler(error)


# 單例錯誤處理器
global_error_handler = ErrorHandler()
