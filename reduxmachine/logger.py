"""
控制台日誌觀察者。

StoreLogger 訂閱 Store 的 events 流，打印每個 action 處理前後的 state。
它不訂閱 errors 流，因此不會改變錯誤的路由方式；reducer 錯誤由
Store 的 ErrorHandler 記錄。

使用場景:
- 偵錯時需要觀察每次 state 的變化。
- 確保串接 action 的執行順序正確。
"""
import datetime
from typing import Any

from .immutable_utils import to_dict
from .store import StoreBase, StoreEvent


class StoreLogger:
    """
    日誌觀察者，打印每個 action 的名稱以及處理前後的 state。

    用法:
        logger = StoreLogger(store, show_timestamp=True)
        store.dispatch(Actions.put_coin())
        logger.detach()
    """

    def __init__(self, store: StoreBase[Any], show_timestamp: bool = False):
        """
        Args:
            store: 要觀察的 Store 或 StateMachine
            show_timestamp: 是否在每行前加上時間戳
        """
        self.show_timestamp = show_timestamp
        self._subscription = store.events.subscribe(
            on_next=self._on_event,
            on_completed=self._on_completed,
        )

    def _prefix(self) -> str:
        if self.show_timestamp:
            return f"[{datetime.datetime.now()}] "
        return ""

    def _on_event(self, event: StoreEvent[Any]) -> None:
        prefix = self._prefix()
        name = event.action.name
        print(f"{prefix}▶️ dispatched {name}")
        print(f"{prefix}🔄 state before {name}: {to_dict(event.old_state)}")
        print(f"{prefix}✅ state after {name}: {to_dict(event.new_state)}")

    def _on_completed(self) -> None:
        print(f"{self._prefix()}⏹️ store disposed")

    def detach(self) -> None:
        """停止打印日誌。"""
        self._subscription.dispose()
