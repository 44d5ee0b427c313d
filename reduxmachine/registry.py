from typing import Any, Callable, Dict, Iterator, Optional

from immutables import Map

from .actions import ActionName
from .errors import ConfigurationError
from .types import Binding


def on(action: ActionName[Any], reducer: Callable[..., Any]) -> Binding:
    """
    創建一個 action 名稱與 reducer 的綁定。

    Args:
        action: Action 構建器
        reducer: 處理該 Action 的函式，接收 (state, action) 並返回新狀態

    Returns:
        一個 (action_name, reducer) 元組，可直接傳給 create_store
    """
    check_binding(action, reducer)
    return (action.name, reducer)


def check_binding(action: Any, reducer: Any) -> None:
    # 在綁定時而非分發時拒絕錯誤的參數
    if not isinstance(action, ActionName):
        raise ConfigurationError(
            f"Expected an action builder, got {type(action).__name__}",
            component="ActionRegistry",
            config_key=str(action),
        )
    if not callable(reducer):
        raise ConfigurationError(
            f"Reducer for action '{action.name}' is not callable",
            component="ActionRegistry",
            config_key=action.name,
        )


class ActionRegistry:
    """
    管理 action 名稱到 reducer 的映射，每個名稱最多一個 reducer。

    Attributes:
        strict: 為 True 時重複綁定同一名稱會拋出 ConfigurationError，
            否則後綁定的 reducer 取代先前的 reducer。
    """
    def __init__(self, strict: bool = False):
        self.strict = strict
        self._reducers: Dict[str, Callable[..., Any]] = {}

    def bind(self, action: ActionName[Any], reducer: Callable[..., Any]) -> None:
        """
        將 reducer 綁定到指定的 Action。

        Args:
            action: Action 構建器，使用其 name 作為鍵
            reducer: reducer 函式
        """
        check_binding(action, reducer)
        self.add(action.name, reducer)

    def add(self, name: str, reducer: Callable[..., Any]) -> None:
        """以名稱直接註冊 reducer，供 on() 產生的綁定使用。"""
        if self.strict and name in self._reducers:
            raise ConfigurationError(
                f"A reducer is already bound to action '{name}'",
                component="ActionRegistry",
                config_key=name,
            )
        self._reducers[name] = reducer

    def get(self, name: str) -> Optional[Callable[..., Any]]:
        return self._reducers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._reducers

    def __iter__(self) -> Iterator[str]:
        return iter(self._reducers)

    def __len__(self) -> int:
        return len(self._reducers)

    def freeze(self) -> Map:
        """
        返回當前綁定的不可變快照。

        Returns:
            action 名稱到 reducer 的 immutables.Map
        """
        return Map(self._reducers)
