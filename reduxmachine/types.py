"""
ReduxMachine 的共用類型定義。
"""
from typing import TYPE_CHECKING, Any, Callable, Tuple, TypeVar

if TYPE_CHECKING:
    from .actions import Action, ActionName
    from .state_machine import ActionDispatcher

S = TypeVar("S")  # 狀態類型
P = TypeVar("P")  # 負載類型
T = TypeVar("T")  # 選擇器輸出類型

# Reducer: (state, action) -> new_state
Reducer = Callable[[S, "Action[Any]"], S]

# 狀態機 Reducer: (state, action, dispatch) -> new_state
MachineReducer = Callable[[S, "Action[Any]", "ActionDispatcher"], S]

# 選擇器: state -> sub_state
Selector = Callable[[S], T]

# (action_name, reducer) 綁定，由 on() 產生
Binding = Tuple[str, Callable[..., Any]]
