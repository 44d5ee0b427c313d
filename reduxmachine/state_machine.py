"""
基於 Store 的狀態機相容層。

與 Store 的差別在於串接方式：StateMachine 的 reducer 額外接收一個
ActionDispatcher，調用它即可指定下一個 Action。下一個 Action 作為
內部狀態 MachineState 的欄位保存，每一步完成後由 dispatch 迴圈讀取。

新代碼請直接使用 Store 與 Action.next()，此模組僅為舊的串接寫法保留。
"""
import functools
from typing import Any, Generic, Optional

from reactivex import Observable
from reactivex import operators as ops

from .actions import Action, ActionName
from .errors import ActionError, CyclicChainError, ErrorHandler
from .registry import check_binding
from .store import Store, StoreBase, StoreBuilder, StoreError, StoreEvent
from .types import MachineReducer, S


class MachineState(Generic[S]):
    """
    StateMachine 內部使用的狀態對象。

    屬性:
        app_state: 當前應用狀態
        next_action: 下一個要分發的 Action，沒有則為 None
    """
    __slots__ = ('app_state', 'next_action')

    def __init__(self, app_state: S, next_action: Optional[Action[Any]] = None):
        object.__setattr__(self, 'app_state', app_state)
        object.__setattr__(self, 'next_action', next_action)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __eq__(self, other):
        if not isinstance(other, MachineState):
            return False
        return self.app_state == other.app_state and self.next_action is other.next_action

    def __hash__(self):
        return hash((self.app_state, id(self.next_action)))

    def __repr__(self):
        return f"MachineState({self.app_state!r}, next_action={self.next_action!r})"


class ActionDispatcher:
    """
    傳給狀態機 reducer 的 Action 分發器。

    在 reducer 內調用即可安排下一個 Action，多次調用時以最後一次為準。
    reducer 返回後分發器即被釋放，之後再調用會拋出 ActionError。
    """

    def __init__(self, action_name: str):
        self._action_name = action_name
        self._action: Optional[Action[Any]] = None
        self._disposed = False

    @property
    def action(self) -> Optional[Action[Any]]:
        """已安排的下一個 Action。"""
        return self._action

    def __call__(self, action: Action[Any]) -> None:
        if self._disposed:
            raise ActionError(
                "Attempting to dispatch an action after ActionDispatcher has been disposed. "
                "This usually indicates asynchronous code in a reducer function",
                self._action_name,
            )
        if not isinstance(action, Action):
            raise ActionError(
                f"Chained action must be an Action instance, got {type(action).__name__}",
                self._action_name,
            )
        self._action = action

    def dispose(self) -> None:
        self._disposed = True


class StateMachine(StoreBase[S]):
    """
    使用 Redux 數據流的狀態機。

    請使用 StateMachineBuilder 創建。內部以 MachineState 為狀態運行一個
    Store，對外的 state、events、errors 等都是應用狀態層面的視圖。

    用法:
        builder = StateMachineBuilder(initial_state=CarState())
        builder.bind(Actions.engine_on, engine_on_reducer)
        machine = builder.build()
        machine.dispatch(Actions.engine_on())
        machine.dispose()
    """

    def __init__(self, store: Store[MachineState[S]]):
        super().__init__()
        self._store = store

    @property
    def state(self) -> S:
        return self._store.state.app_state

    @property
    def is_disposed(self) -> bool:
        return self._store.is_disposed

    @property
    def events(self) -> Observable:
        return self._store.events.pipe(
            ops.map(lambda event: StoreEvent(
                self, event.old_state.app_state, event.new_state.app_state, event.action)),
        )

    @property
    def errors(self) -> Observable:
        return self._store.errors.pipe(
            ops.map(lambda error: StoreError(
                self, error.state.app_state, error.action, error.error)),
        )

    def _run_chain(self, action: Action[Any]) -> None:
        """
        分發 Action，並依次分發 reducer 透過 ActionDispatcher 安排的 Action。

        Raises:
            CyclicChainError: reducer 安排了同名的 Action
        """
        current = action
        while current is not None:
            before = self._store.state
            self._store.dispatch(current)
            after = self._store.state
            # 未綁定或錯誤已發布到 errors 時狀態不變，迴圈結束
            if after is before:
                break
            next_action = after.next_action
            if next_action is not None and next_action.name == current.name:
                raise CyclicChainError(current.name)
            current = next_action

    def dispose(self) -> None:
        self._store.dispose()


class StateMachineBuilder(Generic[S]):
    """StateMachine 的構建器。"""

    def __init__(self, initial_state: Optional[S] = None, *,
                 error_handler: Optional[ErrorHandler] = None,
                 strict: bool = False):
        self._builder: StoreBuilder[MachineState[S]] = StoreBuilder(
            MachineState(initial_state), error_handler=error_handler, strict=strict)

    def bind(self, action: ActionName[Any], reducer: MachineReducer[S]) -> 'StateMachineBuilder[S]':
        """
        將狀態機 reducer 綁定到指定的 Action。

        Args:
            action: Action 構建器
            reducer: 接收 (state, action, dispatch) 並返回新狀態的函數

        Returns:
            構建器本身
        """
        check_binding(action, reducer)

        @functools.wraps(reducer)
        def store_reducer(state: MachineState[S], current: Action[Any]) -> MachineState[S]:
            dispatcher = ActionDispatcher(current.name)
            try:
                new_app_state = reducer(state.app_state, current, dispatcher)
            finally:
                dispatcher.dispose()
            return MachineState(new_app_state, dispatcher.action)

        self._builder.bind(action, store_reducer)
        return self

    def build(self) -> StateMachine[S]:
        return StateMachine(self._builder.build())
