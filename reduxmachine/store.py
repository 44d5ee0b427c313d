"""
ReduxMachine 的 Store 模組。

Store 持有應用狀態與 reducer 註冊表，同步執行 dispatch 迴圈，
並透過 events / errors 兩個廣播通道通知訂閱者。
"""
import warnings
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Generic, Mapping, Optional, Tuple

import reactivex
from immutables import Map
from reactivex import Observable, Subject
from reactivex import operators as ops
from typing_extensions import deprecated

from .actions import Action, ActionName, chain_scope
from .errors import (
    ActionError, CyclicChainError, DisposedStoreError, ErrorHandler,
    ReducerError, UnboundActionWarning,
)
from .registry import ActionRegistry
from .types import Binding, Reducer, S, Selector, T


class StoreEvent(Generic[S]):
    """
    由 Store 中某個 action 觸發的事件。

    屬性:
        store: 產生此事件的 Store
        old_state: 事件前的狀態
        new_state: 事件後的狀態，未綁定 reducer 時與 old_state 為同一對象
        action: 觸發此事件的 Action
    """
    __slots__ = ('store', 'old_state', 'new_state', 'action')

    def __init__(self, store: 'StoreBase[S]', old_state: S, new_state: S, action: Action[Any]):
        object.__setattr__(self, 'store', store)
        object.__setattr__(self, 'old_state', old_state)
        object.__setattr__(self, 'new_state', new_state)
        object.__setattr__(self, 'action', action)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __repr__(self):
        return f"StoreEvent({self.action!r}, {self.old_state!r}, {self.new_state!r})"


class StoreError(Generic[S]):
    """
    dispatch 過程中 reducer 拋出的錯誤，在 errors 通道上發布。

    屬性:
        store: 產生此錯誤的 Store
        state: 錯誤發生時的狀態
        action: 導致錯誤的 Action
        error: reducer 拋出的原始異常
    """
    __slots__ = ('store', 'state', 'action', 'error')

    def __init__(self, store: 'StoreBase[S]', state: S, action: Action[Any], error: Exception):
        object.__setattr__(self, 'store', store)
        object.__setattr__(self, 'state', state)
        object.__setattr__(self, 'action', action)
        object.__setattr__(self, 'error', error)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __repr__(self):
        return f"StoreError({self.error!r}, {self.action!r}, {self.state!r})"


def _view(subject: Subject) -> Observable:
    # 只暴露訂閱能力，不暴露 on_next
    return reactivex.create(lambda observer, scheduler=None: subject.subscribe(observer, scheduler=scheduler))


class StoreBase(ABC, Generic[S]):
    """
    Store 與 StateMachine 共用的分發佇列與衍生流。

    dispatch 期間 (例如在監聽者中) 再次調用 dispatch 時，Action 會被放入
    佇列，待當前的串接完成後再依序處理，因此串接中的 Action 之間不會
    穿插其他分發。
    """

    def __init__(self):
        self._dispatching = False
        self._pending: Deque[Action[Any]] = deque()

    @property
    @abstractmethod
    def state(self) -> S:
        ...

    @property
    @abstractmethod
    def is_disposed(self) -> bool:
        ...

    @property
    @abstractmethod
    def events(self) -> Observable:
        ...

    @property
    @abstractmethod
    def errors(self) -> Observable:
        ...

    @abstractmethod
    def _run_chain(self, action: Action[Any]) -> None:
        """同步處理 action 及其串接的所有後續 Action。"""

    @abstractmethod
    def dispose(self) -> None:
        ...

    def dispatch(self, action: Action[Any]) -> None:
        """
        分發一個 Action。

        執行為該 Action 註冊的 reducer 並在 events 上發布 StoreEvent。
        若 reducer 串接了另一個 Action，會在返回前立即以同樣方式處理該
        Action，直到沒有後續 Action 為止。監聽者在此期間分發的 Action
        排在當前串接之後處理。

        Args:
            action: 要分發的 Action

        Raises:
            DisposedStoreError: Store 已被釋放
            CyclicChainError: reducer 串接了同名的 Action
            Exception: 沒有 errors 訂閱者時，reducer 拋出的原始異常
        """
        if not isinstance(action, Action):
            raise ActionError(
                f"Only Action instances can be dispatched, got {type(action).__name__}",
                str(action),
            )
        if self._dispatching:
            if self.is_disposed:
                raise DisposedStoreError(
                    "Dispatching actions is not allowed in a disposed Store",
                    operation="dispatch",
                    action_name=action.name,
                )
            self._pending.append(action)
            return

        self._dispatching = True
        try:
            self._run_chain(action)
            while self._pending and not self.is_disposed:
                self._run_chain(self._pending.popleft())
        finally:
            # 串接失敗時，尚未處理的排隊 Action 一併丟棄
            self._pending.clear()
            self._dispatching = False

    def events_for(self, action: ActionName[Any]) -> Observable:
        """
        只包含由指定類型 Action 觸發的事件流。

        Args:
            action: Action 構建器，按名稱過濾

        Returns:
            StoreEvent 的可觀察對象
        """
        name = action.name
        return self.events.pipe(ops.filter(lambda event: event.action.name == name))

    @deprecated("Use events_for() instead")
    def events_where(self, action: ActionName[Any]) -> Observable:
        return self.events_for(action)

    @property
    def changes(self) -> Observable:
        """
        所有狀態變更的流。

        相鄰且相等 (==) 的狀態只會發出一次，狀態類型需正確實作相等比較。
        """
        return self.events.pipe(
            ops.map(lambda event: event.new_state),
            ops.distinct_until_changed(),
        )

    def changes_for(self, selector: Selector[S, T]) -> Observable:
        """
        應用狀態中某一部分的變更流。

        Args:
            selector: 從完整狀態中取出子狀態的函數

        Returns:
            只在子狀態改變時發出的可觀察對象

        範例:
            >>> store.changes_for(lambda car: car.headlamps).subscribe(
            ...     lambda mode: print(f"Headlamps mode changed to {mode}"))
        """
        return self.changes.pipe(
            ops.map(selector),
            ops.distinct_until_changed(),
        )


class Store(StoreBase[S]):
    """
    狀態容器，持有當前狀態並同步處理 dispatch 的 Action。

    請使用 StoreBuilder 或 create_store 創建 Store。Store 不是線程安全的，
    多線程環境下需要在外部為 dispatch 加鎖。
    """

    def __init__(self, initial_state: S, reducers: Optional[Mapping[str, Reducer[S]]] = None,
                 error_handler: Optional[ErrorHandler] = None):
        """
        初始化 Store。

        Args:
            initial_state: 初始狀態
            reducers: action 名稱到 reducer 的映射
            error_handler: 接收 reducer 錯誤報告的處理器，None 表示不報告
        """
        super().__init__()
        self._state = initial_state
        self._reducers = Map(reducers or {})
        self._error_handler = error_handler
        self._event_subject: Subject = Subject()
        self._error_subject: Subject = Subject()
        self._disposed = False

    @property
    def state(self) -> S:
        """當前狀態。"""
        return self._state

    @property
    def is_disposed(self) -> bool:
        """Store 是否已被釋放。已釋放的 Store 不允許 dispatch。"""
        return self._disposed

    @property
    def events(self) -> Observable:
        """
        所有事件的廣播流，每個被處理的 Action 發出一個 StoreEvent。

        只需狀態變更時請使用 changes。
        """
        return _view(self._event_subject)

    @property
    def errors(self) -> Observable:
        """
        reducer 錯誤的廣播流。

        只要此流有訂閱者，reducer 的錯誤就會以 StoreError 發布到這裡，
        dispatch 不會拋出；沒有訂閱者時錯誤會在 dispatch 中同步重新拋出。
        """
        return _view(self._error_subject)

    def _run_chain(self, action: Action[Any]) -> None:
        current = action
        while True:
            follow_up = self._step(current)
            if follow_up is None:
                break
            if follow_up.name == current.name:
                raise CyclicChainError(current.name)
            current = follow_up

    def _step(self, action: Action[Any]) -> Optional[Action[Any]]:
        """
        處理單個 Action，返回要串接的後續 Action (沒有則為 None)。

        錯誤被發布到 errors 通道時返回 None，後續 Action 被丟棄。
        """
        if self._disposed:
            raise DisposedStoreError(
                "Dispatching actions is not allowed in a disposed Store",
                operation="dispatch",
                action_name=action.name,
            )
        old_state = self._state
        reducer = self._reducers.get(action.name)
        if reducer is None:
            warnings.warn(
                f"No reducer bound for action '{action.name}'",
                UnboundActionWarning,
                stacklevel=4,
            )
            self._event_subject.on_next(StoreEvent(self, old_state, old_state, action))
            return None

        try:
            new_state, follow_up = self._reduce(reducer, old_state, action)
        except Exception as err:
            self._report(reducer, action, err)
            if self._error_subject.observers:
                self._error_subject.on_next(StoreError(self, self._state, action, err))
                return None
            raise

        self._state = new_state
        self._event_subject.on_next(StoreEvent(self, old_state, new_state, action))
        return follow_up

    def _reduce(self, reducer: Reducer[S], state: S, action: Action[Any]) -> Tuple[S, Optional[Action[Any]]]:
        with chain_scope(action) as slot:
            new_state = reducer(state, action)
        return new_state, slot.follow_up

    def _report(self, reducer: Callable[..., Any], action: Action[Any], err: Exception) -> None:
        if self._error_handler is None:
            return
        reducer_name = getattr(reducer, '__name__', repr(reducer))
        report = ReducerError(
            f"Reducer '{reducer_name}' failed on action '{action.name}': {err}",
            reducer_name=reducer_name,
            action_name=action.name,
            state=self._state,
        )
        report.__cause__ = err
        try:
            self._error_handler.handle(report)
        except Exception as handler_err:
            # 處理器本身的失敗不得取代 reducer 的原始錯誤
            print(f"❌ ErrorHandler failed while reporting '{action.name}': {handler_err!r}")

    def dispose(self) -> None:
        """
        釋放 Store。

        關閉 events 與 errors 通道 (訂閱者收到完成信號)，之後的 dispatch
        會拋出 DisposedStoreError。重複調用無效果。
        """
        if self._disposed:
            return
        self._disposed = True
        self._event_subject.on_completed()
        self._error_subject.on_completed()


class StoreBuilder(Generic[S]):
    """
    Store 的構建器。

    用法:
        builder = StoreBuilder(initial_state=Car(is_engine_on=False))
        builder.bind(Actions.turn_engine_on, turn_engine_on)
        store = builder.build()
    """

    def __init__(self, initial_state: Optional[S] = None, *,
                 error_handler: Optional[ErrorHandler] = None,
                 strict: bool = False):
        """
        Args:
            initial_state: Store 的初始狀態
            error_handler: reducer 錯誤的報告處理器，None 表示不報告
            strict: 為 True 時拒絕重複綁定同一個 Action
        """
        self._initial_state = initial_state
        self._error_handler = error_handler
        self._registry = ActionRegistry(strict=strict)

    def bind(self, action: ActionName[Any], reducer: Reducer[S]) -> 'StoreBuilder[S]':
        """
        將 reducer 綁定到指定的 Action 構建器。

        Args:
            action: 四種 Action 構建器之一
            reducer: 接收 (state, action) 並返回新狀態的函數

        Returns:
            構建器本身，方便鏈式調用
        """
        self._registry.bind(action, reducer)
        return self

    def build(self) -> Store[S]:
        """
        以當前綁定的快照創建新的 Store。之後的 bind 不影響已創建的 Store。

        Returns:
            新創建的 Store
        """
        return Store(self._initial_state, self._registry.freeze(), error_handler=self._error_handler)


def create_store(initial_state: S, *bindings: Binding,
                 error_handler: Optional[ErrorHandler] = None,
                 strict: bool = False) -> Store[S]:
    """
    以初始狀態和一系列綁定創建 Store。

    Args:
        initial_state: 初始狀態
        *bindings: 使用 on 函式創建的 (action_name, reducer) 綁定
        error_handler: reducer 錯誤的報告處理器
        strict: 為 True 時拒絕重複綁定

    Returns:
        新創建的 Store

    範例:
        >>> store = create_store(
        ...     TurnstileState(),
        ...     on(Actions.put_coin, put_coin_reducer),
        ...     on(Actions.push, push_reducer),
        ... )
    """
    registry = ActionRegistry(strict=strict)
    for name, reducer in bindings:
        registry.add(name, reducer)
    return Store(initial_state, registry.freeze(), error_handler=error_handler)
