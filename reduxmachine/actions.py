"""
ReduxMachine 的 Action 定義模組。

此模組提供 Action / AsyncAction 類別，以及四種 Action 構建器：

- ActionBuilder: 帶負載的 Action
- VoidActionBuilder: 無負載的 Action
- AsyncActionBuilder: 帶負載的非同步 Action
- AsyncVoidActionBuilder: 無負載的非同步 Action

Actions 是描述狀態變更意圖的不可變對象。Reducer 可以透過 Action.next()
要求 Store 在當前 Action 完成後立即同步分發另一個 Action。
"""
import asyncio
import contextlib
import inspect
from concurrent.futures import Future
from contextvars import ContextVar
from typing import Any, Generator, Generic, Optional, Union, get_origin

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ActionError, ValidationError
from .immutable_utils import to_immutable
from .types import P, S


class _ChainSlot:
    """單次 reducer 調用期間記錄後續 Action 的槽位。"""
    __slots__ = ('action', 'follow_up')

    def __init__(self, action: 'Action[Any]'):
        self.action = action
        self.follow_up: Optional['Action[Any]'] = None


_current_slot: ContextVar[Optional[_ChainSlot]] = ContextVar('reduxmachine_chain_slot', default=None)


@contextlib.contextmanager
def chain_scope(action: 'Action[Any]') -> Generator[_ChainSlot, None, None]:
    """
    為一次 reducer 調用開啟串接範圍。

    範圍內對 action.next() 的調用會被記錄在產出的槽位中，
    離開範圍後槽位即失效。

    Args:
        action: 正在被 reducer 處理的 Action

    Yields:
        記錄後續 Action 的槽位
    """
    slot = _ChainSlot(action)
    token = _current_slot.set(slot)
    try:
        yield slot
    finally:
        _current_slot.reset(token)


class Action(Generic[P]):
    """
    表示一個有名稱和可選負載的動作。

    泛型參數:
        P: 負載的類型

    屬性:
        name: 動作的名稱，同一邏輯類型的 Action 名稱固定
        payload: 動作的負載數據（可選）
    """
    __slots__ = ('name', 'payload')

    def __init__(self, name: str, payload: Optional[P] = None):
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'payload', _process_payload(payload))

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __delattr__(self, name):
        raise AttributeError(f"Cannot delete immutable instance attribute '{name}'")

    def next(self, action: 'Action[Any]', state: S) -> S:
        """
        要求在當前 Action 完成後立即分發 action，並原樣返回 state。

        只能在處理此 Action 的 reducer 內調用。同一次 reducer 調用中
        多次調用時，只有最後一次有效。

        Args:
            action: 要串接的後續 Action
            state: reducer 計算出的新狀態

        Returns:
            傳入的 state，方便寫成 `return action.next(other(), new_state)`

        範例:
            >>> def chain_reducer(state, action):
            ...     return action.next(append("-append"), state.model_copy(update={"data": action.payload}))
        """
        slot = _current_slot.get()
        if slot is None or slot.action is not self:
            raise ActionError(
                "Action.next() can only be called inside the reducer handling this action",
                self.name,
            )
        if not isinstance(action, Action):
            raise ActionError(
                f"Chained action must be an Action instance, got {type(action).__name__}",
                self.name,
            )
        slot.follow_up = action
        return state

    def __eq__(self, other):
        if not isinstance(other, Action) or isinstance(other, AsyncAction):
            return False
        return self.name == other.name and self.payload == other.payload

    def __hash__(self):
        return hash((self.name, self.payload))

    def __repr__(self):
        return f"{type(self).__name__}(name='{self.name}', payload={self.payload!r})"


class AsyncAction(Action[P]):
    """
    帶有完成信號的非同步 Action。

    分發方（通常是 UI）可以透過 done / wait() 得知與此 Action 相關的
    非同步工作何時完成。真正執行非同步工作的外部協作者在完成後
    調用 complete() 或 complete_error()。完成信號只能被設定一次。

    完成信號不攜帶返回值：數據應透過 Store.changes 或 Store.changes_for
    從更新後的狀態中取得。
    """
    __slots__ = ('_future', '_chained')

    def __init__(self, name: str, payload: Optional[P] = None):
        super().__init__(name, payload)
        object.__setattr__(self, '_future', Future())
        object.__setattr__(self, '_chained', False)

    def complete(self) -> None:
        """
        以成功狀態完成此 Action。

        在 complete_after() 之後不可再調用。
        """
        self._check_can_complete()
        self._future.set_result(None)

    def complete_error(self, error: BaseException) -> None:
        """
        以錯誤狀態完成此 Action。

        Args:
            error: 非同步工作失敗的原因
        """
        self._check_can_complete()
        self._future.set_exception(error)

    def complete_after(self, action: 'AsyncAction[Any]') -> None:
        """
        在另一個非同步 Action 完成後，以相同結果完成此 Action。

        主要用於 reducer 中串接 Action，且當前 Action 應在後續 Action
        完成後才算完成的情況：

            def some_reducer(state, action):
                other = Actions.other_work(payload)
                action.complete_after(other)
                return action.next(other, new_state)

        Args:
            action: 決定此 Action 完成時機的非同步 Action
        """
        if not isinstance(action, AsyncAction):
            raise ActionError("complete_after() requires an AsyncAction", self.name)
        self._check_can_complete()
        object.__setattr__(self, '_chained', True)
        action.done.add_done_callback(self._settle_from)

    def _settle_from(self, future: 'Future[None]') -> None:
        error = future.exception()
        if error is not None:
            self._future.set_exception(error)
        else:
            self._future.set_result(None)

    def _check_can_complete(self) -> None:
        if self._chained:
            raise ActionError(
                "AsyncAction can not be completed after it has been chained with complete_after()",
                self.name,
            )
        if self._future.done():
            raise ActionError("AsyncAction has already been completed", self.name)

    @property
    def done(self) -> 'Future[None]':
        """表示非同步工作何時完成的 Future。"""
        return self._future

    @property
    def is_done(self) -> bool:
        """此 Action 是否已經以成功或錯誤狀態完成。"""
        return self._future.done()

    async def wait(self) -> None:
        """
        在 asyncio 中等待此 Action 完成。

        Raises:
            以 complete_error() 設定的錯誤
        """
        await asyncio.wrap_future(self._future)

    def __eq__(self, other):
        return self is other

    def __hash__(self):
        return object.__hash__(self)

    def __repr__(self):
        state = "done" if self.is_done else "pending"
        return f"AsyncAction(name='{self.name}', payload={self.payload!r}, {state})"


def _process_payload(payload: Any) -> Any:
    """
    處理 payload，將字典、列表與集合轉換為不可變結構。

    Args:
        payload: 原始 payload

    Returns:
        處理後的 payload
    """
    if isinstance(payload, (dict, list, set)):
        return to_immutable(payload)
    return payload


class ActionName(Generic[P]):
    """
    所有 Action 構建器的基類，持有固定的名稱與可選的負載類型。

    構建器是無狀態的常量，通常集中宣告在一個命名空間類中：

        class Actions:
            turn_engine_on = ActionBuilder("turnEngineOn", bool)
            push = VoidActionBuilder("push")
    """
    __slots__ = ('name', 'payload_type', '_adapter')

    def __init__(self, name: str, payload_type: Any = None):
        if not isinstance(name, str) or not name:
            raise ActionError("Action name must be a non-empty string", str(name))
        if payload_type is Any:
            payload_type = None
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'payload_type', payload_type)
        adapter = None
        if payload_type is not None and not _is_plain_class(payload_type):
            # typing 構造 (例如 List[int]) 交給 pydantic 進行嚴格驗證
            adapter = TypeAdapter(payload_type)
        object.__setattr__(self, '_adapter', adapter)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def _validate(self, payload: Any) -> None:
        if self.payload_type is None:
            return
        if self._adapter is None:
            if isinstance(payload, self.payload_type):
                return
            raise ValidationError(
                f"Invalid payload for action '{self.name}'",
                field="payload",
                value=payload,
                expected_type=self.payload_type.__name__,
            )
        try:
            self._adapter.validate_python(payload, strict=True)
        except PydanticValidationError as err:
            raise ValidationError(
                f"Invalid payload for action '{self.name}'",
                field="payload",
                value=payload,
                expected_type=repr(self.payload_type),
            ) from err

    def __repr__(self):
        return f"{type(self).__name__}('{self.name}')"


def _is_plain_class(payload_type: Any) -> bool:
    return get_origin(payload_type) is None and inspect.isclass(payload_type)


class ActionBuilder(ActionName[P]):
    """
    帶非空負載的 Action 構建器。每次調用都返回新的 Action。

        update_name = ActionBuilder("updateName", str)
        action = update_name("John")  # Action(name='updateName', payload='John')
    """
    __slots__ = ()

    def __call__(self, payload: P) -> Action[P]:
        self._validate(payload)
        return Action(self.name, payload)


class VoidActionBuilder(ActionName[None]):
    """無負載的 Action 構建器。"""
    __slots__ = ()

    def __init__(self, name: str):
        super().__init__(name)

    def __call__(self) -> Action[None]:
        return Action(self.name)


class AsyncActionBuilder(ActionName[P]):
    """帶負載的 AsyncAction 構建器。"""
    __slots__ = ()

    def __call__(self, payload: P) -> AsyncAction[P]:
        self._validate(payload)
        return AsyncAction(self.name, payload)


class AsyncVoidActionBuilder(ActionName[None]):
    """無負載的 AsyncAction 構建器。"""
    __slots__ = ()

    def __init__(self, name: str):
        super().__init__(name)

    def __call__(self) -> AsyncAction[None]:
        return AsyncAction(self.name)


AnyActionBuilder = Union[ActionBuilder, VoidActionBuilder, AsyncActionBuilder, AsyncVoidActionBuilder]


def create_action(name: str, payload_type: Any = None, *, has_payload: bool = True,
                  is_async: bool = False) -> AnyActionBuilder:
    """
    創建一個 Action 構建器，根據參數選擇四種變體之一。

    Args:
        name: Action 的名稱
        payload_type: 可選的負載類型，構建 Action 時會進行驗證
        has_payload: Action 是否攜帶負載
        is_async: 是否構建 AsyncAction

    Returns:
        對應的 Action 構建器

    範例:
        >>> put_coin = create_action("putCoin", has_payload=False)
        >>> put_coin()  # Action(name='putCoin', payload=None)
        >>>
        >>> delete = create_action("delete", str, is_async=True)
        >>> delete("item-1")  # AsyncAction(name='delete', payload='item-1', pending)
    """
    if not has_payload:
        if payload_type is not None:
            raise ActionError("payload_type given for an action without payload", name)
        return AsyncVoidActionBuilder(name) if is_async else VoidActionBuilder(name)
    if is_async:
        return AsyncActionBuilder(name, payload_type)
    return ActionBuilder(name, payload_type)
