"""
ReduxMachine: 同步的 Redux 風格狀態容器，支援在 reducer 中串接 Action 的狀態機用法。
"""
from .errors import (
    ReduxMachineError, ActionError, CyclicChainError, ValidationError,
    ReducerError, ConfigurationError, DisposedStoreError, UnboundActionWarning,
    ErrorHandler, global_error_handler,
)
from .actions import (
    Action, AsyncAction, ActionName, ActionBuilder, VoidActionBuilder,
    AsyncActionBuilder, AsyncVoidActionBuilder, create_action,
)
from .registry import ActionRegistry, on
from .store import StoreEvent, StoreError, StoreBase, Store, StoreBuilder, create_store
from .state_machine import MachineState, ActionDispatcher, StateMachine, StateMachineBuilder
from .logger import StoreLogger
from .immutable_utils import to_immutable, to_dict

# 匯出所有公開 API
__all__ = [
    # Errors
    "ReduxMachineError", "ActionError", "CyclicChainError", "ValidationError",
    "ReducerError", "ConfigurationError", "DisposedStoreError", "UnboundActionWarning",
    "ErrorHandler", "global_error_handler",

    # Actions
    "Action", "AsyncAction", "ActionName", "ActionBuilder", "VoidActionBuilder",
    "AsyncActionBuilder", "AsyncVoidActionBuilder", "create_action",

    # Registry
    "ActionRegistry", "on",

    # Store
    "StoreEvent", "StoreError", "StoreBase", "Store", "StoreBuilder", "create_store",

    # State machine
    "MachineState", "ActionDispatcher", "StateMachine", "StateMachineBuilder",

    # Logging
    "StoreLogger",

    # Immutable Utils
    "to_immutable", "to_dict",
]
