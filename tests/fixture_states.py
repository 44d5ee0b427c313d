"""測試共用的狀態、Action 與 reducer。"""
from enum import Enum

from pydantic import BaseModel, ConfigDict

from reduxmachine import (
    ActionBuilder, AsyncActionBuilder, AsyncVoidActionBuilder, VoidActionBuilder,
)


# ====== Car ======
class HeadlampsMode(str, Enum):
    OFF = "off"
    ON = "on"
    HIGH_BEAMS = "highBeams"


class Car(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_engine_on: bool = False
    headlamps: HeadlampsMode = HeadlampsMode.OFF


class CarActions:
    turn_engine_on = ActionBuilder("turnEngineOn", bool)
    switch_headlamps = ActionBuilder("switchHeadlamps", HeadlampsMode)
    error = VoidActionBuilder("error")
    not_bound = VoidActionBuilder("notBound")


def turn_engine_on(state: Car, action) -> Car:
    return state.model_copy(update={"is_engine_on": action.payload})


def switch_headlamps(state: Car, action) -> Car:
    return state.model_copy(update={"headlamps": action.payload})


def error_reducer(state, action):
    raise RuntimeError("Something bad happened")


# ====== Turnstile ======
class Turnstile(BaseModel):
    model_config = ConfigDict(frozen=True)

    locked: bool = True
    coins: int = 0
    passed: int = 0


class TurnstileActions:
    put_coin = VoidActionBuilder("putCoin")
    push = VoidActionBuilder("push")


def put_coin(state: Turnstile, action) -> Turnstile:
    return state.model_copy(update={"locked": False, "coins": state.coins + 1})


def push(state: Turnstile, action) -> Turnstile:
    if state.locked:
        return state
    return state.model_copy(update={"locked": True, "passed": state.passed + 1})


# ====== 串接 ======
class Simple(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_locked: bool = True
    data: str = ""


class ChainActions:
    put_coin = VoidActionBuilder("putCoin")
    push = VoidActionBuilder("push")
    chain = ActionBuilder("chain", str)
    append = ActionBuilder("append", str)
    loop = VoidActionBuilder("loop")
    chain_error = VoidActionBuilder("chainError")
    error = VoidActionBuilder("error")
    dyn = ActionBuilder("dyn", bool)
    chain_unbound = VoidActionBuilder("chainUnbound")
    not_bound = VoidActionBuilder("notBound")


def simple_put_coin(state: Simple, action) -> Simple:
    return state.model_copy(update={"is_locked": False})


def simple_push(state: Simple, action) -> Simple:
    return state.model_copy(update={"is_locked": True})


def chaining_reducer(state: Simple, action) -> Simple:
    return action.next(
        ChainActions.append("-append"),
        state.model_copy(update={"is_locked": False, "data": action.payload}),
    )


def append_reducer(state: Simple, action) -> Simple:
    return state.model_copy(update={"is_locked": False, "data": state.data + action.payload})


def loop_reducer(state: Simple, action) -> Simple:
    return action.next(ChainActions.loop(), state.model_copy(update={"data": "looped"}))


def chain_error_reducer(state: Simple, action) -> Simple:
    return action.next(ChainActions.error(), state.model_copy(update={"data": "before-error"}))


def dynamic_reducer(state: Simple, action) -> Simple:
    if action.payload:
        return action.next(ChainActions.put_coin(), state)
    return action.next(ChainActions.chain("dynamicChained"), state)


def chain_unbound_reducer(state: Simple, action) -> Simple:
    return action.next(ChainActions.not_bound(), state.model_copy(update={"data": "unbound-next"}))


# ====== 非同步 ======
class Items(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: tuple = ("a", "b")
    deleting: tuple = ()


class ItemActions:
    delete = AsyncActionBuilder("delete", str)
    refresh = AsyncVoidActionBuilder("refresh")


def delete_reducer(state: Items, action) -> Items:
    return state.model_copy(update={"deleting": state.deleting + (action.payload,)})
