from __future__ import annotations

import pytest

from reduxmachine import StoreBuilder

from fixture_states import (
    Car, CarActions, ChainActions, Simple, Turnstile, TurnstileActions,
    append_reducer, chain_error_reducer, chain_unbound_reducer, chaining_reducer,
    dynamic_reducer, error_reducer, loop_reducer, put_coin, push,
    simple_push, simple_put_coin, switch_headlamps, turn_engine_on,
)


@pytest.fixture
def car_store():
    store = (
        StoreBuilder(initial_state=Car(), error_handler=None)
        .bind(CarActions.turn_engine_on, turn_engine_on)
        .bind(CarActions.switch_headlamps, switch_headlamps)
        .bind(CarActions.error, error_reducer)
        .build()
    )
    yield store
    store.dispose()


@pytest.fixture
def turnstile_store():
    store = (
        StoreBuilder(initial_state=Turnstile(), error_handler=None)
        .bind(TurnstileActions.put_coin, put_coin)
        .bind(TurnstileActions.push, push)
        .build()
    )
    yield store
    store.dispose()


@pytest.fixture
def chain_store():
    store = (
        StoreBuilder(initial_state=Simple(), error_handler=None)
        .bind(ChainActions.put_coin, simple_put_coin)
        .bind(ChainActions.push, simple_push)
        .bind(ChainActions.chain, chaining_reducer)
        .bind(ChainActions.append, append_reducer)
        .bind(ChainActions.loop, loop_reducer)
        .bind(ChainActions.chain_error, chain_error_reducer)
        .bind(ChainActions.error, error_reducer)
        .bind(ChainActions.dyn, dynamic_reducer)
        .bind(ChainActions.chain_unbound, chain_unbound_reducer)
        .build()
    )
    yield store
    store.dispose()


@pytest.fixture
def collect():
    """訂閱一個可觀察對象，返回收集到的值列表。"""
    subscriptions = []

    def _collect(observable):
        seen = []
        subscriptions.append(observable.subscribe(seen.append))
        return seen

    yield _collect
    for sub in subscriptions:
        sub.dispose()
