# reduxmachine/immutable_utils.py
from typing import Any

from immutables import Map
from pydantic import BaseModel


def to_immutable(obj: Any) -> Any:
    """將 Action 負載轉換為不可變形式 (包括 Pydantic 模型)"""
    if isinstance(obj, BaseModel):
        if obj.model_config.get("frozen"):
            # 已凍結的模型本身即不可變
            return obj
        return Map({k: to_immutable(v) for k, v in obj.model_dump().items()})
    elif isinstance(obj, dict):
        return Map({k: to_immutable(v) for k, v in obj.items()})
    elif isinstance(obj, list):
        return tuple(to_immutable(i) for i in obj)
    elif isinstance(obj, set):
        return frozenset(to_immutable(i) for i in obj)
    return obj


def to_dict(obj: Any) -> Any:
    """將 Map、Pydantic 模型及其巢狀結構轉換為普通 Python 結構，方便打印"""
    if isinstance(obj, Map):
        return {k: to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, BaseModel):
        return {k: to_dict(v) for k, v in obj.model_dump().items()}
    elif isinstance(obj, tuple):
        return [to_dict(i) for i in obj]
    elif isinstance(obj, frozenset):
        return {to_dict(i) for i in obj}
    return obj
