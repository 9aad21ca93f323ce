"""
plist 文档读写与数组修改工具。

设计原则：
- 读取时自动识别 XML/Binary，写回时保持原格式。
- 解析失败统一抛出 `MalformedArtifactError`，缺失文件的 `OSError` 原样上抛。
"""

from __future__ import annotations

import plistlib
from typing import Any
from xml.parsers.expat import ExpatError

from .errors import MalformedArtifactError

_BINARY_MAGIC = b"bplist00"


def _parse_plist(path: str, data: bytes) -> Any:
    try:
        return plistlib.loads(data)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        raise MalformedArtifactError(path, str(e) or type(e).__name__) from e


def load_plist_dict(path: str) -> tuple[dict, plistlib.PlistFormat]:
    """读取根节点为字典的 plist，同时返回其磁盘格式（文件只读取一次）。"""
    with open(path, "rb") as f:
        data = f.read()
    obj = _parse_plist(path, data)
    if not isinstance(obj, dict):
        raise MalformedArtifactError(path, "plist root is not a dictionary")
    return obj, detect_format(data)


def detect_format(data: bytes) -> plistlib.PlistFormat:
    """根据文件头判断 plist 是二进制还是 XML。"""
    if data.startswith(_BINARY_MAGIC):
        return plistlib.FMT_BINARY
    return plistlib.FMT_XML


def save_plist(path: str, obj: Any, fmt: plistlib.PlistFormat = plistlib.FMT_XML) -> None:
    """将对象按指定格式整体写回磁盘。"""
    data = plistlib.dumps(obj, fmt=fmt, sort_keys=False)
    with open(path, "wb") as f:
        f.write(data)


def get_or_create_array(root: dict, key: str) -> tuple[list, bool]:
    """获取或创建根字典下的数组节点，返回 `(array, created)`。"""
    if key not in root or root[key] is None:
        root[key] = []
        return root[key], True
    if not isinstance(root[key], list):
        raise TypeError(f"target is not an array: {key}")
    return root[key], False


def array_add_unique_string(root: dict, key: str, value: str) -> bool:
    """向目标数组追加字符串（已存在则跳过），返回数组是否发生变化。"""
    arr, created = get_or_create_array(root, key)
    if value in arr:
        return created
    arr.append(value)
    return True
