"""
设置源、修补流程与 CLI 共享的轻量类型定义。
"""

import enum
from dataclasses import dataclass


class SettingKind(enum.Enum):
    """期望设置值的类型标签。"""

    BOOL = "bool"
    INTEGER = "integer"
    # 旧格式只用布尔与整数编码，字符串类设置不会写入 `Info.plist`。
    STRING = "string"


@dataclass(frozen=True)
class DesiredSetting:
    """描述一条需要同步到 `Info.plist` 根字典的期望设置。"""

    key: str
    value: bool | int | str
    kind: SettingKind

    @classmethod
    def of(cls, key: str, value: bool | int | str) -> "DesiredSetting":
        """根据 Python 值推断类型标签（`bool` 需先于 `int` 判断）。"""
        if isinstance(value, bool):
            return cls(key=key, value=value, kind=SettingKind.BOOL)
        if isinstance(value, int):
            return cls(key=key, value=int(value), kind=SettingKind.INTEGER)
        if isinstance(value, str):
            return cls(key=key, value=value, kind=SettingKind.STRING)
        raise TypeError(f"unsupported setting value for {key}: {value!r}")


@dataclass(frozen=True)
class MacroFlags:
    """`Preprocessor.h` 中需要打开的功能宏。"""

    location_enabled: bool = False
    push_enabled: bool = False
