"""
通知功能的期望设置：常用键名、枚举取值与设置源加载。

设置源本身由外部（编辑器设置界面）维护，这里只负责把 JSON 文件或命令行
参数整理成 `DesiredSetting` 列表，修补流程只读不写。
"""

from __future__ import annotations

import enum
import json
from collections.abc import Iterable, Sequence

from .types import DesiredSetting, SettingKind

# 修补流程依赖的三个固定键。
LOCATION_TRIGGER_KEY = "UnityUseLocationNotificationTrigger"
REMOTE_CAPABILITY_KEY = "UnityAddRemoteNotificationCapability"
RELEASE_ENVIRONMENT_KEY = "UnityUseAPSReleaseEnvironment"

# 其余写入 `Info.plist` 供运行时 SDK 读取的键。
REQUEST_AUTH_ON_LAUNCH_KEY = "UnityNotificationRequestAuthorizationOnAppLaunch"
DEFAULT_AUTH_OPTIONS_KEY = "UnityNotificationDefaultAuthorizationOptions"
REQUEST_REMOTE_ON_LAUNCH_KEY = "UnityNotificationRequestAuthorizationForRemoteNotificationsOnAppLaunch"
FOREGROUND_PRESENTATION_KEY = "UnityRemoteNotificationForegroundPresentationOptions"


class AuthorizationOption(enum.IntFlag):
    """与 `UNAuthorizationOptions` 位值一致的授权选项。"""

    BADGE = 1 << 0
    SOUND = 1 << 1
    ALERT = 1 << 2
    CAR_PLAY = 1 << 3


class PresentationOption(enum.IntFlag):
    """前台收到远程通知时的展示方式。"""

    NONE = 0
    BADGE = 1 << 0
    SOUND = 1 << 1
    ALERT = 1 << 2


def find_setting(settings: Sequence[DesiredSetting], key: str) -> DesiredSetting | None:
    """按键名查找设置；键重复时以最后一条为准。"""
    found: DesiredSetting | None = None
    for setting in settings:
        if setting.key == key:
            found = setting
    return found


def setting_flag(settings: Sequence[DesiredSetting], key: str, default: bool = False) -> bool:
    """
    读取布尔开关，缺失时返回默认值。

    整数按非零判断；字符串按 `bool_from_str` 解析，无法识别时抛出 `ValueError`。
    """
    setting = find_setting(settings, key)
    if setting is None:
        return default
    if setting.kind is SettingKind.BOOL:
        return bool(setting.value)
    if setting.kind is SettingKind.INTEGER:
        return int(setting.value) != 0
    if setting.kind is SettingKind.STRING:
        return bool_from_str(str(setting.value))
    raise RuntimeError(f"Unknown setting kind: {setting.kind}")


def bool_from_str(s: str) -> bool:
    """将常见布尔字符串（true/false/1/0 等）转换为 bool。"""
    v = s.strip().lower()
    if v in ("true", "1", "yes", "y"):
        return True
    if v in ("false", "0", "no", "n"):
        return False
    raise ValueError(f"invalid bool: {s}")


def settings_from_pairs(pairs: Iterable[tuple[str, object]]) -> list[DesiredSetting]:
    """把 `(key, value)` 序列转换为设置列表，保持原有顺序。"""
    out: list[DesiredSetting] = []
    for key, value in pairs:
        if not isinstance(key, str) or not key:
            raise ValueError(f"invalid setting key: {key!r}")
        if not isinstance(value, (bool, int, str)):
            raise ValueError(f"unsupported value for {key}: {value!r}")
        out.append(DesiredSetting.of(key, value))
    return out


def load_settings_file(path: str) -> list[DesiredSetting]:
    """
    从 JSON 文件读取设置列表。

    支持两种形态：
    - `[{"key": "...", "value": ...}, ...]`：与编辑器导出的扁平列表一致。
    - `{"Key": value, ...}`：手写配置时更方便。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return settings_from_pairs(data.items())
    if isinstance(data, list):
        pairs: list[tuple[str, object]] = []
        for i, item in enumerate(data):
            if not isinstance(item, dict) or "key" not in item or "value" not in item:
                raise ValueError(f"settings[{i}] must be an object with key and value")
            pairs.append((item["key"], item["value"]))
        return settings_from_pairs(pairs)
    raise ValueError("settings file must contain a JSON array or object")
