"""
将期望设置合并进 `Info.plist` 根字典。

只有在键缺失或按类型比较后取值不同时才写入，重复执行不会产生任何改动，
从而避免触发下游的增量编译。
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import MalformedArtifactError
from .plist_edit import array_add_unique_string, load_plist_dict, save_plist
from .types import DesiredSetting, SettingKind

BACKGROUND_MODES_KEY = "UIBackgroundModes"
REMOTE_NOTIFICATION_MODE = "remote-notification"


def _needs_write(root: dict, setting: DesiredSetting) -> bool:
    """判断单条设置是否需要写入（键缺失或类型化比较不一致）。"""
    if setting.key not in root:
        return True
    current = root[setting.key]
    if setting.kind is SettingKind.BOOL:
        return not isinstance(current, bool) or current != bool(setting.value)
    if setting.kind is SettingKind.INTEGER:
        # plistlib 中 bool 是 int 的子类，需要排除。
        if isinstance(current, bool) or not isinstance(current, int):
            return True
        return current != int(setting.value)
    if setting.kind is SettingKind.STRING:
        return False
    raise RuntimeError(f"Unknown setting kind: {setting.kind}")


def merge_settings(
    root: dict,
    settings: Sequence[DesiredSetting],
    *,
    add_background_mode: bool,
) -> bool:
    """把设置逐条合并进根字典，返回是否有任何改动。"""
    changed = False
    for setting in settings:
        if setting.kind is SettingKind.STRING:
            continue
        if not _needs_write(root, setting):
            continue
        if setting.kind is SettingKind.BOOL:
            root[setting.key] = bool(setting.value)
        else:
            root[setting.key] = int(setting.value)
        changed = True

    if add_background_mode:
        if array_add_unique_string(root, BACKGROUND_MODES_KEY, REMOTE_NOTIFICATION_MODE):
            changed = True

    return changed


def patch_info_plist(
    plist_path: str,
    settings: Sequence[DesiredSetting],
    *,
    add_background_mode: bool,
) -> bool:
    """读取、合并并在有改动时写回 `Info.plist`，返回是否写入。"""
    root, fmt = load_plist_dict(plist_path)
    try:
        changed = merge_settings(root, settings, add_background_mode=add_background_mode)
    except TypeError as e:
        raise MalformedArtifactError(plist_path, str(e)) from e

    if changed:
        save_plist(plist_path, root, fmt)
    return changed
