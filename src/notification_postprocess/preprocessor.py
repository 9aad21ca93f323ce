"""
`Classes/Preprocessor.h` 功能宏修补。
"""

from __future__ import annotations

import re

from .types import MacroFlags

# 宏名 -> `MacroFlags` 中对应的字段。
KNOWN_MACROS: dict[str, str] = {
    "UNITY_USES_LOCATION": "location_enabled",
    "UNITY_USES_REMOTE_NOTIFICATIONS": "push_enabled",
}


def _disabled_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(name)} 0\b")


def patch_macros(text: str, flags: MacroFlags) -> tuple[str, bool]:
    """将开启功能对应的 `<NAME> 0` 改为 `<NAME> 1`，返回 `(new_text, changed)`。"""
    changed = False
    for name, field in KNOWN_MACROS.items():
        if not getattr(flags, field):
            continue
        # 某些导出版本的头文件不声明该宏，直接跳过。
        text, count = _disabled_pattern(name).subn(f"{name} 1", text)
        if count:
            changed = True
    return text, changed


def patch_preprocessor(path: str, flags: MacroFlags) -> bool:
    """读取头文件并在有改动时整体写回，返回是否写入。"""
    with open(path, "r", encoding="utf-8", newline="") as f:
        text = f.read()
    new_text, changed = patch_macros(text, flags)
    if changed:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(new_text)
    return changed
