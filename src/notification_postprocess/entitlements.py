from __future__ import annotations

"""
签名权限（`entitlements`）文件生成辅助模块。

目前只关心推送能力：`aps-environment` 为 `development`（沙盒）或
`production`（正式环境）。已有文件中的其他键保持不变。
"""

import os
import plistlib

from .plist_edit import load_plist_dict, save_plist

APS_ENVIRONMENT_KEY = "aps-environment"
APS_DEVELOPMENT = "development"
APS_PRODUCTION = "production"
ENTITLEMENTS_EXTENSION = ".entitlements"


def default_entitlements_name(bundle_identifier: str) -> str:
    """用包标识最后一段（最后一个 `.` 之后）生成默认文件名。"""
    ident = bundle_identifier.strip()
    if not ident:
        raise ValueError("bundle identifier is required to name the entitlements file")
    return ident.rsplit(".", 1)[-1] + ENTITLEMENTS_EXTENSION


def add_push_notifications(ent: dict, *, development: bool) -> bool:
    """写入推送能力声明，返回字典是否发生变化。"""
    value = APS_DEVELOPMENT if development else APS_PRODUCTION
    if ent.get(APS_ENVIRONMENT_KEY) == value:
        return False
    ent[APS_ENVIRONMENT_KEY] = value
    return True


def write_push_entitlements(path: str, *, development: bool) -> bool:
    """创建或更新签名权限文件；内容未变化时不写盘，返回是否写入。"""
    ent: dict = {}
    fmt = plistlib.FMT_XML
    if os.path.isfile(path):
        ent, fmt = load_plist_dict(path)
        if not add_push_notifications(ent, development=development):
            return False
    else:
        add_push_notifications(ent, development=development)
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)

    save_plist(path, ent, fmt)
    return True
