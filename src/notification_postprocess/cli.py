"""
`notification-postprocess` 的命令行入口模块。

作为构建流水线的回调使用：收集目标平台、导出目录与期望设置，
并调用 `notification_postprocess.postprocess.postprocess_build`。
"""

import argparse
import os
from collections.abc import Sequence

from .errors import PatchError
from .postprocess import IOS_PLATFORM, postprocess_build
from .settings import bool_from_str, load_settings_file
from .types import DesiredSetting, SettingKind


def _add_setting(settings: list[DesiredSetting], kind: SettingKind, spec: str) -> None:
    """将一条 `KEY=VALUE` 参数转换为 `DesiredSetting` 并追加到列表。"""
    if "=" not in spec:
        raise SystemExit(f"Error: expected KEY=VALUE, got: {spec}")
    k, v = spec.split("=", 1)
    if not k:
        raise SystemExit(f"Error: empty KEY in: {spec}")
    try:
        if kind is SettingKind.BOOL:
            value: bool | int | str = bool_from_str(v)
        elif kind is SettingKind.INTEGER:
            value = int(v.strip())
        else:
            value = v
    except ValueError as e:
        raise SystemExit(f"Error: invalid {kind.value} setting {spec}: {e}") from e
    settings.append(DesiredSetting(key=k, value=value, kind=kind))


def _collect_settings(ns: argparse.Namespace) -> list[DesiredSetting]:
    """合并设置文件与命令行参数；命令行在后，同名时覆盖文件中的值。"""
    settings: list[DesiredSetting] = []
    if ns.settings:
        path = os.path.abspath(os.path.expanduser(ns.settings))
        if not os.path.isfile(path):
            raise SystemExit(f"Error: settings file not found: {path}")
        try:
            settings.extend(load_settings_file(path))
        except ValueError as e:
            raise SystemExit(f"Error: invalid settings file {path}: {e}") from e

    for spec in ns.set_bool:
        _add_setting(settings, SettingKind.BOOL, spec)
    for spec in ns.set_int:
        _add_setting(settings, SettingKind.INTEGER, spec)
    for spec in ns.set:
        _add_setting(settings, SettingKind.STRING, spec)
    return settings


def _log_step(message: str) -> None:
    """输出简洁的流程阶段提示。"""
    print(f"[notification-postprocess] {message}")


def build_parser() -> argparse.ArgumentParser:
    """构建并返回命令行参数解析器。"""
    p = argparse.ArgumentParser(
        prog="notification-postprocess",
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "Post-process an exported iOS Xcode project so mobile notifications are wired in.\n"
            "Links frameworks, writes push entitlements, merges Info.plist settings and\n"
            "enables Preprocessor.h macros. Files are only rewritten when they change."
        ),
    )
    p.add_argument("-o", "--output", default="", help="Exported Xcode project directory")
    p.add_argument(
        "--platform",
        default=IOS_PLATFORM,
        help=f"Build target platform (default: {IOS_PLATFORM}); other platforms are a no-op",
    )
    p.add_argument(
        "--settings",
        default="",
        help="JSON settings file: [{\"key\": ..., \"value\": ...}] or {key: value}",
    )
    p.add_argument("--set-bool", action="append", default=[], metavar="KEY=VALUE",
                   help="Desired bool setting (true/false/1/0)")
    p.add_argument("--set-int", action="append", default=[], metavar="KEY=VALUE",
                   help="Desired integer/enum setting")
    p.add_argument("--set", action="append", default=[], metavar="KEY=VALUE",
                   help="Desired string setting (never written to Info.plist)")
    p.add_argument(
        "-b",
        "--bundle-id",
        default="",
        help="Application bundle identifier (names the default entitlements file)",
    )
    p.add_argument(
        "--min-os-version",
        default="",
        help="Target minimum iOS version; warns when below 10.0",
    )
    p.add_argument("--verbose", action="store_true", help="Verbose logging")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    """CLI 入口：解析参数并执行构建后处理。"""
    parser = build_parser()
    ns = parser.parse_args(argv)

    if not ns.output:
        raise SystemExit("Error: missing -o/--output (exported Xcode project directory).")
    output_dir = os.path.abspath(os.path.expanduser(ns.output))
    if not os.path.isdir(output_dir):
        raise SystemExit(f"Error: output directory not found: {output_dir}")

    settings = _collect_settings(ns)
    _log_step(f"Loaded {len(settings)} setting(s)")
    _log_step(f"Post-processing {ns.platform} build: {output_dir}")

    try:
        report = postprocess_build(
            ns.platform,
            output_dir,
            settings,
            bundle_identifier=ns.bundle_id or "",
            target_os_version=ns.min_os_version or "",
            verbose=bool(ns.verbose),
        )
    except (PatchError, OSError, ValueError) as e:
        raise SystemExit(f"Error: {e}") from e

    if not report.platform_matched:
        _log_step("Platform is not iOS, nothing to do")
    elif report.changed:
        written = [
            name
            for name, flag in (
                ("project.pbxproj", report.project),
                (report.entitlements_path, report.entitlements),
                ("Info.plist", report.info_plist),
                ("Preprocessor.h", report.preprocessor),
            )
            if flag
        ]
        _log_step(f"Updated: {', '.join(written)}")
    else:
        _log_step("Already up to date")
    return 0
