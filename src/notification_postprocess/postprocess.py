"""
iOS build post-processing pipeline for mobile notifications.

High-level flow for one build invocation:
1) Xcode project: link `UserNotifications.framework` (weak) and, when location
   triggers are used, `CoreLocation.framework` on the framework host target.
   When the push capability is requested, write the entitlements file and
   attach it to the main target.
2) Info.plist: merge the desired settings and add `remote-notification` to
   `UIBackgroundModes` when push is requested.
3) Classes/Preprocessor.h: turn on the location / remote notification macros.

Every step only writes its artifact when something actually changed, so
running the pipeline again with the same settings leaves all files untouched.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from . import project as pbx
from .entitlements import default_entitlements_name, write_push_entitlements
from .plist_merge import patch_info_plist
from .preprocessor import patch_preprocessor
from .settings import (
    LOCATION_TRIGGER_KEY,
    RELEASE_ENVIRONMENT_KEY,
    REMOTE_CAPABILITY_KEY,
    setting_flag,
)
from .types import DesiredSetting, MacroFlags

IOS_PLATFORM = "iOS"
MIN_IOS_VERSION = (10, 0)
USER_NOTIFICATIONS_FRAMEWORK = "UserNotifications.framework"
CORE_LOCATION_FRAMEWORK = "CoreLocation.framework"


@dataclass
class PatchReport:
    """Which artifacts were rewritten during one invocation."""

    platform_matched: bool = False
    project: bool = False
    entitlements: bool = False
    info_plist: bool = False
    preprocessor: bool = False
    entitlements_path: str = ""

    @property
    def changed(self) -> bool:
        return self.project or self.entitlements or self.info_plist or self.preprocessor


def _log(message: str, verbose: bool) -> None:
    if verbose:
        print(f"+ {message}")


def _parse_version(value: str) -> tuple[int, ...]:
    parts = value.strip().split(".")
    return tuple(int(p) for p in parts)


def has_min_os_version(target_os_version: str) -> bool:
    """Whether the configured deployment target supports UserNotifications."""
    try:
        return _parse_version(target_os_version) >= MIN_IOS_VERSION
    except ValueError:
        return False


def patch_project(
    output_dir: str,
    *,
    need_location: bool,
    add_push: bool,
    use_release_env: bool,
    bundle_identifier: str,
    verbose: bool = False,
) -> tuple[bool, bool, str]:
    """
    Patch the Xcode project (and the entitlements file when push is requested).

    Returns `(project_written, entitlements_written, entitlements_path)`.
    """
    project_path = pbx.project_path_for(output_dir)
    graph = pbx.open_project(project_path)
    targets = pbx.resolve_targets(graph)
    _log(f"Xcode project layout: {graph.layout.value}", verbose)

    pbx.link_framework(
        graph, targets, pbx.TargetRole.FRAMEWORK_HOST, USER_NOTIFICATIONS_FRAMEWORK, optional=True
    )
    if need_location:
        pbx.link_framework(
            graph, targets, pbx.TargetRole.FRAMEWORK_HOST, CORE_LOCATION_FRAMEWORK, optional=False
        )

    entitlements_written = False
    entitlements_name = ""
    if add_push:
        entitlements_name = pbx.get_build_setting(graph, targets.main, pbx.ENTITLEMENTS_SETTING) or ""
        if not entitlements_name:
            entitlements_name = default_entitlements_name(bundle_identifier)
        # Sandbox (development) unless the release environment was requested.
        entitlements_written = write_push_entitlements(
            os.path.join(output_dir, entitlements_name), development=not use_release_env
        )
        pbx.attach_capability_file(graph, targets.main, entitlements_name)
        _log(f"Entitlements: {entitlements_name}", verbose)

    project_written = pbx.save_project(graph)
    return project_written, entitlements_written, entitlements_name


def postprocess_build(
    target_platform: str,
    output_dir: str,
    settings: Sequence[DesiredSetting],
    *,
    bundle_identifier: str = "",
    target_os_version: str = "",
    verbose: bool = False,
) -> PatchReport:
    """Build pipeline callback: patch the exported iOS project in `output_dir`."""
    report = PatchReport()
    if target_platform.strip().lower() != IOS_PLATFORM.lower():
        _log(f"Skipping non-iOS platform: {target_platform}", verbose)
        return report
    report.platform_matched = True

    if target_os_version and not has_min_os_version(target_os_version):
        print(
            "Warning: UserNotifications framework is only available on iOS 10.0+, "
            "please make sure that you set a correct `Target minimum iOS Version` "
            f"(current: {target_os_version}).",
            file=sys.stderr,
        )

    need_location = setting_flag(settings, LOCATION_TRIGGER_KEY)
    add_push = setting_flag(settings, REMOTE_CAPABILITY_KEY)
    use_release_env = False
    if add_push:
        use_release_env = setting_flag(settings, RELEASE_ENVIRONMENT_KEY)

    report.project, report.entitlements, report.entitlements_path = patch_project(
        output_dir,
        need_location=need_location,
        add_push=add_push,
        use_release_env=use_release_env,
        bundle_identifier=bundle_identifier,
        verbose=verbose,
    )
    _log(f"Xcode project written: {report.project}", verbose)

    report.info_plist = patch_info_plist(
        os.path.join(output_dir, "Info.plist"), settings, add_background_mode=add_push
    )
    _log(f"Info.plist written: {report.info_plist}", verbose)

    report.preprocessor = patch_preprocessor(
        os.path.join(output_dir, "Classes", "Preprocessor.h"),
        MacroFlags(location_enabled=need_location, push_enabled=add_push),
    )
    _log(f"Preprocessor.h written: {report.preprocessor}", verbose)
    return report
