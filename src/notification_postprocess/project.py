"""
导出的 Xcode 工程（`project.pbxproj`）访问与修改。

不同引擎版本导出的工程布局不同：
- 新布局：主应用 `Unity-iPhone` 与承载引擎代码的 `UnityFramework` 是两个 target，
  系统框架需要链接到 `UnityFramework`。
- 旧布局：只有 `Unity-iPhone` 一个 target，同时承担两种角色。

打开工程时只探测一次布局，之后统一通过 `resolve_targets` 取得 target id，
调用方无需关心当前是哪种布局。
"""

from __future__ import annotations

import enum
import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from pbxproj import XcodeProject
from pbxproj.pbxextensions import FileOptions

from .errors import MalformedArtifactError, MissingTargetError

PROJECT_DIR_NAME = "Unity-iPhone.xcodeproj"
MAIN_TARGET_NAME = "Unity-iPhone"
FRAMEWORK_TARGET_NAME = "UnityFramework"
SYSTEM_FRAMEWORKS_DIR = "System/Library/Frameworks"
ENTITLEMENTS_SETTING = "CODE_SIGN_ENTITLEMENTS"


class TargetLayout(enum.Enum):
    """工程的 target 布局。"""

    SPLIT = "split"
    SINGLE = "single"


class TargetRole(enum.Enum):
    """修补流程关心的 target 角色。"""

    MAIN = "main"
    FRAMEWORK_HOST = "framework_host"


@dataclass(frozen=True)
class ResolvedTargets:
    """解析后的 target id；旧布局下两者相同。"""

    main: str
    framework_host: str

    def for_role(self, role: TargetRole) -> str:
        if role is TargetRole.MAIN:
            return self.main
        return self.framework_host


@dataclass
class ProjectGraph:
    """一次调用期间在内存中修改的工程。"""

    project: Any
    path: str
    layout: TargetLayout
    changed: bool = False


def project_path_for(output_dir: str) -> str:
    """返回导出目录下 `project.pbxproj` 的固定路径。"""
    return os.path.join(output_dir, PROJECT_DIR_NAME, "project.pbxproj")


def _target_id_by_name(project: Any, name: str) -> str:
    target = project.get_target_by_name(name)
    if target is None:
        raise MissingTargetError(f"target not found in Xcode project: {name}")
    return target.get_id()


def probe_layout(project: Any) -> TargetLayout:
    """根据是否存在 `UnityFramework` target 判断工程布局。"""
    if project.get_target_by_name(FRAMEWORK_TARGET_NAME) is not None:
        return TargetLayout.SPLIT
    return TargetLayout.SINGLE


class SplitTargetResolver:
    """新布局：主应用与框架宿主分别解析。"""

    def resolve(self, project: Any) -> ResolvedTargets:
        return ResolvedTargets(
            main=_target_id_by_name(project, MAIN_TARGET_NAME),
            framework_host=_target_id_by_name(project, FRAMEWORK_TARGET_NAME),
        )


class SingleTargetResolver:
    """旧布局：按名称查找唯一的 target，两种角色共用。"""

    def resolve(self, project: Any) -> ResolvedTargets:
        target_id = _target_id_by_name(project, MAIN_TARGET_NAME)
        return ResolvedTargets(main=target_id, framework_host=target_id)


_RESOLVERS = {
    TargetLayout.SPLIT: SplitTargetResolver(),
    TargetLayout.SINGLE: SingleTargetResolver(),
}


def open_project(path: str) -> ProjectGraph:
    """读取并解析工程文件；无法解析时抛出 `MalformedArtifactError`。"""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Xcode project not found: {path}")
    try:
        project = XcodeProject.load(path)
        layout = probe_layout(project)
    except OSError:
        raise
    except Exception as e:
        raise MalformedArtifactError(path, str(e) or type(e).__name__) from e
    return ProjectGraph(project=project, path=path, layout=layout)


def resolve_targets(graph: ProjectGraph) -> ResolvedTargets:
    """按探测到的布局解析主应用与框架宿主 target。"""
    return _RESOLVERS[graph.layout].resolve(graph.project)


def _get_target(graph: ProjectGraph, target_id: str) -> Any:
    target = graph.project.get_object(target_id)
    if target is None:
        raise MissingTargetError(f"target id not found in Xcode project: {target_id}")
    return target


def _configurations(graph: ProjectGraph, target: Any) -> Iterator[Any]:
    """遍历 target 的所有构建配置（Debug/Release/...）。"""
    config_list = graph.project.get_object(target.buildConfigurationList)
    if config_list is None:
        return
    for config_id in config_list.buildConfigurations:
        config = graph.project.get_object(config_id)
        if config is not None:
            yield config


def _linked_framework_names(graph: ProjectGraph, target: Any) -> list[str]:
    names: list[str] = []
    for phase_id in getattr(target, "buildPhases", None) or []:
        phase = graph.project.get_object(phase_id)
        if phase is None or phase.isa != "PBXFrameworksBuildPhase":
            continue
        for build_file_id in getattr(phase, "files", None) or []:
            build_file = graph.project.get_object(build_file_id)
            file_ref_id = getattr(build_file, "fileRef", None)
            if file_ref_id is None:
                continue
            file_ref = graph.project.get_object(file_ref_id)
            ref_path = getattr(file_ref, "path", None) or getattr(file_ref, "name", None)
            if ref_path:
                names.append(os.path.basename(str(ref_path)))
    return names


def linked_frameworks(graph: ProjectGraph, target_id: str) -> list[str]:
    """返回 target 的 Frameworks 构建阶段里已链接的文件名。"""
    return _linked_framework_names(graph, _get_target(graph, target_id))


def link_framework(
    graph: ProjectGraph,
    targets: ResolvedTargets,
    role: TargetRole,
    framework_name: str,
    *,
    optional: bool,
) -> bool:
    """
    将系统框架链接到指定角色的 target，返回工程是否发生变化。

    已链接时直接跳过；可选框架使用弱链接。
    """
    target = _get_target(graph, targets.for_role(role))
    if framework_name in _linked_framework_names(graph, target):
        return False

    graph.project.add_file(
        f"{SYSTEM_FRAMEWORKS_DIR}/{framework_name}",
        tree="SDKROOT",
        target_name=target.name,
        force=True,
        file_options=FileOptions(weak=optional, embed_framework=False),
    )
    graph.changed = True
    return True


def get_build_setting(graph: ProjectGraph, target_id: str, key: str) -> str | None:
    """返回任一构建配置中该键的取值，均未设置时返回 `None`。"""
    target = _get_target(graph, target_id)
    for config in _configurations(graph, target):
        settings = getattr(config, "buildSettings", None)
        value = getattr(settings, key, None) if settings is not None else None
        if value:
            return str(value)
    return None


def _has_file_reference(graph: ProjectGraph, path: str) -> bool:
    """按文件名匹配已有引用；组内引用的 `path` 只保存相对于所在组的部分。"""
    wanted = os.path.basename(path)
    for ref in graph.project.objects.get_objects_in_section("PBXFileReference"):
        ref_path = getattr(ref, "path", None) or getattr(ref, "name", None)
        if ref_path and os.path.basename(str(ref_path)) == wanted:
            return True
    return False


def attach_capability_file(graph: ProjectGraph, main_id: str, path: str) -> bool:
    """
    把签名权限文件关联到主应用 target。

    为所有构建配置设置 `CODE_SIGN_ENTITLEMENTS`，并在工程中尚无该文件引用时
    添加引用（不参与编译）。返回工程是否发生变化。
    """
    target = _get_target(graph, main_id)
    changed = False
    for config in _configurations(graph, target):
        settings = config.buildSettings
        if getattr(settings, ENTITLEMENTS_SETTING, None) != path:
            settings[ENTITLEMENTS_SETTING] = path
            changed = True

    if not _has_file_reference(graph, path):
        graph.project.add_file(
            path,
            tree="SOURCE_ROOT",
            force=False,
            file_options=FileOptions(create_build_files=False, ignore_unknown_type=True),
        )
        changed = True

    if changed:
        graph.changed = True
    return changed


def save_project(graph: ProjectGraph) -> bool:
    """仅在内存中的工程发生变化时写回磁盘，返回是否写入。"""
    if not graph.changed:
        return False
    graph.project.save(graph.path)
    graph.changed = False
    return True
