import os
import plistlib
from dataclasses import dataclass
from pathlib import Path

import pytest

MAIN_TARGET_ID = "1D6058900D05DD3D006BFB54"
FRAMEWORK_TARGET_ID = "9D25AB9C213FB47800354C27"

PREPROCESSOR_H = """\
#pragma once

#define UNITY_USES_REMOTE_NOTIFICATIONS 0
#define UNITY_USES_LOCATION 0
#define UNITY_USES_LOCATION_EXTRA 0
"""


@dataclass(frozen=True)
class UnityExport:
    root: Path
    project_path: Path
    info_plist: Path
    preprocessor: Path


def _target_block(target_id: str, name: str, config_list: str, phase: str, product: str) -> str:
    return (
        f"\t\t{target_id} = {{isa = PBXNativeTarget; buildConfigurationList = {config_list}; "
        f"buildPhases = ( {phase}, ); buildRules = ( ); dependencies = ( ); "
        f'name = "{name}"; productName = "{name}"; productReference = {product}; '
        f'productType = "com.apple.product-type.application"; }};\n'
    )


def _config_block(config_id: str, name: str, settings: dict[str, str]) -> str:
    body = " ".join(f'{k} = "{v}";' for k, v in settings.items())
    return (
        f"\t\t{config_id} = {{isa = XCBuildConfiguration; "
        f"buildSettings = {{ {body} }}; name = {name}; }};\n"
    )


def build_pbxproj(*, split: bool, entitlements: str = "", grouped_entitlements_ref: bool = False) -> str:
    target_settings = {"PRODUCT_NAME": "ProductName"}
    if entitlements:
        target_settings["CODE_SIGN_ENTITLEMENTS"] = entitlements

    file_refs = (
        "\t\tAA0000000000000000000101 = {isa = PBXFileReference; explicitFileType = wrapper.application; "
        "includeInIndex = 0; path = ProductName.app; sourceTree = BUILT_PRODUCTS_DIR; };\n"
    )
    phases = (
        "\t\tAA0000000000000000000201 = {isa = PBXFrameworksBuildPhase; buildActionMask = 2147483647; "
        "files = ( ); runOnlyForDeploymentPostprocessing = 0; };\n"
    )
    targets = _target_block(
        MAIN_TARGET_ID, "Unity-iPhone", "AA0000000000000000000401", "AA0000000000000000000201",
        "AA0000000000000000000101",
    )
    configs = _config_block("AA0000000000000000000501", "Debug", target_settings)
    configs += _config_block("AA0000000000000000000502", "Release", target_settings)
    configs += _config_block("AA0000000000000000000503", "Debug", {"SDKROOT": "iphoneos"})
    configs += _config_block("AA0000000000000000000504", "Release", {"SDKROOT": "iphoneos"})
    config_lists = (
        "\t\tAA0000000000000000000401 = {isa = XCConfigurationList; buildConfigurations = "
        "( AA0000000000000000000501, AA0000000000000000000502, ); "
        "defaultConfigurationIsVisible = 0; defaultConfigurationName = Release; };\n"
        "\t\tAA0000000000000000000402 = {isa = XCConfigurationList; buildConfigurations = "
        "( AA0000000000000000000503, AA0000000000000000000504, ); "
        "defaultConfigurationIsVisible = 0; defaultConfigurationName = Release; };\n"
    )
    target_ids = [MAIN_TARGET_ID]
    product_children = ["AA0000000000000000000101"]
    main_children = ["AA0000000000000000000302"]
    extra_groups = ""

    if entitlements and grouped_entitlements_ref:
        # Group-relative reference, as Xcode stores it.
        group_dir, file_name = os.path.split(entitlements)
        file_refs += (
            "\t\tAA0000000000000000000103 = {isa = PBXFileReference; lastKnownFileType = text.plist.entitlements; "
            f'path = "{file_name}"; sourceTree = "<group>"; }};\n'
        )
        extra_groups = (
            "\t\tAA0000000000000000000303 = {isa = PBXGroup; children = ( AA0000000000000000000103, ); "
            f'path = "{group_dir}"; sourceTree = "<group>"; }};\n'
        )
        main_children.append("AA0000000000000000000303")

    if split:
        file_refs += (
            "\t\tAA0000000000000000000102 = {isa = PBXFileReference; explicitFileType = wrapper.framework; "
            "includeInIndex = 0; path = UnityFramework.framework; sourceTree = BUILT_PRODUCTS_DIR; };\n"
        )
        phases += (
            "\t\tAA0000000000000000000202 = {isa = PBXFrameworksBuildPhase; buildActionMask = 2147483647; "
            "files = ( ); runOnlyForDeploymentPostprocessing = 0; };\n"
        )
        targets += _target_block(
            FRAMEWORK_TARGET_ID, "UnityFramework", "AA0000000000000000000403",
            "AA0000000000000000000202", "AA0000000000000000000102",
        )
        configs += _config_block("AA0000000000000000000505", "Debug", {"PRODUCT_NAME": "UnityFramework"})
        configs += _config_block("AA0000000000000000000506", "Release", {"PRODUCT_NAME": "UnityFramework"})
        config_lists += (
            "\t\tAA0000000000000000000403 = {isa = XCConfigurationList; buildConfigurations = "
            "( AA0000000000000000000505, AA0000000000000000000506, ); "
            "defaultConfigurationIsVisible = 0; defaultConfigurationName = Release; };\n"
        )
        target_ids.append(FRAMEWORK_TARGET_ID)
        product_children.append("AA0000000000000000000102")

    groups = (
        f"\t\tAA0000000000000000000301 = {{isa = PBXGroup; children = ( {', '.join(main_children)}, ); "
        'sourceTree = "<group>"; };\n'
        f"\t\tAA0000000000000000000302 = {{isa = PBXGroup; children = ( {', '.join(product_children)}, ); "
        'name = Products; sourceTree = "<group>"; };\n'
        + extra_groups
    )
    project = (
        "\t\tAA0000000000000000000001 = {isa = PBXProject; buildConfigurationList = AA0000000000000000000402; "
        'compatibilityVersion = "Xcode 3.2"; developmentRegion = en; hasScannedForEncodings = 1; '
        "knownRegions = ( en, ); mainGroup = AA0000000000000000000301; "
        'productRefGroup = AA0000000000000000000302; projectDirPath = ""; projectRoot = ""; '
        f"targets = ( {', '.join(target_ids)}, ); }};\n"
    )

    return (
        "// !$*UTF8*$!\n{\n\tarchiveVersion = 1;\n\tclasses = {\n\t};\n\tobjectVersion = 50;\n\tobjects = {\n\n"
        "/* Begin PBXFileReference section */\n" + file_refs + "/* End PBXFileReference section */\n\n"
        "/* Begin PBXFrameworksBuildPhase section */\n" + phases
        + "/* End PBXFrameworksBuildPhase section */\n\n"
        "/* Begin PBXGroup section */\n" + groups + "/* End PBXGroup section */\n\n"
        "/* Begin PBXNativeTarget section */\n" + targets + "/* End PBXNativeTarget section */\n\n"
        "/* Begin PBXProject section */\n" + project + "/* End PBXProject section */\n\n"
        "/* Begin XCBuildConfiguration section */\n" + configs
        + "/* End XCBuildConfiguration section */\n\n"
        "/* Begin XCConfigurationList section */\n" + config_lists
        + "/* End XCConfigurationList section */\n"
        "\t};\n\trootObject = AA0000000000000000000001;\n}\n"
    )


@pytest.fixture
def unity_export(tmp_path):
    """Factory for a minimal exported iOS project directory."""

    def _make(
        *,
        split: bool = True,
        entitlements: str = "",
        grouped_entitlements_ref: bool = False,
        info: dict | None = None,
        preprocessor: str = PREPROCESSOR_H,
    ) -> UnityExport:
        root = tmp_path / "build"
        project_dir = root / "Unity-iPhone.xcodeproj"
        project_dir.mkdir(parents=True)
        project_path = project_dir / "project.pbxproj"
        text = build_pbxproj(
            split=split, entitlements=entitlements, grouped_entitlements_ref=grouped_entitlements_ref
        )
        project_path.write_text(text, encoding="utf-8")

        info_plist = root / "Info.plist"
        info_plist.write_bytes(
            plistlib.dumps(info if info is not None else {"CFBundleIdentifier": "com.example.game"})
        )

        classes = root / "Classes"
        classes.mkdir()
        header = classes / "Preprocessor.h"
        header.write_text(preprocessor, encoding="utf-8")

        return UnityExport(root=root, project_path=project_path, info_plist=info_plist, preprocessor=header)

    return _make
