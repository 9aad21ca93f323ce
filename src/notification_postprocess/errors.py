"""
构建后处理流程的异常类型。

库内部抛出这些异常，由 CLI 统一转换为 `Error: ...` 形式的退出信息。
"""


class PatchError(RuntimeError):
    """产物修补失败的基类，调用方捕获后应中止本次构建后处理。"""


class MalformedArtifactError(PatchError):
    """产物文件无法解析为预期的结构化形式。"""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"malformed artifact {path}: {detail}")
        self.path = path
        self.detail = detail


class MissingTargetError(PatchError):
    """Xcode 工程中找不到可用的构建目标（target）。"""
