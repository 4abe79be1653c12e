"""
Tmod 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和字典序列化。
"""

from typing import Any, Dict, Optional

import aiohttp


class TmodError(Exception):
    """Tmod 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class VersionParseError(TmodError, ValueError):
    """版本号或版本范围解析错误

    remainder 为解析失败处尚未消费的输入。
    """

    def __init__(
        self,
        message: str,
        text: str,
        remainder: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.text = text
        self.remainder = text if remainder is None else remainder
        super().__init__(
            f"{message}: 剩余输入 {self.remainder!r} (原文 {text!r})",
            code,
            {"text": text, "remainder": self.remainder},
        )

    def _get_default_code(self) -> str:
        return "E100"


class UnsupportedComparisonError(TmodError, TypeError):
    """不同版本体系 (Maven / Fabric) 之间不支持比较"""

    def __init__(self, left: Any, right: Any):
        super().__init__(
            f"无法比较不同体系的版本: {type(left).__name__} 与 {type(right).__name__}",
            context={"left": str(left), "right": str(right)},
        )

    def _get_default_code(self) -> str:
        return "E110"


class ConfigError(TmodError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E150"


class LookupFailure(TmodError):
    """外部协作方无法解析 id / slug / 文件"""

    def _get_default_code(self) -> str:
        return "E200"


class APIError(LookupFailure):
    """API 相关错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E201"


class APINotFoundError(APIError):
    """API 资源不存在"""

    def _get_default_code(self) -> str:
        return "E204"


class IncompatibilityRejected(TmodError):
    """模组与池中已有的模组不兼容"""

    def __init__(
        self,
        slug: str,
        conflicting_slug: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.slug = slug
        self.conflicting_slug = conflicting_slug
        if message is None:
            if conflicting_slug:
                message = f"模组 {slug} 与池中的 {conflicting_slug} 不兼容"
            else:
                message = f"模组 {slug} 没有适用于当前池配置的文件"
        super().__init__(
            message,
            context={"slug": slug, "conflicting_slug": conflicting_slug},
        )

    def _get_default_code(self) -> str:
        return "E300"


class PersistenceError(TmodError):
    """池文件读写或反序列化错误"""

    def _get_default_code(self) -> str:
        return "E400"


class JarError(TmodError):
    """本地 jar 模组读取错误"""

    def _get_default_code(self) -> str:
        return "E450"


class DownloadError(TmodError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E500"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E501"


class DownloadChecksumError(DownloadError):
    """下载校验错误"""

    def _get_default_code(self) -> str:
        return "E502"


__all__ = [
    "TmodError",
    "VersionParseError",
    "UnsupportedComparisonError",
    "ConfigError",
    "LookupFailure",
    "APIError",
    "APINotFoundError",
    "IncompatibilityRejected",
    "PersistenceError",
    "JarError",
    "DownloadError",
    "DownloadNetworkError",
    "DownloadChecksumError",
]
