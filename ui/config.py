"""
UI Config - 文案与错误提示

把异常映射为面向用户的提示：超时提示重试，服务故障提示稍后再试。
"""

from maize_detect.errors import (
    ConfigurationError,
    DecodeError,
    FetchError,
    HostedApiError,
    HttpError,
    InvalidShapeError,
    ModelLoadError,
    NetworkError,
    PayloadTooLargeError,
    RequestTimeoutError,
)

APP_TITLE = "Maize Disease Detection"

MSG_NO_IMAGE = "请先上传图像。"
MSG_FIRST_LOAD = "首次分析需要下载模型，可能需要一分钟左右，之后的预测会快很多。"
MSG_GENERIC = "分析失败，请重试。"

# 按顺序匹配，子类必须排在父类前面
_ERROR_MESSAGES: list[tuple[type, str]] = [
    (RequestTimeoutError, "请求超时，请稍后重试。"),
    (NetworkError, "推理服务暂时不可用，请稍后再试。"),
    (PayloadTooLargeError, "图像过大（上限 10 MB），请压缩后重新上传。"),
    (DecodeError, "无法读取该图像，请换一张图片重新上传。"),
    (InvalidShapeError, "图像格式与模型输入不匹配。"),
    (ModelLoadError, "模型加载失败，请刷新页面后重试。"),
    (ConfigurationError, "服务未正确配置，请联系管理员。"),
]


def error_message(err: Exception) -> str:
    """
    异常 -> 用户提示

    Args:
        err: 预测过程中抛出的异常

    Returns:
        展示在页面上的提示文本
    """
    if isinstance(err, HttpError):
        if err.status >= 500:
            return f"推理服务暂时不可用（{err.status}），请稍后再试。"
        return f"请求失败（{err.status}）：{err.message}"
    if isinstance(err, HostedApiError):
        return str(err) or MSG_GENERIC

    for exc_type, message in _ERROR_MESSAGES:
        if isinstance(err, exc_type):
            return message

    if isinstance(err, FetchError):
        return "模型下载失败，请检查网络后重试。"
    return str(err) or MSG_GENERIC
