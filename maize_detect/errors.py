"""
Errors - 异常层级

所有对外抛出的异常都继承自 MaizeDetectError，调用方（UI / CLI）据此
决定展示给用户的提示。第三方库异常在边界处包装后再抛出。
"""


class MaizeDetectError(Exception):
    """项目异常基类"""


# ==================== 预处理 ====================

class DecodeError(MaizeDetectError):
    """图像无法解码（损坏或格式不支持）"""


class InvalidShapeError(MaizeDetectError, ValueError):
    """目标张量形状或归一化参数不合法"""


# ==================== 模型缓存 ====================

class StoreError(MaizeDetectError):
    """持久化存储异常基类"""


class StoreUnavailableError(StoreError):
    """存储子系统无法打开或读取"""


class StoreWriteError(StoreError):
    """写入事务中止（磁盘满、只读、锁超时等）"""


# ==================== 网络 ====================

class FetchError(MaizeDetectError):
    """网络请求异常基类"""


class NetworkError(FetchError):
    """连接失败、DNS 错误等"""


class RequestTimeoutError(FetchError, TimeoutError):
    """客户端超时（与服务端 5xx 区分开）"""


class HttpError(FetchError):
    """HTTP 状态码 >= 400"""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message or f"HTTP {status}"
        super().__init__(self.message)


# ==================== 托管推理 / 模型 ====================

class HostedApiError(MaizeDetectError):
    """托管推理接口返回了 error 字段或无法识别的响应"""


class PayloadTooLargeError(MaizeDetectError, ValueError):
    """请求体超过上限，未发送"""


class ConfigurationError(MaizeDetectError):
    """配置缺失（如未设置 API_TOKEN）"""


class ModelLoadError(MaizeDetectError):
    """推理会话创建失败"""
