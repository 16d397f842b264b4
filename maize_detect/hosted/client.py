"""
HostedInferenceClient - 托管推理接口客户端

把图像编码为 base64，POST {"inputs": <base64>} 到托管模型接口，
返回按分数排序的 Prediction 列表。

错误映射：
- 客户端超时           -> RequestTimeoutError（提示用户重试）
- 连接失败             -> NetworkError（服务不可用）
- HTTP 状态码 >= 400   -> HttpError
- 响应体含 error 字段  -> HostedApiError（即使状态码为 200）
"""

import base64
from io import BytesIO
from pathlib import Path
from typing import Any

import numpy as np
import requests
from omegaconf import DictConfig, OmegaConf
from PIL import Image

from ..context import Prediction
from ..errors import (
    ConfigurationError,
    DecodeError,
    HostedApiError,
    HttpError,
    NetworkError,
    PayloadTooLargeError,
    RequestTimeoutError,
)
from ..preprocess.decoder import strip_data_url

DEFAULT_MAX_PAYLOAD = 10 * 1024 * 1024


class HostedInferenceClient:
    """托管推理接口客户端"""

    def __init__(self, cfg: DictConfig, session: requests.Session | None = None):
        """
        Args:
            cfg: 配置对象，读取 hosted 段
            session: 可选的 requests.Session（测试时注入假实现）
        """
        hosted_cfg = cfg.hosted
        self.url = hosted_cfg.url
        self.api_token = OmegaConf.select(hosted_cfg, "api_token", default=None) or None
        self.timeout = float(OmegaConf.select(hosted_cfg, "timeout", default=30.0))
        self.max_payload_bytes = int(
            OmegaConf.select(hosted_cfg, "max_payload_bytes", default=DEFAULT_MAX_PAYLOAD)
        )
        self.session = session

    def predict(self, image: Any) -> list[Prediction]:
        """
        对图像进行托管推理

        Args:
            image: bytes / 文件路径 / data URL / PIL.Image / uint8 ndarray

        Returns:
            按分数降序的 Prediction 列表
        """
        return self.predict_base64(self.encode_image(image))

    def predict_base64(self, payload: str) -> list[Prediction]:
        """发送已编码的 base64 图像"""
        if not payload:
            raise DecodeError("图像数据为空")
        if len(payload) > self.max_payload_bytes:
            raise PayloadTooLargeError(
                f"Image too large: {len(payload)} > {self.max_payload_bytes} bytes"
            )
        if not self.api_token:
            raise ConfigurationError("API_TOKEN not configured")

        print(f"[Hosted] Processing image of length: {len(payload)}")
        client = self.session or requests
        try:
            response = client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                },
                json={"inputs": payload},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise RequestTimeoutError("Request timeout") from e
        except requests.RequestException as e:
            raise NetworkError(f"Service unavailable: {e}") from e

        if response.status_code >= 400:
            detail = self._error_detail(response) or response.reason
            print(f"[Hosted] API error: {response.status_code} {detail}")
            raise HttpError(response.status_code, f"Hosted API error: {detail}")

        try:
            data = response.json()
        except ValueError as e:
            raise HostedApiError("Hosted API returned invalid JSON") from e
        return self.parse_response(data)

    @staticmethod
    def parse_response(data: Any) -> list[Prediction]:
        """
        解析响应体

        Args:
            data: [{label, score}, ...]、[[{label, score}, ...]] 或 {"error": ...}

        Raises:
            HostedApiError: 含 error 字段或结构无法识别
        """
        if isinstance(data, dict):
            if data.get("error"):
                raise HostedApiError(str(data["error"]))
            raise HostedApiError("Unexpected response from hosted API")

        if isinstance(data, list) and data and isinstance(data[0], list):
            data = data[0]
        if not isinstance(data, list):
            raise HostedApiError("Unexpected response from hosted API")

        preds = []
        for item in data:
            if not isinstance(item, dict) or "label" not in item or "score" not in item:
                raise HostedApiError(f"Unexpected prediction item: {item!r}")
            try:
                score = float(item["score"])
            except (TypeError, ValueError) as e:
                raise HostedApiError(f"Unexpected prediction item: {item!r}") from e
            preds.append(Prediction(label=str(item["label"]), score=score))
        return sorted(preds, key=lambda p: p.score, reverse=True)

    @staticmethod
    def _error_detail(response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return None

    @staticmethod
    def encode_image(image: Any) -> str:
        """图像 -> base64 字符串（不带 data URL 前缀）"""
        if isinstance(image, str) and image.startswith("data:"):
            return strip_data_url(image)
        if isinstance(image, (bytes, bytearray, memoryview)):
            raw = bytes(image)
        elif isinstance(image, (str, Path)):
            try:
                raw = Path(image).read_bytes()
            except OSError as e:
                raise DecodeError(f"无法读取图像文件: {image}") from e
        elif isinstance(image, (np.ndarray, Image.Image)):
            raw = _to_png_bytes(image)
        else:
            raise DecodeError(f"不支持的图像输入类型: {type(image).__name__}")
        return base64.b64encode(raw).decode("ascii")


def _to_png_bytes(image: np.ndarray | Image.Image) -> bytes:
    """内存中的图像编码为 PNG"""
    if isinstance(image, np.ndarray):
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]
        image = Image.fromarray(image)
    if image.mode not in ("RGB", "RGBA", "L"):
        image = image.convert("RGB")
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
