"""
ImageDecoder - 图像解码能力

预处理只依赖 "bytes -> 像素网格" 这一抽象能力，测试时可以替换为假实现。
"""

import base64
import binascii
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import DecodeError


class ImageDecoder(ABC):
    """图像解码器基类"""

    @abstractmethod
    def decode(self, source: Any) -> np.ndarray:
        """
        解码图像

        Args:
            source: 图像来源

        Returns:
            uint8 (H,W,C) 像素数组，C >= 3，通道顺序 RGB(A)

        Raises:
            DecodeError: 图像损坏或格式不支持
        """
        pass


class PillowDecoder(ImageDecoder):
    """基于 Pillow 的解码器"""

    # 可以直接保留的模式，其余一律转 RGB
    _KEEP_MODES = ("RGB", "RGBA")

    def decode(self, source: Any) -> np.ndarray:
        if isinstance(source, np.ndarray):
            return self._from_array(source)
        if isinstance(source, Image.Image):
            return self._from_pil(source)

        data = self._read_bytes(source)
        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                return self._from_pil(img)
        except (UnidentifiedImageError, OSError, SyntaxError, EOFError, ValueError,
                Image.DecompressionBombError) as e:
            raise DecodeError(f"无法解码图像: {e}") from e

    @staticmethod
    def _read_bytes(source: Any) -> bytes:
        """把各种来源统一读成字节"""
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
        elif isinstance(source, str) and source.startswith("data:"):
            try:
                data = base64.b64decode(strip_data_url(source), validate=True)
            except binascii.Error as e:
                raise DecodeError("data URL 中的 base64 数据无效") from e
        elif isinstance(source, (str, Path)):
            try:
                data = Path(source).read_bytes()
            except OSError as e:
                raise DecodeError(f"无法读取图像文件: {source}") from e
        else:
            raise DecodeError(f"不支持的图像输入类型: {type(source).__name__}")

        if not data:
            raise DecodeError("图像数据为空")
        return data

    def _from_pil(self, img: Image.Image) -> np.ndarray:
        # 浏览器绘制时会应用 EXIF 方向，这里保持一致
        img = ImageOps.exif_transpose(img)
        if img.mode.startswith("I") or img.mode == "F":
            gray = self._to_8bit(np.asarray(img), img.mode)
            return np.repeat(gray[:, :, np.newaxis], 3, axis=2)
        if img.mode not in self._KEEP_MODES:
            has_alpha = img.mode in ("LA", "PA") or (
                img.mode == "P" and "transparency" in img.info
            )
            img = img.convert("RGBA" if has_alpha else "RGB")
        return np.array(img, dtype=np.uint8)

    @staticmethod
    def _to_8bit(values: np.ndarray, mode: str) -> np.ndarray:
        """
        高位深灰度 -> uint8

        I / I;16*: 16 位采样，取高 8 位；F: 按 [0, 1] 浮点缩放
        """
        if mode == "F":
            scaled = np.nan_to_num(values.astype(np.float64)) * 255.0
            return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
        wide = np.clip(values.astype(np.int64), 0, 65535)
        return (wide >> 8).astype(np.uint8)

    @staticmethod
    def _from_array(image: np.ndarray) -> np.ndarray:
        if image.size == 0:
            raise DecodeError("输入图像为空")
        if image.ndim == 2:
            image = image[:, :, np.newaxis]
        if image.ndim != 3 or image.shape[2] not in (1, 3, 4):
            raise DecodeError(f"输入图像必须是 (H,W)、(H,W,3) 或 (H,W,4) 格式，当前: {image.shape}")
        if image.shape[2] == 1:
            image = np.repeat(image, 3, axis=2)
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        return image


def strip_data_url(value: str) -> str:
    """
    去掉 data URL 前缀，返回 base64 部分

    非 data URL 原样返回。

    Raises:
        DecodeError: data URL 不是 base64 编码
    """
    if not value.startswith("data:"):
        return value
    header, sep, payload = value.partition(",")
    if not sep or ";base64" not in header:
        raise DecodeError("仅支持 base64 编码的 data URL")
    return payload
