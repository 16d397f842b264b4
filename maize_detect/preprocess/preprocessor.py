"""
TensorPreprocessor - 图像张量预处理器

核心功能：
- decode: 通过注入的 ImageDecoder 得到 uint8 像素网格
- resize: 拉伸到模型输入的 W×H（不保持长宽比，不做 letterbox / 中心裁剪）
- normalize: 除以 255 得到 [0,1]，可选逐通道 mean/std
- 输出 NCHW float32，(c, y, x) 位于扁平偏移 c*H*W + y*W + x
"""

from typing import Any, Sequence

import cv2
import numpy as np
from omegaconf import DictConfig, OmegaConf

from ..errors import InvalidShapeError
from .decoder import ImageDecoder, PillowDecoder

DEFAULT_INPUT_SHAPE = (1, 3, 224, 224)


class TensorPreprocessor:
    """图像 -> NCHW 张量"""

    def __init__(
        self,
        cfg: DictConfig | None = None,
        decoder: ImageDecoder | None = None,
        mean: Sequence[float] | None = None,
        std: Sequence[float] | None = None,
    ):
        """
        初始化预处理器

        Args:
            cfg: 配置对象，读取 preprocess.input_shape / mean / std（均可缺省）
            decoder: 图像解码器，默认 PillowDecoder
            mean: 逐通道均值，优先于配置
            std: 逐通道标准差，优先于配置
        """
        shape = DEFAULT_INPUT_SHAPE
        if cfg is not None:
            shape = OmegaConf.select(cfg, "preprocess.input_shape", default=shape)
            if mean is None:
                mean = OmegaConf.select(cfg, "preprocess.mean", default=None)
            if std is None:
                std = OmegaConf.select(cfg, "preprocess.std", default=None)

        self.input_shape = self._validate_shape(shape)
        self.mean, self.std = self._validate_norm(mean, std)
        self.decoder = decoder or PillowDecoder()

    def preprocess(
        self,
        image: Any,
        target_shape: Sequence[int] | None = None,
    ) -> np.ndarray:
        """
        预处理输入图像

        Args:
            image: 任意 decoder 支持的图像来源
            target_shape: (1, C, H, W)，默认使用 input_shape

        Returns:
            float32 (1, C, H, W) 连续数组，reshape(-1) 长度为 C*H*W

        Raises:
            DecodeError: 图像无法解码
            InvalidShapeError: 形状不合法或图像通道数不足
        """
        shape = self.input_shape if target_shape is None else target_shape
        _, c, h, w = self._validate_shape(shape)
        mean, std = self._resolve_norm(c)

        pixels = self.decoder.decode(image)
        if pixels.ndim != 3 or pixels.shape[2] < c:
            raise InvalidShapeError(
                f"图像通道数不足: 需要 {c}，当前 {pixels.shape}"
            )

        resized = self._resize(pixels, h, w)

        # 只读前 C 个通道，alpha 被忽略
        chw = self._normalize(resized[:, :, :c]).transpose(2, 0, 1)
        if mean is not None:
            chw = (chw - mean[:, None, None]) / std[:, None, None]

        return np.ascontiguousarray(chw[np.newaxis], dtype=np.float32)

    @staticmethod
    def _validate_shape(shape: Sequence[int]) -> tuple[int, int, int, int]:
        """校验 (N, C, H, W)"""
        try:
            dims = tuple(int(v) for v in shape)
        except (TypeError, ValueError) as e:
            raise InvalidShapeError(f"目标形状必须是整数序列，当前: {shape!r}") from e
        if len(dims) != 4:
            raise InvalidShapeError(f"目标形状必须是 (N, C, H, W)，当前: {dims}")
        n, c, h, w = dims
        if n != 1:
            raise InvalidShapeError(f"仅支持单张图像 (N=1)，当前 N={n}")
        if c <= 0 or h <= 0 or w <= 0:
            raise InvalidShapeError(f"C/H/W 必须为正整数，当前: {dims}")
        return dims

    @staticmethod
    def _validate_norm(mean, std) -> tuple[np.ndarray | None, np.ndarray | None]:
        if mean is None and std is None:
            return None, None
        if mean is None or std is None:
            raise InvalidShapeError("mean 与 std 必须同时提供")
        mean_arr = np.asarray(list(mean), dtype=np.float32)
        std_arr = np.asarray(list(std), dtype=np.float32)
        if mean_arr.shape != std_arr.shape or mean_arr.ndim != 1:
            raise InvalidShapeError(
                f"mean/std 长度不一致: {mean_arr.shape} vs {std_arr.shape}"
            )
        if np.any(std_arr == 0):
            raise InvalidShapeError("std 不能包含 0")
        return mean_arr, std_arr

    def _resolve_norm(self, channels: int) -> tuple[np.ndarray | None, np.ndarray | None]:
        if self.mean is None:
            return None, None
        if len(self.mean) != channels:
            raise InvalidShapeError(
                f"mean/std 长度 ({len(self.mean)}) 与通道数 ({channels}) 不一致"
            )
        return self.mean, self.std

    @staticmethod
    def _resize(image: np.ndarray, height: int, width: int) -> np.ndarray:
        """
        拉伸缩放到精确的 (height, width)

        Args:
            image: uint8 (H,W,C)
            height: 目标高
            width: 目标宽

        Returns:
            uint8 (height, width, C)
        """
        h, w = image.shape[:2]
        if (h, w) == (height, width):
            return image

        shrinking = height * width < h * w
        resized = cv2.resize(
            np.ascontiguousarray(image),
            (width, height),  # cv2.resize 使用 (width, height)
            interpolation=cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR,
        )
        # 单通道时 cv2 会丢掉最后一维
        if resized.ndim == 2:
            resized = resized[:, :, np.newaxis]
        return resized

    @staticmethod
    def _normalize(image_u8: np.ndarray) -> np.ndarray:
        """归一化到 [0, 1]"""
        return image_u8.astype(np.float32) / 255.0


def preprocess_image(
    image: Any,
    input_shape: Sequence[int] = DEFAULT_INPUT_SHAPE,
) -> np.ndarray:
    """
    便捷函数：使用默认解码器、无 mean/std 预处理单张图像

    Args:
        image: 图像来源
        input_shape: (1, C, H, W)

    Returns:
        float32 (1, C, H, W)
    """
    return TensorPreprocessor().preprocess(image, input_shape)
