"""
UI State - 会话状态管理

使用 Gradio 的 gr.State 实现多用户并发支持。
每个用户独立维护自己的图像、预测结果与错误信息。
"""

from dataclasses import dataclass, field
import hashlib

import numpy as np

from maize_detect.context import Prediction


@dataclass
class PredictionState:
    """
    存储单个用户的会话状态

    通过 gr.State 传递，实现多用户隔离。
    """

    # 当前图像
    image: np.ndarray | None = None
    image_hash: str | None = None

    # 结果
    predictions: list[Prediction] = field(default_factory=list)
    error: str | None = None

    # 首次加载模型（需要下载）时给出提示
    first_load: bool = False

    def has_image(self) -> bool:
        return self.image is not None

    def has_results(self) -> bool:
        """当前图像是否已有预测结果"""
        return self.image is not None and bool(self.predictions)

    def reset(self) -> None:
        """重置状态（移除图片时）"""
        self.image = None
        self.image_hash = None
        self.predictions = []
        self.error = None
        self.first_load = False

    def copy(self) -> "PredictionState":
        """创建状态副本（Gradio State 需要返回新对象才能触发更新）"""
        return PredictionState(
            image=self.image,
            image_hash=self.image_hash,
            predictions=list(self.predictions),
            error=self.error,
            first_load=self.first_load,
        )


def compute_image_hash(image: np.ndarray) -> str:
    """计算图像哈希（用于判断是否需要重新推理）"""
    return hashlib.md5(image.tobytes()).hexdigest()[:12]
