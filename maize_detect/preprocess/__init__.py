"""
Preprocess 模块 - 图像到张量的转换

职责：
- 解码任意来源的图像（字节、路径、data URL、PIL、ndarray）
- 拉伸缩放到模型输入分辨率，输出 NCHW float32 张量
"""

from .decoder import ImageDecoder, PillowDecoder, strip_data_url
from .preprocessor import TensorPreprocessor, preprocess_image

__all__ = [
    "ImageDecoder",
    "PillowDecoder",
    "strip_data_url",
    "TensorPreprocessor",
    "preprocess_image",
]
