"""
maize_detect - 玉米叶片病害识别

模块结构：
- preprocess: 图像 -> NCHW 张量
- cache: 模型文件持久化缓存与 load-or-fetch 策略
- inference: 推理引擎能力、softmax 与标签排序
- hosted: 托管推理接口客户端
- pipeline.py: 主流水线
"""

from .context import Prediction, PredictionResult
from .pipeline import MaizePipeline, load_pipeline

__all__ = ["Prediction", "PredictionResult", "MaizePipeline", "load_pipeline"]
