"""
Inference 模块 - 推理引擎与后处理
"""

from .base import InferenceEngine
from .onnx_engine import OnnxEngine
from .postprocess import rank_predictions, scores_from_output, softmax

__all__ = [
    "InferenceEngine",
    "OnnxEngine",
    "rank_predictions",
    "scores_from_output",
    "softmax",
]
