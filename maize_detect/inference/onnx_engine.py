"""
OnnxEngine - onnxruntime 推理会话

直接从缓存的模型字节创建 InferenceSession，不落盘。
"""

import numpy as np
import onnxruntime as ort

from .base import InferenceEngine

CPU_PROVIDER = "CPUExecutionProvider"
CUDA_PROVIDER = "CUDAExecutionProvider"


class OnnxEngine(InferenceEngine):
    """onnxruntime 推理引擎"""

    def __init__(self, model_bytes: bytes, device: str = "auto", num_threads: int | None = 1):
        """
        Args:
            model_bytes: ONNX 模型字节
            device: "auto" | "cuda" | "cpu"
            num_threads: 算子内线程数，None 使用 onnxruntime 默认值
        """
        super().__init__()
        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        if num_threads:
            options.intra_op_num_threads = int(num_threads)

        self.providers = self._resolve_providers(device)
        self.session = ort.InferenceSession(
            model_bytes, sess_options=options, providers=self.providers
        )
        self.input_names = [i.name for i in self.session.get_inputs()]
        self.output_names = [o.name for o in self.session.get_outputs()]
        print(f"[OnnxEngine] 会话已创建: providers={self.session.get_providers()}")

    @staticmethod
    def _resolve_providers(device: str) -> list[str]:
        """
        解析执行后端

        Args:
            device: "auto" | "cuda" | "cpu"

        Returns:
            providers 列表，CPU 总在最后兜底
        """
        available = ort.get_available_providers()
        if device in ("auto", "cuda"):
            if CUDA_PROVIDER in available:
                return [CUDA_PROVIDER, CPU_PROVIDER]
            if device == "cuda":
                print("[OnnxEngine] CUDA 不可用，使用 CPU")
        return [CPU_PROVIDER]

    def run(self, feeds: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        outputs = self.session.run(None, feeds)
        return dict(zip(self.output_names, outputs))
