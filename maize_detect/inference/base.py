"""
InferenceEngine - 推理引擎能力

"把张量送进计算图，返回具名输出" 的抽象，具体实现见 onnx_engine.py。
"""

from abc import ABC, abstractmethod

import numpy as np


class InferenceEngine(ABC):
    """推理引擎基类"""

    def __init__(self):
        self.input_names: list[str] = []
        self.output_names: list[str] = []

    @abstractmethod
    def run(self, feeds: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        """
        执行推理

        Args:
            feeds: {输入名: 张量}

        Returns:
            {输出名: 数组}
        """
        pass

    def run_single(self, tensor: np.ndarray) -> np.ndarray:
        """以第一个输入名送入张量，返回第一个输出"""
        if not self.input_names or not self.output_names:
            raise RuntimeError("推理引擎没有声明输入 / 输出")
        outputs = self.run({self.input_names[0]: tensor})
        return np.asarray(outputs[self.output_names[0]])
