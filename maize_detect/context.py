"""
Context - 核心数据结构

推理结果在 pipeline、UI 和 CLI 之间传递时使用的数据类。
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Prediction:
    """单个类别的预测结果"""

    label: str
    score: float    # 概率 [0,1]

    def as_dict(self) -> dict:
        return {"label": self.label, "score": self.score}


@dataclass
class PredictionResult:
    """一次推理的完整输出"""

    predictions: list[Prediction] = field(default_factory=list)  # 按 score 降序
    mode: str = "onnx"                 # "onnx" | "hosted"
    model_source: str | None = None    # "cache" | "network" | None（hosted 模式）

    @property
    def top(self) -> Prediction | None:
        """置信度最高的类别"""
        return self.predictions[0] if self.predictions else None

    def to_label_dict(self) -> dict[str, float]:
        """转换为 {label: score}，供 gr.Label 使用"""
        return {p.label: p.score for p in self.predictions}
