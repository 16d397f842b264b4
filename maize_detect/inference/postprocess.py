"""
后处理 - softmax、标签映射、排序
"""

from typing import Sequence

import numpy as np

from ..context import Prediction


def softmax(logits: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    数值稳定的 softmax：exp(x_i - max) / Σ exp(x_j - max)

    Args:
        logits: 一维 logits

    Returns:
        float64 概率，和为 1
    """
    x = np.asarray(logits, dtype=np.float64).reshape(-1)
    if x.size == 0:
        return x
    exps = np.exp(x - x.max())
    return exps / exps.sum()


def scores_from_output(output: np.ndarray, outputs_probabilities: bool = False) -> np.ndarray:
    """
    把模型输出转换为一维概率

    Args:
        output: 形如 (1, num_classes) 或 (num_classes,) 的输出
        outputs_probabilities: 输出已经是概率时跳过 softmax
    """
    flat = np.asarray(output, dtype=np.float64).reshape(-1)
    return flat if outputs_probabilities else softmax(flat)


def rank_predictions(scores: Sequence[float] | np.ndarray, labels: Sequence[str]) -> list[Prediction]:
    """
    按分数降序排列

    Args:
        scores: 按模型类别顺序排列的分数
        labels: 序号 -> 标签表，缺失的序号显示为 "Class {i}"

    Returns:
        Prediction 列表（降序，同分时保持类别顺序）
    """
    preds = [
        Prediction(label=labels[i] if i < len(labels) else f"Class {i}", score=float(s))
        for i, s in enumerate(np.asarray(scores).reshape(-1))
    ]
    return sorted(preds, key=lambda p: p.score, reverse=True)
