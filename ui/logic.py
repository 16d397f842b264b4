"""
UI Logic - 核心业务逻辑

将处理逻辑从 UI 层分离，支持多用户并发。
"""

import numpy as np
from omegaconf import OmegaConf

from maize_detect.errors import MaizeDetectError

from .config import MSG_FIRST_LOAD, MSG_NO_IMAGE, error_message
from .state import PredictionState, compute_image_hash

# Pipeline 延迟导入
_pipeline = None


def get_pipeline():
    """懒加载 Pipeline"""
    global _pipeline
    if _pipeline is None:
        from maize_detect.pipeline import load_pipeline
        _pipeline = load_pipeline()
    return _pipeline


def set_pipeline(pipeline) -> None:
    """替换全局 Pipeline（启动参数或测试注入）"""
    global _pipeline
    _pipeline = pipeline


def _first_load_notice(pipe) -> bool:
    cfg = getattr(pipe, "cfg", None)
    if cfg is None:
        return True
    return bool(OmegaConf.select(cfg, "ui.first_load_notice", default=True))


def on_image_change(state: PredictionState, image: np.ndarray | None) -> PredictionState:
    """上传 / 拍摄新图像：清空旧结果"""
    if image is None:
        return PredictionState()

    new_state = state.copy()
    new_state.image = image
    new_state.image_hash = compute_image_hash(image)
    new_state.predictions = []
    new_state.error = None
    return new_state


def run_prediction(state: PredictionState, image: np.ndarray | None) -> PredictionState:
    """
    对当前图像执行预测

    Args:
        state: 用户会话状态
        image: 输入图像（Gradio numpy RGB）

    Returns:
        更新后的状态；失败时 error 为用户提示，predictions 为空
    """
    new_state = state.copy()
    if image is None:
        new_state.error = MSG_NO_IMAGE
        new_state.predictions = []
        return new_state

    img_hash = compute_image_hash(image)
    if state.image_hash == img_hash and state.has_results():
        return new_state  # 使用缓存

    pipe = get_pipeline()
    cold_start = pipe.mode == "onnx" and not pipe.engine_ready and _first_load_notice(pipe)

    new_state.image = image
    new_state.image_hash = img_hash
    new_state.predictions = []
    new_state.error = None
    new_state.first_load = False

    try:
        result = pipe.predict(image)
    except MaizeDetectError as e:
        print(f"[UI] 预测失败: {e!r}")
        new_state.error = error_message(e)
        return new_state

    new_state.predictions = result.predictions
    new_state.first_load = cold_start and result.model_source == "network"
    return new_state


def predictions_to_label(state: PredictionState) -> dict[str, float] | None:
    """转换为 gr.Label 需要的 {label: score}"""
    if not state.predictions:
        return None
    return {p.label: p.score for p in state.predictions}


def status_markdown(state: PredictionState) -> str:
    """状态栏文本"""
    if state.error:
        return f"⚠️ {state.error}"
    if state.predictions:
        top = state.predictions[0]
        text = f"**{top.label}** · {top.score * 100:.1f}%"
        if state.first_load:
            text += f"\n\n*{MSG_FIRST_LOAD}*"
        return text
    return ""


def clear_model_cache() -> str:
    """删除本地缓存的模型文件"""
    pipe = get_pipeline()
    try:
        removed = pipe.clear_model_cache()
    except MaizeDetectError as e:
        return f"⚠️ 清除缓存失败：{e}"
    return "已清除本地模型缓存。" if removed else "本地没有缓存的模型。"
