"""
UI Layout - Gradio UI 布局定义
"""

import gradio as gr

from .config import APP_TITLE
from .logic import (
    clear_model_cache,
    on_image_change,
    predictions_to_label,
    run_prediction,
    status_markdown,
)
from .state import PredictionState
from .theme import create_theme, get_css


def create_ui(num_classes: int = 4, mode: str = "onnx"):
    """
    创建 Gradio UI

    Args:
        num_classes: 结果列表显示的类别数
        mode: 部署模式，仅用于页眉说明

    Returns:
        {"demo": gr.Blocks, "theme": ..., "css": ...}
    """
    theme = create_theme()
    css = get_css()

    subtitle = (
        "本地 ONNX 推理，模型下载一次后缓存在本机"
        if mode == "onnx"
        else "图像将发送到托管推理服务进行识别"
    )

    with gr.Blocks(title=APP_TITLE) as demo:
        # 初始化用户会话状态
        state = gr.State(PredictionState())

        gr.Markdown(f"# 🌽 {APP_TITLE}\n### 玉米叶片病害识别 · {subtitle}")

        with gr.Row():
            # 左侧：上传区
            with gr.Column(scale=1, min_width=350):
                input_image = gr.Image(
                    label="上传叶片图像（拖拽 / 点击 / 摄像头）",
                    type="numpy",
                    sources=["upload", "webcam", "clipboard"],
                    height=360,
                )
                with gr.Row():
                    analyze_btn = gr.Button(
                        "🔍 分析图像",
                        variant="primary",
                        elem_classes="analyze-btn",
                        size="lg",
                    )
                    remove_btn = gr.Button("🗑️ 移除图像", size="lg")

            # 右侧：结果区
            with gr.Column(scale=1):
                results = gr.Label(label="预测结果", num_top_classes=num_classes)
                status = gr.Markdown()

                with gr.Accordion("⚙️ 高级", open=False, visible=mode == "onnx"):
                    clear_cache_btn = gr.Button("清除本地模型缓存")
                    cache_status = gr.Markdown()

        gr.Markdown("Built with Gradio and ONNX Runtime", elem_classes="app-footer")

        # 事件处理函数
        def handle_upload(current_state, image):
            new_state = on_image_change(current_state, image)
            return new_state, None, ""

        def handle_predict(current_state, image):
            new_state = run_prediction(current_state, image)
            return new_state, predictions_to_label(new_state), status_markdown(new_state)

        def handle_remove(current_state):
            return PredictionState(), None, None, ""

        # 事件绑定
        input_image.change(
            fn=handle_upload,
            inputs=[state, input_image],
            outputs=[state, results, status],
        )
        analyze_btn.click(
            fn=handle_predict,
            inputs=[state, input_image],
            outputs=[state, results, status],
        )
        remove_btn.click(
            fn=handle_remove,
            inputs=[state],
            outputs=[state, input_image, results, status],
        )
        clear_cache_btn.click(fn=clear_model_cache, inputs=None, outputs=cache_status)

    return {
        "demo": demo,
        "theme": theme,
        "css": css,
    }
