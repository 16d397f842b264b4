"""
UI Theme - CSS 和 Gradio 主题定义
"""

import gradio as gr


def create_theme() -> gr.themes.Base:
    """创建 Gradio 主题"""
    return gr.themes.Soft(
        primary_hue="green",
        secondary_hue="lime",
        neutral_hue="stone",
        text_size=gr.themes.sizes.text_md,
        radius_size=gr.themes.sizes.radius_md,
    )


# 自定义 CSS
CUSTOM_CSS = """
.gradio-container {
    font-family: 'Helvetica Neue', 'Segoe UI', Roboto, sans-serif;
}

/* 分析按钮 */
.analyze-btn {
    background: linear-gradient(90deg, #16a34a 0%, #15803d 100%) !important;
    border: none !important;
    color: white !important;
    box-shadow: 0 4px 6px rgba(0,0,0,0.1);
}

.analyze-btn:hover {
    transform: translateY(-1px);
}

.app-footer {
    text-align: center;
    opacity: 0.7;
}
"""


def get_css() -> str:
    """获取自定义 CSS"""
    return CUSTOM_CSS
