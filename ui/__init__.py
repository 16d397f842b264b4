"""
UI 模块 - Gradio 交互界面

模块结构：
- state.py: 会话状态管理 (PredictionState)
- config.py: 文案与错误提示映射
- theme.py: CSS 和主题定义
- layout.py: UI 布局定义
- logic.py: 核心业务逻辑
- gradio_app.py: 应用入口

使用方式：
    from ui import main
    main()  # 启动 Gradio 应用
"""

from .state import PredictionState, compute_image_hash
from .config import APP_TITLE, error_message
from .gradio_app import main

__all__ = [
    "PredictionState",
    "compute_image_hash",
    "APP_TITLE",
    "error_message",
    "main",
]
