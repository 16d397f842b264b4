"""
Gradio UI - 玉米病害识别界面入口
"""

import argparse
import sys
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))


def main():
    """主入口"""
    parser = argparse.ArgumentParser(description="Maize Disease Detection UI")
    parser.add_argument("--config", default=None, help="配置文件路径")
    parser.add_argument("--mode", choices=["onnx", "hosted"], default=None, help="覆盖部署模式")
    args = parser.parse_args()

    from maize_detect.pipeline import load_pipeline
    from ui.layout import create_ui
    from ui.logic import set_pipeline

    overrides = {"mode": args.mode} if args.mode else None
    pipe = load_pipeline(args.config, overrides=overrides)
    set_pipeline(pipe)

    ui_components = create_ui(num_classes=len(pipe.labels), mode=pipe.mode)
    demo = ui_components["demo"]

    # Gradio 6.0+ 需要在 launch 时传递 theme 和 css
    demo.launch(
        server_name=pipe.cfg.ui.server_name,
        server_port=int(pipe.cfg.ui.server_port),
        share=False,
        theme=ui_components.get("theme"),
        css=ui_components.get("css"),
    )


if __name__ == "__main__":
    main()
