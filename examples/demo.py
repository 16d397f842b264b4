#!/usr/bin/env python
"""
Maize Disease Detection Demo - 命令行演示脚本

使用方法:
    python examples/demo.py IMAGE [--mode onnx|hosted] [--top K]

示例:
    python examples/demo.py examples/leaf.jpg
    API_TOKEN=... python examples/demo.py examples/leaf.jpg --mode hosted
    python examples/demo.py --clear-cache
"""

import sys
from pathlib import Path

# 添加项目根目录到路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse

from maize_detect.errors import MaizeDetectError
from maize_detect.pipeline import load_pipeline


def main():
    parser = argparse.ArgumentParser(description="Maize Disease Detection Demo")
    parser.add_argument("image", nargs="?", help="叶片图像路径")
    parser.add_argument("--config", default=None, help="配置文件路径")
    parser.add_argument("--mode", choices=["onnx", "hosted"], default=None, help="覆盖部署模式")
    parser.add_argument("--top", type=int, default=None, help="只显示前 K 个类别")
    parser.add_argument("--clear-cache", action="store_true", help="删除本地缓存的模型")
    args = parser.parse_args()

    overrides = {"mode": args.mode} if args.mode else None
    pipe = load_pipeline(args.config, overrides=overrides)

    if args.clear_cache:
        removed = pipe.clear_model_cache()
        print("已清除本地模型缓存" if removed else "本地没有缓存的模型")
        if args.image is None:
            return 0

    if args.image is None:
        parser.error("需要提供图像路径")

    print(f"模式: {pipe.mode}")
    try:
        result = pipe.predict(args.image)
    except MaizeDetectError as e:
        print(f"预测失败: {e}", file=sys.stderr)
        return 1

    if result.model_source:
        print(f"模型来源: {result.model_source}")

    predictions = result.predictions[: args.top] if args.top else result.predictions
    print("\n预测结果:")
    for pred in predictions:
        bar = "█" * int(round(pred.score * 30))
        print(f"  {pred.label:<16} {pred.score * 100:6.2f}%  {bar}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
