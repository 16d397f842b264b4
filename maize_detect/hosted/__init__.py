"""
Hosted 模块 - 托管推理接口
"""

from .client import HostedInferenceClient

__all__ = ["HostedInferenceClient"]
