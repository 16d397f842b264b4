"""
MaizePipeline - 主处理流水线

玉米叶片病害识别的核心入口：预处理 -> 推理 -> softmax -> 标签排序。
onnx 模式在本地推理（模型经缓存加载），hosted 模式把图像交给托管接口。
"""

import threading
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from omegaconf import DictConfig, OmegaConf

from .context import PredictionResult
from .errors import ConfigurationError, ModelLoadError

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG = PROJECT_ROOT / "config" / "default.yaml"
MODES = ("onnx", "hosted")


class MaizePipeline:
    """玉米病害识别主 Pipeline"""

    def __init__(
        self,
        config_path: str | Path | None = None,
        overrides: dict | None = None,
        engine=None,
        fetcher=None,
        decoder=None,
        session=None,
    ):
        """
        初始化 Pipeline

        Args:
            config_path: 配置文件路径，默认使用 config/default.yaml
            overrides: 覆盖配置的字典（与 YAML 合并）
            engine: 预先创建的推理引擎（跳过模型加载）
            fetcher: 模型获取器，默认按 model.source 下载
            decoder: 图像解码器，默认 PillowDecoder
            session: hosted 模式使用的 requests.Session
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG
        cfg = OmegaConf.load(config_path)
        if overrides:
            cfg = OmegaConf.merge(cfg, OmegaConf.create(overrides))
        self.cfg: DictConfig = cfg

        self.mode = str(cfg.mode)
        if self.mode not in MODES:
            raise ConfigurationError(f"未知的部署模式: {self.mode}，可选: {MODES}")
        self.labels: list[str] = list(cfg.labels)

        self._engine = engine
        self._fetcher = fetcher
        self._decoder = decoder
        self._session = session
        self._engine_lock = threading.Lock()

        # 延迟创建
        self._preprocessor = None
        self._artifact_cache = None
        self._model_loader = None
        self._hosted_client = None

    # ==================== 模块懒加载 ====================

    @property
    def preprocessor(self):
        """张量预处理器（懒加载）"""
        if self._preprocessor is None:
            from .preprocess import TensorPreprocessor
            self._preprocessor = TensorPreprocessor(self.cfg, decoder=self._decoder)
        return self._preprocessor

    @property
    def artifact_cache(self):
        """模型缓存（懒加载），cache.enabled 为 false 时为 None"""
        if self._artifact_cache is None and self.cfg.cache.enabled:
            from .cache import CacheStore, ModelArtifactCache
            self._artifact_cache = ModelArtifactCache(
                CacheStore.from_config(self.cfg), key=self.cfg.cache.key
            )
        return self._artifact_cache

    @property
    def model_loader(self):
        """load-or-fetch 加载器（懒加载）"""
        if self._model_loader is None:
            from .cache import HttpArtifactFetcher, ModelLoader
            fetcher = self._fetcher or HttpArtifactFetcher(
                self._resolve_source(self.cfg.model.source),
                timeout=float(self.cfg.model.fetch_timeout),
            )
            self._model_loader = ModelLoader(
                self.artifact_cache,
                fetcher,
                single_flight=bool(self.cfg.cache.single_flight),
            )
        return self._model_loader

    @property
    def engine(self):
        """推理引擎（懒加载，首次访问时加载模型）"""
        if self._engine is None:
            with self._engine_lock:
                if self._engine is None:
                    self._engine = self._create_engine()
        return self._engine

    @property
    def engine_ready(self) -> bool:
        return self._engine is not None

    @property
    def hosted_client(self):
        """托管推理客户端（懒加载）"""
        if self._hosted_client is None:
            from .hosted import HostedInferenceClient
            self._hosted_client = HostedInferenceClient(self.cfg, session=self._session)
        return self._hosted_client

    def _create_engine(self):
        # 下载 / 缓存错误原样抛出，便于 UI 区分超时与服务故障
        model_bytes = self.model_loader.load()

        from .inference import OnnxEngine
        try:
            return OnnxEngine(
                model_bytes,
                device=getattr(self.cfg, "global").device,
                num_threads=self.cfg.model.num_threads,
            )
        except Exception as e:
            print(f"[Pipeline] 创建 ONNX 会话失败: {e}")
            raise ModelLoadError("Failed to load the ONNX model. Please retry.") from e

    @staticmethod
    def _resolve_source(source: str) -> str:
        """相对路径以项目根目录为基准，URL 原样返回"""
        if urlparse(str(source)).scheme in ("http", "https", "file"):
            return str(source)
        path = Path(source).expanduser()
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return str(path)

    # ==================== 主处理流程 ====================

    def predict(self, image: Any) -> PredictionResult:
        """
        识别单张叶片图像

        Args:
            image: bytes / 文件路径 / data URL / PIL.Image / uint8 ndarray

        Returns:
            PredictionResult，predictions 按概率降序
        """
        if self.mode == "hosted":
            predictions = self.hosted_client.predict(image)
            return PredictionResult(predictions=predictions, mode="hosted")

        from .inference import rank_predictions, scores_from_output

        # 先预处理：坏图像不应触发模型下载
        tensor = self.preprocessor.preprocess(image)
        output = self.engine.run_single(tensor)
        scores = scores_from_output(output, bool(self.cfg.model.outputs_probabilities))

        return PredictionResult(
            predictions=rank_predictions(scores, self.labels),
            mode="onnx",
            model_source=self._model_loader.last_source if self._model_loader else None,
        )

    def clear_model_cache(self) -> bool:
        """删除持久化的模型，返回是否存在过（内存中的会话不受影响）"""
        cache = self.artifact_cache
        if cache is None:
            return False
        return cache.clear()


def load_pipeline(config_path: str | Path | None = None, **kwargs) -> MaizePipeline:
    """
    便捷函数：加载 Pipeline

    Args:
        config_path: 配置文件路径
        **kwargs: 透传给 MaizePipeline

    Returns:
        MaizePipeline 实例
    """
    return MaizePipeline(config_path, **kwargs)
