"""
UI 逻辑单元测试（状态、预测流程、错误提示）
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest
from omegaconf import OmegaConf

from maize_detect.context import Prediction, PredictionResult
from maize_detect.errors import (
    DecodeError,
    FetchError,
    HostedApiError,
    HttpError,
    ModelLoadError,
    NetworkError,
    PayloadTooLargeError,
    RequestTimeoutError,
)
from ui import logic
from ui.config import MSG_FIRST_LOAD, MSG_NO_IMAGE, error_message
from ui.state import PredictionState, compute_image_hash

PREDICTIONS = [
    Prediction("Common_Rust", 0.7),
    Prediction("Blight", 0.2),
    Prediction("Healthy", 0.1),
]


class FakePipeline:
    """模拟 MaizePipeline 的最小接口"""

    def __init__(self, mode="onnx", error=None, model_source="network"):
        self.mode = mode
        self.error = error
        self.model_source = model_source
        self.engine_ready = False
        self.calls = 0
        self.cleared = False

    def predict(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        self.engine_ready = True
        return PredictionResult(list(PREDICTIONS), mode=self.mode, model_source=self.model_source)

    def clear_model_cache(self):
        removed = not self.cleared
        self.cleared = True
        return removed


@pytest.fixture
def image():
    return np.full((16, 16, 3), 128, dtype=np.uint8)


@pytest.fixture
def pipeline():
    pipe = FakePipeline()
    logic.set_pipeline(pipe)
    yield pipe
    logic.set_pipeline(None)


class TestPredictionState:
    """PredictionState 测试"""

    def test_defaults(self):
        state = PredictionState()
        assert not state.has_image()
        assert not state.has_results()
        assert state.error is None

    def test_copy_is_independent(self, image):
        state = PredictionState(image=image, predictions=list(PREDICTIONS))
        copied = state.copy()
        copied.predictions.append(Prediction("x", 0.0))

        assert len(state.predictions) == 3
        assert copied.image is state.image

    def test_reset(self, image):
        state = PredictionState(image=image, image_hash="abc", predictions=list(PREDICTIONS), error="e")
        state.reset()
        assert state == PredictionState()

    def test_image_hash(self, image):
        other = image.copy()
        other[0, 0, 0] = 0

        assert compute_image_hash(image) == compute_image_hash(image.copy())
        assert compute_image_hash(image) != compute_image_hash(other)
        assert len(compute_image_hash(image)) == 12


class TestRunPrediction:
    """预测流程"""

    def test_no_image(self, pipeline):
        state = logic.run_prediction(PredictionState(), None)

        assert state.error == MSG_NO_IMAGE
        assert state.predictions == []
        assert pipeline.calls == 0

    def test_success_with_first_load_notice(self, pipeline, image):
        state = logic.run_prediction(PredictionState(), image)

        assert state.error is None
        assert state.predictions[0].label == "Common_Rust"
        assert state.first_load is True
        assert state.image_hash == compute_image_hash(image)

        text = logic.status_markdown(state)
        assert "Common_Rust" in text
        assert "70.0%" in text
        assert MSG_FIRST_LOAD in text

    def test_warm_engine_has_no_notice(self, pipeline, image):
        pipeline.engine_ready = True
        state = logic.run_prediction(PredictionState(), image)
        assert state.first_load is False

    def test_cache_hit_has_no_notice(self, image):
        logic.set_pipeline(FakePipeline(model_source="cache"))
        try:
            state = logic.run_prediction(PredictionState(), image)
        finally:
            logic.set_pipeline(None)
        assert state.first_load is False

    def test_notice_disabled_by_config(self, image):
        pipe = FakePipeline()
        pipe.cfg = OmegaConf.create({"ui": {"first_load_notice": False}})
        logic.set_pipeline(pipe)
        try:
            state = logic.run_prediction(PredictionState(), image)
        finally:
            logic.set_pipeline(None)
        assert state.first_load is False
        assert MSG_FIRST_LOAD not in logic.status_markdown(state)

    def test_same_image_not_recomputed(self, pipeline, image):
        state = logic.run_prediction(PredictionState(), image)
        again = logic.run_prediction(state, image.copy())

        assert pipeline.calls == 1
        assert again.predictions == state.predictions
        assert again is not state

    def test_error_replaces_results(self, image):
        logic.set_pipeline(FakePipeline(error=RequestTimeoutError("Request timeout")))
        try:
            previous = PredictionState(image=image, image_hash="old", predictions=list(PREDICTIONS))
            state = logic.run_prediction(previous, image)
        finally:
            logic.set_pipeline(None)

        assert state.predictions == []
        assert state.error == "请求超时，请稍后重试。"
        assert logic.predictions_to_label(state) is None
        assert logic.status_markdown(state).startswith("⚠️")

    def test_on_image_change(self, image):
        state = PredictionState(image=image, predictions=list(PREDICTIONS), error="old")

        changed = logic.on_image_change(state, image[:8])
        assert changed.predictions == []
        assert changed.error is None
        assert changed.image_hash == compute_image_hash(image[:8])

        assert logic.on_image_change(state, None) == PredictionState()

    def test_predictions_to_label(self, pipeline, image):
        state = logic.run_prediction(PredictionState(), image)
        assert logic.predictions_to_label(state) == {
            "Common_Rust": 0.7,
            "Blight": 0.2,
            "Healthy": 0.1,
        }

    def test_clear_model_cache(self, pipeline):
        assert logic.clear_model_cache() == "已清除本地模型缓存。"
        assert logic.clear_model_cache() == "本地没有缓存的模型。"


class TestErrorMessage:
    """异常 -> 用户提示"""

    def test_timeout_differs_from_service_failure(self):
        timeout = error_message(RequestTimeoutError("Request timeout"))
        unavailable = error_message(HttpError(503, "loading"))

        assert timeout != unavailable
        assert "超时" in timeout
        assert "503" in unavailable

    def test_client_http_error_shows_detail(self):
        assert error_message(HttpError(401, "Invalid token")) == "请求失败（401）：Invalid token"

    def test_hosted_api_error_message(self):
        assert error_message(HostedApiError("Model is overloaded")) == "Model is overloaded"

    @pytest.mark.parametrize(
        "err, fragment",
        [
            (NetworkError("refused"), "暂时不可用"),
            (PayloadTooLargeError("Image too large"), "10 MB"),
            (DecodeError("bad"), "无法读取"),
            (ModelLoadError("bad session"), "模型加载失败"),
            (FetchError("empty"), "模型下载失败"),
        ],
    )
    def test_mapping(self, err, fragment):
        assert fragment in error_message(err)

    def test_unknown_error_uses_text(self):
        assert error_message(RuntimeError("boom")) == "boom"
        assert error_message(RuntimeError()) == "分析失败，请重试。"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
