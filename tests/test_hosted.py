"""
Hosted 模块单元测试 - 托管推理接口客户端
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import base64
from io import BytesIO

import numpy as np
import pytest
import requests
from omegaconf import OmegaConf
from PIL import Image

from maize_detect.errors import (
    ConfigurationError,
    HostedApiError,
    HttpError,
    NetworkError,
    PayloadTooLargeError,
    RequestTimeoutError,
)
from maize_detect.hosted import HostedInferenceClient

API_URL = "https://api-inference.example.com/models/maize"
IMAGE_BYTES = b"\xff\xd8\xff\xe0 fake jpeg bytes"


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self._body = body
        self.reason = reason

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeSession:
    """记录 post 调用的假 Session"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def make_config(**hosted):
    base = {
        "url": API_URL,
        "api_token": "hf_test_token",
        "timeout": 30,
        "max_payload_bytes": 10 * 1024 * 1024,
    }
    base.update(hosted)
    return OmegaConf.create({"hosted": base})


def make_client(response=None, error=None, **hosted):
    session = FakeSession(response, error)
    return HostedInferenceClient(make_config(**hosted), session=session), session


class TestRequest:
    """请求构造"""

    def test_payload_and_headers(self):
        client, session = make_client(FakeResponse(200, [{"label": "Healthy", "score": 0.9}]))
        client.predict(IMAGE_BYTES)

        call = session.calls[0]
        assert call["url"] == API_URL
        assert call["headers"]["Authorization"] == "Bearer hf_test_token"
        assert call["headers"]["Content-Type"] == "application/json"
        assert call["json"] == {"inputs": base64.b64encode(IMAGE_BYTES).decode("ascii")}
        assert call["timeout"] == 30.0

    def test_data_url_prefix_stripped(self):
        client, session = make_client(FakeResponse(200, []))
        encoded = base64.b64encode(IMAGE_BYTES).decode("ascii")

        client.predict(f"data:image/jpeg;base64,{encoded}")

        assert session.calls[0]["json"]["inputs"] == encoded

    def test_file_path(self, tmp_path):
        path = tmp_path / "leaf.jpg"
        path.write_bytes(IMAGE_BYTES)
        client, session = make_client(FakeResponse(200, []))

        client.predict(path)

        assert base64.b64decode(session.calls[0]["json"]["inputs"]) == IMAGE_BYTES

    def test_ndarray_encoded_as_png(self):
        image = np.zeros((6, 5, 3), dtype=np.uint8)
        image[..., 1] = 200
        client, session = make_client(FakeResponse(200, []))

        client.predict(image)

        raw = base64.b64decode(session.calls[0]["json"]["inputs"])
        decoded = np.array(Image.open(BytesIO(raw)))
        np.testing.assert_array_equal(decoded, image)

    def test_oversize_rejected_before_sending(self):
        client, session = make_client(FakeResponse(200, []), max_payload_bytes=16)

        with pytest.raises(PayloadTooLargeError):
            client.predict(b"x" * 64)
        assert session.calls == []

    def test_missing_token(self):
        client, session = make_client(FakeResponse(200, []), api_token=None)

        with pytest.raises(ConfigurationError):
            client.predict(IMAGE_BYTES)
        assert session.calls == []


class TestResponse:
    """响应解析与错误映射"""

    def test_predictions_sorted(self):
        body = [
            {"label": "Healthy", "score": 0.05},
            {"label": "Common_Rust", "score": 0.8},
            {"label": "Blight", "score": 0.15},
        ]
        client, _ = make_client(FakeResponse(200, body))

        preds = client.predict(IMAGE_BYTES)

        assert [p.label for p in preds] == ["Common_Rust", "Blight", "Healthy"]
        assert preds[0].score == pytest.approx(0.8)

    def test_nested_list(self):
        client, _ = make_client(FakeResponse(200, [[{"label": "Blight", "score": 1.0}]]))
        assert client.predict(IMAGE_BYTES)[0].label == "Blight"

    def test_error_body_with_200_is_failure(self):
        client, _ = make_client(FakeResponse(200, {"error": "Model is overloaded"}))

        with pytest.raises(HostedApiError, match="Model is overloaded"):
            client.predict(IMAGE_BYTES)

    def test_http_error_status(self):
        response = FakeResponse(503, {"error": "Model maize is currently loading"}, "Service Unavailable")
        client, _ = make_client(response)

        with pytest.raises(HttpError) as exc_info:
            client.predict(IMAGE_BYTES)
        assert exc_info.value.status == 503
        assert "currently loading" in exc_info.value.message

    def test_http_error_without_json(self):
        client, _ = make_client(FakeResponse(401, None, "Unauthorized"))

        with pytest.raises(HttpError, match="Unauthorized"):
            client.predict(IMAGE_BYTES)

    def test_timeout_distinct_from_service_failure(self):
        client, _ = make_client(error=requests.Timeout("read timed out"))

        with pytest.raises(RequestTimeoutError) as exc_info:
            client.predict(IMAGE_BYTES)
        assert not isinstance(exc_info.value, HttpError)
        assert isinstance(exc_info.value, TimeoutError)

    def test_connection_error(self):
        client, _ = make_client(error=requests.ConnectionError("refused"))

        with pytest.raises(NetworkError):
            client.predict(IMAGE_BYTES)

    def test_invalid_json(self):
        client, _ = make_client(FakeResponse(200, None))

        with pytest.raises(HostedApiError):
            client.predict(IMAGE_BYTES)

    @pytest.mark.parametrize("body", [{"foo": 1}, "text", [{"label": "x"}], [1, 2]])
    def test_unexpected_shapes(self, body):
        with pytest.raises(HostedApiError):
            HostedInferenceClient.parse_response(body)

    @pytest.mark.parametrize("score", ["n/a", None, [0.5], {"value": 1}])
    def test_malformed_score(self, score):
        with pytest.raises(HostedApiError, match="Unexpected prediction item"):
            HostedInferenceClient.parse_response([{"label": "Blight", "score": score}])

    def test_malformed_score_through_predict(self):
        client, _ = make_client(FakeResponse(200, [{"label": "Blight", "score": "n/a"}]))

        with pytest.raises(HostedApiError):
            client.predict(IMAGE_BYTES)

    def test_numeric_string_score_accepted(self):
        preds = HostedInferenceClient.parse_response([{"label": "Blight", "score": "0.75"}])
        assert preds[0].score == pytest.approx(0.75)

    def test_empty_list_is_empty_result(self):
        assert HostedInferenceClient.parse_response([]) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
