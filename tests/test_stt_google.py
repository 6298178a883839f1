"""Tests for the Google Speech-to-Text client."""

import asyncio
import base64
from unittest.mock import AsyncMock, patch

import pytest

from voice_translator.exceptions import AuthError, ServiceError
from voice_translator.models import CapturedAudio
from voice_translator.services.stt_google import GoogleSpeechToText


@pytest.mark.unit
class TestGoogleSpeechToText:

    def test_builds_recognize_request(self, speech_audio):
        stt = GoogleSpeechToText(base_url="https://speech.example/v1/", language="ja-JP")
        response = {"results": [{"alternatives": [{"transcript": "konnichiwa", "confidence": 0.93}]}]}

        with patch("voice_translator.services.stt_google.post_json", new=AsyncMock(return_value=response)) as post:
            text = asyncio.run(stt.transcribe(speech_audio, "VALIDKEY"))

        assert text == "konnichiwa"
        url, payload = post.call_args.args
        assert url == "https://speech.example/v1/speech:recognize"
        assert post.call_args.kwargs["params"] == {"key": "VALIDKEY"}
        assert payload["config"]["encoding"] == "LINEAR16"
        assert payload["config"]["sampleRateHertz"] == 16000
        assert payload["config"]["languageCode"] == "ja-JP"
        assert base64.b64decode(payload["audio"]["content"]) == speech_audio.data

    def test_joins_best_alternative_of_each_result(self, speech_audio):
        response = {
            "results": [
                {"alternatives": [{"transcript": "good morning"}, {"transcript": "could morning"}]},
                {"alternatives": [{"transcript": " how are you "}]},
                {"alternatives": []},
            ]
        }

        with patch("voice_translator.services.stt_google.post_json", new=AsyncMock(return_value=response)):
            text = asyncio.run(GoogleSpeechToText().transcribe(speech_audio, "K"))

        assert text == "good morning how are you"

    def test_no_results_means_empty_text(self, speech_audio):
        with patch("voice_translator.services.stt_google.post_json", new=AsyncMock(return_value={})):
            assert asyncio.run(GoogleSpeechToText().transcribe(speech_audio, "K")) == ""

    @pytest.mark.parametrize("audio", [None, CapturedAudio(data=b"", sample_rate=16000)])
    def test_missing_audio_skips_request(self, audio):
        with patch("voice_translator.services.stt_google.post_json", new=AsyncMock()) as post:
            assert asyncio.run(GoogleSpeechToText().transcribe(audio, "K")) == ""

        post.assert_not_called()

    def test_missing_credential_raises_before_request(self, speech_audio):
        with patch("voice_translator.services.stt_google.post_json", new=AsyncMock()) as post:
            with pytest.raises(AuthError):
                asyncio.run(GoogleSpeechToText().transcribe(speech_audio, ""))

        post.assert_not_called()

    def test_malformed_results_raise_service_error(self, speech_audio):
        with patch("voice_translator.services.stt_google.post_json", new=AsyncMock(return_value={"results": "x"})):
            with pytest.raises(ServiceError):
                asyncio.run(GoogleSpeechToText().transcribe(speech_audio, "K"))
