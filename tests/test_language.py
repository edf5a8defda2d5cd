"""Sehat Sathi – Language Detection Tests."""

from unittest.mock import patch

from langdetect import LangDetectException

from app.language.detector import LANGUAGE_MAP, Language, LanguageDetector


class TestLanguageDetector:
    def setup_method(self) -> None:
        self.detector = LanguageDetector(fallback=Language.ENGLISH, min_length=3)

    def test_english_sentence(self) -> None:
        text = "I have had a high fever and a headache since yesterday evening"
        assert self.detector.detect(text) == Language.ENGLISH

    def test_telugu_script(self) -> None:
        text = "నాకు నిన్నటి నుండి జ్వరం మరియు తలనొప్పి ఉంది"
        assert self.detector.identify(text) == Language.TELUGU

    def test_bengali_script(self) -> None:
        text = "আমার গতকাল থেকে জ্বর এবং মাথাব্যথা হচ্ছে"
        assert self.detector.identify(text) == Language.BENGALI

    def test_short_text_is_indeterminate(self) -> None:
        assert self.detector.identify("ok") is None
        assert self.detector.identify(" a b ") is None

    def test_empty_and_none(self) -> None:
        assert self.detector.identify("") is None
        assert self.detector.identify(None) is None
        assert self.detector.detect(None) == Language.ENGLISH

    def test_short_text_detects_as_fallback(self) -> None:
        detector = LanguageDetector(fallback=Language.HINDI)
        assert detector.detect("ok") == Language.HINDI

    def test_unsupported_language_is_indeterminate(self) -> None:
        with patch("app.language.detector.detect", return_value="de"):
            assert self.detector.identify("Ich habe seit gestern Fieber") is None

    def test_detector_exception_is_indeterminate(self) -> None:
        with patch("app.language.detector.detect", side_effect=LangDetectException(0, "no features")):
            assert self.detector.identify("12345 67890") is None

    def test_unexpected_error_falls_back(self) -> None:
        with patch("app.language.detector.detect", side_effect=RuntimeError("boom")):
            assert self.detector.detect("some ordinary text") == Language.ENGLISH

    def test_mapped_code(self) -> None:
        with patch("app.language.detector.detect", return_value="mr"):
            assert self.detector.identify("मला ताप आला आहे") == Language.MARATHI

    def test_map_covers_every_language(self) -> None:
        assert set(LANGUAGE_MAP.values()) == set(Language)
