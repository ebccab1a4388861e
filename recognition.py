"""
Text Recognition - Boundary to the external OCR engines.

The pipeline never reads text out of pixels itself. It hands the cleaned
black-and-white image to an OCR engine and gets back plain text plus the
engine's own confidence score.

Two engines are supported:
- Google Cloud Vision (needs GOOGLE_APPLICATION_CREDENTIALS)
- Tesseract, through pytesseract (needs the tesseract binary installed)

Recognition can be slow and can fail. Failures are raised as
RecognitionError and are never retried automatically - the user simply
presses the button again, with the same or a better photo.
"""

import io
import os
from abc import ABC, abstractmethod
from typing import Optional

import pytesseract
from google.api_core import exceptions as google_exceptions
from google.cloud import vision
from loguru import logger
from PIL import Image

from schemas.logbook_schema import RecognitionResult


class RecognitionError(RuntimeError):
    """The OCR engine failed; the caller may retry with the same or a new image."""

    retryable = True


class TextRecognizer(ABC):
    """Abstract base class for OCR engine adapters."""

    engine_name = "unknown"

    @abstractmethod
    def recognize(self, image: Image.Image) -> RecognitionResult:
        """
        Extract text from a preprocessed image.

        Raises:
            RecognitionError: if the engine fails
        """
        pass


class GoogleVisionRecognizer(TextRecognizer):
    """OCR through the Google Cloud Vision text_detection API."""

    engine_name = "google-vision"

    def __init__(self, client=None):
        if client is None:
            # Validate that Google Cloud credentials are set
            credentials_path = os.getenv('GOOGLE_APPLICATION_CREDENTIALS')
            if not credentials_path:
                raise ValueError(
                    "GOOGLE_APPLICATION_CREDENTIALS environment variable not set. "
                    "Please set it to the path of your Google Cloud service account JSON file."
                )
            if not os.path.exists(credentials_path):
                raise FileNotFoundError(f"Google Cloud credentials file not found: {credentials_path}")
            client = vision.ImageAnnotatorClient()
            logger.info("Google Cloud Vision client initialized")
        self.client = client

    def recognize(self, image: Image.Image) -> RecognitionResult:
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')

        try:
            response = self.client.text_detection(image=vision.Image(content=buffer.getvalue()))
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Vision API request failed: {e}")
            raise RecognitionError(f"Vision API request failed: {e}") from e

        if response.error.message:
            logger.error(f"Vision API error: {response.error.message}")
            raise RecognitionError(f"Vision API error: {response.error.message}")

        texts = response.text_annotations
        if not texts:
            logger.info("No text detected in image")
            return RecognitionResult(text="", engine_confidence=0.0, engine=self.engine_name)

        # The first text annotation contains all detected text
        full_text = texts[0].description

        # Average the per-word confidences (the first annotation has none)
        confidences = [text.confidence for text in texts[1:] if getattr(text, 'confidence', None)]
        avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0

        return RecognitionResult(
            text=full_text,
            engine_confidence=min(1.0, max(0.0, avg_confidence)),
            engine=self.engine_name,
        )


class TesseractRecognizer(TextRecognizer):
    """OCR through a local Tesseract install."""

    engine_name = "tesseract"

    def __init__(self, lang: str = "eng+hin", tesseract_cmd: Optional[str] = None):
        self.lang = lang
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image: Image.Image) -> RecognitionResult:
        # One OCR pass gives both the words and their confidences
        try:
            data = pytesseract.image_to_data(image, lang=self.lang, output_type=pytesseract.Output.DICT)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as e:
            logger.error(f"Tesseract failed: {e}")
            raise RecognitionError(f"Tesseract failed: {e}") from e

        text, word_confidences = self._assemble(data)
        avg_confidence = sum(word_confidences) / len(word_confidences) / 100 if word_confidences else 0.0

        return RecognitionResult(
            text=text,
            engine_confidence=min(1.0, avg_confidence),
            engine=self.engine_name,
        )

    @staticmethod
    def _assemble(data: dict):
        """
        Rebuild the page text from image_to_data output.

        Words sharing (block_num, par_num, line_num) form one line, in the
        order Tesseract reports them. Tesseract reports -1 for layout boxes
        that are not words.

        Returns:
            (text, word confidences on a 0-100 scale)
        """

        lines = {}
        word_confidences = []
        words = data.get('text', [])
        for i, word in enumerate(words):
            conf = float(data['conf'][i])
            if conf < 0 or not str(word).strip():
                continue
            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            lines.setdefault(key, []).append(str(word).strip())
            word_confidences.append(conf)

        text = "\n".join(" ".join(line_words) for line_words in lines.values())
        return text, word_confidences


def create_recognizer(settings) -> TextRecognizer:
    """
    Build the OCR adapter named by settings.ocr_engine.

    Args:
        settings: PipelineSettings

    Returns:
        A ready-to-use TextRecognizer
    """

    if settings.ocr_engine == "google":
        return GoogleVisionRecognizer()
    if settings.ocr_engine == "tesseract":
        return TesseractRecognizer(lang=settings.tesseract_lang, tesseract_cmd=settings.tesseract_cmd)
    raise ValueError(f"Unknown OCR engine '{settings.ocr_engine}'. Use 'google' or 'tesseract'.")
