"""
Logbook OCR Pipeline

This module ties the whole extraction process together:
1. Loads the logbook photo and turns it black-and-white
2. Sends it to the OCR engine (Google Cloud Vision or Tesseract)
3. Parses the text into candidate delivery entries
4. Opens a review session so a person can fix and confirm the entries

For Python beginners:
- Only one photo is processed at a time, into one review session
- OCR is the slow step; pass a threading.Event as cancel_event if the user
  should be able to abandon an upload. The check happens before and after
  OCR - a running OCR call is always allowed to finish
- progress_callback (if given) is called with the name of each step
- Starting a new upload throws away the previous unconfirmed entries,
  even if the new upload then fails
"""

from pathlib import Path
from threading import Event
from typing import Callable, Optional

from loguru import logger

from config import PipelineSettings, load_settings
from image_preprocessor import ImageSource, load_image, preprocess_image
from ledger import DeliveryLedger
from parsers import LogbookParser
from recognition import TextRecognizer, create_recognizer
from review_session import ReviewSession

STAGES = ("preprocessing", "recognizing", "parsing", "review")


class ProcessingCancelled(Exception):
    """The user cancelled the upload before its entries reached review."""


class LogbookPipeline:
    """
    Photo -> black-and-white image -> OCR text -> candidate entries -> review.

    Example:
        pipeline = LogbookPipeline.from_settings(ledger=my_ledger)
        session = pipeline.process_image("logbook_page.jpg")
        session.edit(session.candidates[0].id, "client_name", "Ravi Industries")
        session.confirm_all()
    """

    def __init__(self, recognizer: TextRecognizer, parser: LogbookParser, session: ReviewSession):
        self.recognizer = recognizer
        self.parser = parser
        self.session = session

    @classmethod
    def from_settings(cls, ledger: DeliveryLedger,
                      settings: Optional[PipelineSettings] = None) -> "LogbookPipeline":
        """
        Build the full pipeline from configuration.

        The ledger's own roster is used for name matching when it has one;
        otherwise the roster from config.py / the environment.
        """

        settings = settings or load_settings()
        parser = LogbookParser.from_settings(settings, roster=ledger.roster())
        pipeline = cls(create_recognizer(settings), parser, ReviewSession(ledger))

        logger.info(
            f"Logbook pipeline initialized (engine: {settings.ocr_engine}, "
            f"strategy: {settings.parser_strategy.value})"
        )
        return pipeline

    def process_image(self, source: ImageSource, source_file: Optional[str] = None,
                      cancel_event: Optional[Event] = None,
                      progress_callback: Optional[Callable[[str], None]] = None) -> ReviewSession:
        """
        Run one logbook photo through the pipeline into the review session.

        Args:
            source: Image path, bytes, PIL image or numpy array
            source_file: Name to record on the batch (defaults to the file name)
            cancel_event: Set it to abandon the upload
            progress_callback: Called with each stage name

        Any unconfirmed entries from a previous upload are discarded first,
        so after a failure or a cancellation the session is empty.

        Returns:
            The review session, now holding the new candidate entries

        Raises:
            InvalidImage: the photo is empty, unreadable or not a supported type
            RecognitionError: the OCR engine failed (safe to retry)
            ProcessingCancelled: cancel_event was set
        """

        def report(stage: str) -> None:
            logger.debug(f"Stage: {stage}")
            if progress_callback:
                progress_callback(stage)

        def check_cancelled() -> None:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Upload cancelled by user")
                raise ProcessingCancelled("Logbook processing was cancelled")

        # A new upload replaces the previous batch even if the upload fails
        if len(self.session):
            logger.warning(
                f"Discarding {len(self.session)} unconfirmed entries from "
                f"{self.session.source_file or 'previous upload'}"
            )
        self.session.reset()

        if isinstance(source, (str, Path)):
            source_file = source_file or Path(source).name
            source = load_image(source)

        report("preprocessing")
        image = preprocess_image(source)
        check_cancelled()

        report("recognizing")
        result = self.recognizer.recognize(image)
        logger.info(f"OCR completed with {result.engine} (confidence: {result.engine_confidence:.2f})")
        check_cancelled()

        report("parsing")
        candidates = self.parser.parse(result.text)

        report("review")
        self.session.start(candidates, source_file=source_file)
        return self.session
