"""
Unit tests for the end-to-end logbook pipeline (with a fake OCR engine).
"""

import threading

import numpy as np
import pytest
from PIL import Image

from config import PipelineSettings
from image_preprocessor import InvalidImage
from ledger import InMemoryLedger
from parsers import LogbookParser
from pipeline import STAGES, LogbookPipeline, ProcessingCancelled
from recognition import RecognitionError, TesseractRecognizer
from review_session import ReviewSession
from schemas import ParserStrategy, Roster


@pytest.fixture
def make_pipeline(roster, ledger, fixed_today, fake_recognizer_cls):
    def _make(text="", error=None, strategy=ParserStrategy.STRUCTURAL):
        recognizer = fake_recognizer_cls(text=text, error=error)
        parser = LogbookParser(strategy, roster)
        return LogbookPipeline(recognizer, parser, ReviewSession(ledger, today=lambda: fixed_today))
    return _make


class TestProcessImage:

    def test_photo_to_confirmed_batch(self, make_pipeline, ledger, logbook_photo, tabular_log_text):
        pipeline = make_pipeline(text=tabular_log_text)

        session = pipeline.process_image(logbook_photo, source_file="page1.jpg")
        assert len(session) == 4

        session.delete(session.candidates[-1].id)
        batch = session.confirm_all()

        assert len(batch) == 3
        assert [r.date for r in batch.records] == ["2024-01-12", "2024-01-13", "2024-01-14"]
        assert ledger.records == batch.records

    def test_recognizer_gets_binarized_image(self, make_pipeline, logbook_photo):
        pipeline = make_pipeline(text="")
        pipeline.process_image(logbook_photo)

        image = pipeline.recognizer.images[0]
        assert image.mode == "L"
        assert set(image.getdata()) <= {0, 255}

    def test_progress_stages(self, make_pipeline, logbook_photo):
        stages = []
        make_pipeline(text="12.024 09:30").process_image(logbook_photo, progress_callback=stages.append)
        assert stages == list(STAGES)

    def test_freetext_strategy(self, make_pipeline, logbook_photo, freetext_log_text):
        pipeline = make_pipeline(text=freetext_log_text, strategy=ParserStrategy.FREETEXT)
        session = pipeline.process_image(logbook_photo)
        assert [c.driver_name for c in session.candidates][:2] == ["Suresh Kumar", "Mukesh Singh"]

    def test_new_upload_discards_previous_candidates(self, make_pipeline, logbook_photo):
        pipeline = make_pipeline(text="12.024 09:30\n13.024 10:30")
        pipeline.process_image(logbook_photo, source_file="a.jpg")
        first_ids = {c.id for c in pipeline.session.candidates}

        pipeline.process_image(logbook_photo, source_file="b.jpg")

        assert pipeline.session.source_file == "b.jpg"
        assert first_ids.isdisjoint(c.id for c in pipeline.session.candidates)

    def test_from_file(self, make_pipeline, tmp_path):
        path = tmp_path / "logbook.png"
        Image.new("RGB", (8, 8), (255, 255, 255)).save(path)

        session = make_pipeline(text="12.024 09:30").process_image(path)

        assert session.source_file == "logbook.png"

    def test_unsupported_file(self, make_pipeline, tmp_path):
        path = tmp_path / "logbook.pdf"
        path.write_bytes(b"%PDF")
        with pytest.raises(InvalidImage):
            make_pipeline().process_image(path)


class TestFailuresAndCancellation:

    def test_recognition_error_surfaces(self, make_pipeline, logbook_photo, make_candidate):
        pipeline = make_pipeline(error=RecognitionError("engine timeout"))
        pipeline.session.start([make_candidate()], source_file="earlier.jpg")

        with pytest.raises(RecognitionError, match="engine timeout"):
            pipeline.process_image(logbook_photo)

        assert len(pipeline.session) == 0
        assert pipeline.session.source_file is None
        assert len(pipeline.recognizer.images) == 1  # no automatic retry

    def test_failed_upload_discards_previous_batch(self, make_pipeline, logbook_photo, ledger,
                                                   fake_recognizer_cls):
        pipeline = make_pipeline(text="12.024 09:30\n13.024 10:30")
        pipeline.process_image(logbook_photo, source_file="a.jpg")
        assert len(pipeline.session) == 2

        pipeline.recognizer = fake_recognizer_cls(error=RecognitionError("engine timeout"))
        with pytest.raises(RecognitionError):
            pipeline.process_image(logbook_photo, source_file="b.jpg")

        assert len(pipeline.session) == 0
        assert ledger.batches == []

    def test_invalid_upload_discards_previous_batch(self, make_pipeline, logbook_photo, tmp_path):
        pipeline = make_pipeline(text="12.024 09:30")
        pipeline.process_image(logbook_photo, source_file="a.jpg")

        path = tmp_path / "logbook.pdf"
        path.write_bytes(b"%PDF")
        with pytest.raises(InvalidImage):
            pipeline.process_image(path)

        assert len(pipeline.session) == 0

    def test_cancel_before_recognition(self, make_pipeline, logbook_photo, make_candidate):
        pipeline = make_pipeline(text="12.024 09:30")
        pipeline.session.start([make_candidate()], source_file="earlier.jpg")
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ProcessingCancelled):
            pipeline.process_image(logbook_photo, cancel_event=cancel)

        assert pipeline.recognizer.images == []
        assert len(pipeline.session) == 0

    def test_cancel_during_recognition(self, make_pipeline, logbook_photo, make_candidate):
        pipeline = make_pipeline(text="12.024 09:30")
        pipeline.session.start([make_candidate()], source_file="earlier.jpg")
        cancel = threading.Event()

        def on_progress(stage):
            if stage == "recognizing":
                cancel.set()

        with pytest.raises(ProcessingCancelled):
            pipeline.process_image(logbook_photo, cancel_event=cancel, progress_callback=on_progress)

        assert len(pipeline.recognizer.images) == 1  # recognition ran to completion
        assert len(pipeline.session) == 0

    def test_degenerate_image(self, make_pipeline):
        with pytest.raises(InvalidImage):
            make_pipeline().process_image(np.zeros((0, 5, 3), dtype=np.uint8))


class TestFromSettings:

    def test_uses_ledger_roster(self):
        ledger = InMemoryLedger(roster=Roster(drivers=["Anil Rao"], clients=["Ganesh Water"]))
        settings = PipelineSettings(ocr_engine="tesseract")

        pipeline = LogbookPipeline.from_settings(ledger, settings=settings)

        assert isinstance(pipeline.recognizer, TesseractRecognizer)
        assert pipeline.parser.matcher.placeholder(0) == ("Anil Rao", "Ganesh Water")
        assert pipeline.session.ledger is ledger

    def test_falls_back_to_configured_roster(self):
        settings = PipelineSettings(ocr_engine="tesseract", parser_strategy="freetext", drivers=["Kiran Das"])

        pipeline = LogbookPipeline.from_settings(InMemoryLedger(), settings=settings)

        assert pipeline.parser.strategy == ParserStrategy.FREETEXT
        assert pipeline.parser.matcher.roster.drivers == ["Kiran Das"]
