"""Tests for the exception hierarchy and the logger setup."""
import json
import logging

from pagepilot.core.exceptions import (
    MissingIdentifierError,
    ProjectError,
    StoreError,
    SubjectNotFoundError,
    exception_factory,
)
from pagepilot.core.logger import LoggerConfig, configure


class TestProjectError:
    def test_user_message_prefers_hint(self):
        exc = SubjectNotFoundError("Component x not found", hint="I couldn't find that component.")
        assert exc.user_message == "I couldn't find that component."
        assert exc.http_status == 404
        assert exc.code == "SUBJECT_NOT_FOUND"

    def test_cause_only_serialised_on_request(self):
        exc = StoreError("RecordStore.apply_write failed", cause=RuntimeError("password=secret"))
        assert "cause" not in exc.to_dict()
        assert exc.to_dict(include_cause=True)["cause"] == "password=secret"

    def test_missing_identifier_details(self):
        exc = MissingIdentifierError("client_id")
        assert str(exc) == "client_id is required"
        assert exc.details == {"identifier": "client_id"}

    def test_exception_factory(self):
        QuotaError = exception_factory("QuotaError", code="QUOTA_ERROR", http_status=429)
        exc = QuotaError("Too many edits")
        assert isinstance(exc, ProjectError)
        assert exc.to_dict() == {"message": "Too many edits", "code": "QUOTA_ERROR", "http_status": 429}


class TestLoggerSetup:
    def test_json_file_handler(self, tmp_path):
        config = configure(
            LoggerConfig(level="DEBUG", log_dir=str(tmp_path), root_name="pagepilot_logtest", console=False)
        )
        logger = logging.getLogger("pagepilot_logtest.handlers")
        logger.info("RecordHandler: updated component %s", "c1", extra={"client_id": "6"})
        for handler in logging.getLogger(config.root_name).handlers:
            handler.flush()

        line = (tmp_path / "pagepilot.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "RecordHandler: updated component c1"
        assert record["logger"] == "pagepilot_logtest.handlers"
        assert record["extra"] == {"client_id": "6"}

        for handler in logging.getLogger(config.root_name).handlers:
            handler.close()
        logging.getLogger(config.root_name).handlers.clear()

    def test_reconfigure_replaces_handlers(self):
        configure(LoggerConfig(root_name="pagepilot_logtest2"))
        configure(LoggerConfig(root_name="pagepilot_logtest2"))
        assert len(logging.getLogger("pagepilot_logtest2").handlers) == 1
        logging.getLogger("pagepilot_logtest2").handlers.clear()
