"""
Tests for the validation utility module and upload checks.

Target: 100% coverage on utils/validation.py
"""

import pytest

import core.config as config
from filing.records import FilingType
from filing.uploads import UploadedFile, UploadSet, check_upload
from utils.validation import (
    ValidationError,
    sanitize_filename,
    validate_category,
    validate_content_type,
    validate_identifier,
    validate_upload_size,
    MAX_ID_LENGTH,
)
from core.constants import MAX_FILENAME_LENGTH


class TestSanitizeFilename:
    """Tests for filename sanitization."""

    def test_valid_filename_unchanged(self):
        """Normal filenames should pass through with minimal changes."""
        assert sanitize_filename("figure-1.pdf") == "figure-1.pdf"
        assert sanitize_filename("specimen_v2.png") == "specimen_v2.png"

    def test_removes_dangerous_characters(self):
        """Dangerous characters should be replaced with underscores."""
        assert sanitize_filename("file<>name.pdf") == "file__name.pdf"
        assert sanitize_filename("file|name.png") == "file_name.png"

    def test_removes_leading_dots_and_hyphens(self):
        assert sanitize_filename(".hidden.pdf") == "hidden.pdf"
        assert sanitize_filename("--dangerous.pdf") == "dangerous.pdf"

    def test_path_traversal_blocked(self):
        """Path traversal attempts should raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            sanitize_filename("../../../etc/passwd")
        assert "path traversal" in str(exc_info.value).lower()
        assert exc_info.value.field == "name"

    def test_directory_separator_removed(self):
        result = sanitize_filename("/etc/passwd")
        assert "/" not in result

    def test_empty_filename_rejected(self):
        with pytest.raises(ValidationError):
            sanitize_filename("")

    def test_extension_preserved_on_truncation(self):
        result = sanitize_filename("a" * 300 + ".pdf")
        assert len(result) == MAX_FILENAME_LENGTH
        assert result.endswith(".pdf")


class TestValidateContentType:
    def test_allowed_types_accepted(self):
        assert validate_content_type("application/pdf") == "application/pdf"
        assert validate_content_type("image/png") == "image/png"

    def test_disallowed_type_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_content_type("application/x-msdownload")
        assert exc_info.value.field == "mediaType"

    def test_parameters_stripped_and_case_normalized(self):
        assert validate_content_type("Image/JPEG; charset=binary") == "image/jpeg"

    def test_custom_allowed_set(self):
        assert validate_content_type("text/plain", allowed={"text/plain"}) == "text/plain"


class TestValidateUploadSize:
    def test_within_limit(self):
        assert validate_upload_size(1024, 1) == 1024

    def test_too_large(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_upload_size(2 * 1024 * 1024, 1)
        assert exc_info.value.field == "size"

    def test_negative(self):
        with pytest.raises(ValidationError):
            validate_upload_size(-1, 1)


class TestValidateCategory:
    def test_patent_categories(self):
        assert validate_category("patent", "drawings") == "drawings"

    def test_trademark_categories(self):
        assert validate_category("trademark", "specimens") == "specimens"

    def test_wrong_type_category(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_category("patent", "logo")
        assert "drawings" in exc_info.value.message

    def test_unset_type(self):
        with pytest.raises(ValidationError):
            validate_category("unset", "drawings")


class TestValidateIdentifier:
    def test_valid_ids(self):
        assert validate_identifier("abc-123_X") == "abc-123_X"

    @pytest.mark.parametrize("value", ["", "../etc", "a b", "id;drop"])
    def test_invalid_ids(self, value):
        with pytest.raises(ValidationError):
            validate_identifier(value, "session_id")

    def test_length_limit(self):
        with pytest.raises(ValidationError):
            validate_identifier("a" * (MAX_ID_LENGTH + 1))


class TestUploads:
    def upload(self, **overrides):
        return UploadedFile(**{
            "name": "figure.pdf", "media_type": "application/pdf", "size": 10, "category": "drawings",
            **overrides,
        })

    def test_check_upload_ok(self):
        assert check_upload(FilingType.PATENT, self.upload()) == {}

    def test_check_upload_reports_each_field(self):
        errors = check_upload(FilingType.TRADEMARK, self.upload(media_type="text/html"))
        assert set(errors) == {"category", "mediaType"}

    def test_size_limit_read_from_config(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_UPLOAD_SIZE_MB", 1)
        errors = check_upload(FilingType.PATENT, self.upload(size=2 * 1024 * 1024))
        assert "size" in errors

    def test_upload_set(self):
        uploads = UploadSet()
        first = self.upload(id="a")
        uploads.add(first)
        uploads.add(self.upload(id="b", category="priorArt"))

        assert "a" in uploads
        assert len(uploads) == 2
        assert uploads.by_category("drawings") == [first]
        assert uploads.to_list()[0]["mediaType"] == "application/pdf"

        with pytest.raises(ValueError):
            uploads.add(self.upload(id="a"))

        assert uploads.remove("a") == first
        assert uploads.remove("a") is None
        uploads.clear()
        assert len(uploads) == 0
