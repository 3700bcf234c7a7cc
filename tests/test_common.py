from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from common.errors import InternalAppError, ValidationAppError, ensure_app_error
from common.io import secure_filename
from common.validation import SchemaModel, ValidationError, parse_model, validate_mime


class _Params(SchemaModel):
    name: str


def test_secure_filename_strips_path_tricks():
    assert secure_filename("../../etc/passwd") == "etc_passwd"
    assert secure_filename("") == "upload"
    assert secure_filename("photo (1).JPG") == "photo__1.JPG"


def test_validate_mime_accepts_webp_and_restores_position():
    stream = BytesIO(b"RIFF\x00\x00\x00\x00WEBPVP8 ")
    stream.seek(3)
    validate_mime([FileStorage(stream=stream, filename="a.webp")], {"image/webp"})
    assert stream.tell() == 3


def test_validate_mime_rejects_other_signatures():
    stream = BytesIO(b"%PDF-1.7")
    with pytest.raises(ValidationError):
        validate_mime([FileStorage(stream=stream, filename="a.png")], {"image/png"})


def test_parse_model_reports_details():
    assert parse_model(_Params, {"name": "  x "}).name == "x"
    with pytest.raises(ValidationError) as info:
        parse_model(_Params, {"name": "x", "extra": 1})
    assert info.value.details


def test_ensure_app_error_wraps_plain_exceptions():
    wrapped = ensure_app_error(RuntimeError("boom"), fallback_code="sr.failed")
    assert isinstance(wrapped, InternalAppError)
    assert wrapped.to_dict()["code"] == "sr.failed"
    original = ValidationAppError(message="bad")
    assert ensure_app_error(original, fallback_code="unused") is original
