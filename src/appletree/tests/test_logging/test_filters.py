import logging

from appletree.core.logging.filters import (
    RedactFilter,
    RequestIdFilter,
    get_request_id,
    reset_request_id,
    set_request_id,
)


def make_record():
    # name, level, pathname, lineno, msg, args, exc_info
    return logging.LogRecord("appletree", logging.INFO, __file__, 1, "school %s", (7,), None)


def test_request_id_filter_defaults_to_dash():
    rec = make_record()
    token = set_request_id(None)
    try:
        assert RequestIdFilter().filter(rec) is True
        assert rec.request_id == "-"
    finally:
        reset_request_id(token)


def test_request_id_filter_uses_contextvar():
    rec = make_record()
    token = set_request_id("abc-123")
    try:
        RequestIdFilter().filter(rec)
        assert rec.request_id == "abc-123"
    finally:
        reset_request_id(token)


def test_request_id_filter_respects_record_extra():
    rec = make_record()
    rec.request_id = "explicit"
    token = set_request_id("context-id")
    try:
        RequestIdFilter().filter(rec)
        assert rec.request_id == "explicit"
    finally:
        reset_request_id(token)


def test_reset_restores_previous_request_id():
    outer = set_request_id("outer")
    inner = set_request_id("inner")
    assert get_request_id() == "inner"

    reset_request_id(inner)
    assert get_request_id() == "outer"
    reset_request_id(outer)


def test_redact_filter_masks_sensitive_extras_only():
    rec = make_record()
    rec.password = "hunter2"
    rec.Authorization = "Bearer xyz"
    rec.school_id = 7

    assert RedactFilter().filter(rec) is True
    assert rec.password == RedactFilter.MASK
    assert rec.Authorization == RedactFilter.MASK
    assert rec.school_id == 7
