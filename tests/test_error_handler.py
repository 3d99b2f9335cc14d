import logging

from palworks.error_handler import ErrorHandler


def test_handle_exception_returns_payload(caplog):
    eh = ErrorHandler()
    with caplog.at_level(logging.ERROR):
        out = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert out["error"] == "internal_error"
    assert "interner Fehler" in out["message"]
    assert "boom" in out["metadata"]["error"]
    assert out["metadata"]["context"] == {"k": "v"}
    assert caplog.records[0].exc_info is not None
