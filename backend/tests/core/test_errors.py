"""Error Hierarchy — tests for codes, HTTP mapping, and bus payload reconstruction.

Tests cover:
    - Every wiki error surfaces as HTTP 500
    - DuplicateNameError keeps a distinct type and code
    - error_from_payload rebuilds typed errors without re-prefixing messages
    - Unknown codes come back as plain WikiError with the code preserved
"""

from wiki.core.errors import (
    DatabaseError, DuplicateNameError, ErrorCategory, InvalidRequestError,
    ListenerBindError, NotFoundError, RenderError, ServiceUnavailable,
    StorageInitError, WikiError, error_from_payload,
)


def test_all_errors_map_to_http_500():
    errors = [
        DuplicateNameError("Home"),
        NotFoundError(3),
        RenderError("boom"),
        StorageInitError("no db"),
        ServiceUnavailable("timeout"),
        DatabaseError("x", "query"),
        ListenerBindError("127.0.0.1", 8080),
        InvalidRequestError("bad id", "id"),
    ]
    assert {e.http_status for e in errors} == {500}


def test_duplicate_name_is_distinguishable():
    err = DuplicateNameError("Home")
    assert err.code == "DUPLICATE_NAME"
    assert err.category is ErrorCategory.CONFLICT
    assert err.name == "Home"
    assert isinstance(err, WikiError)
    assert not isinstance(err, NotFoundError)


def test_duplicate_name_survives_payload():
    rebuilt = error_from_payload(DuplicateNameError("Home").to_payload())
    assert isinstance(rebuilt, DuplicateNameError)
    assert rebuilt.name == "Home"
    assert rebuilt.message == "Page 'Home' already exists"


def test_not_found_survives_payload_with_id():
    rebuilt = error_from_payload(NotFoundError(42).to_payload())
    assert isinstance(rebuilt, NotFoundError)
    assert rebuilt.page_id == 42


def test_service_unavailable_message_not_reprefixed():
    original = ServiceUnavailable("no reply")
    rebuilt = error_from_payload(original.to_payload())
    assert isinstance(rebuilt, ServiceUnavailable)
    assert rebuilt.message == original.message
    assert str(rebuilt) == original.message


def test_database_error_survives_payload():
    original = DatabaseError("Connection or operational error", "execute")
    rebuilt = error_from_payload(original.to_payload())
    assert isinstance(rebuilt, DatabaseError)
    assert rebuilt.message == original.message


def test_unknown_code_becomes_plain_wiki_error():
    rebuilt = error_from_payload({
        "code": "UNKNOWN_ACTION", "message": "nope",
        "category": "internal", "severity": "error",
    })
    assert type(rebuilt) is WikiError
    assert rebuilt.code == "UNKNOWN_ACTION"
    assert rebuilt.message == "nope"


def test_garbage_category_falls_back_to_internal():
    rebuilt = error_from_payload({"code": "X", "category": "??", "severity": "??"})
    assert rebuilt.category is ErrorCategory.INTERNAL
