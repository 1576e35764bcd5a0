from loginus_id.exceptions import (
    APIError,
    InvitationError,
    InvitationLinkError,
    LoginusError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ShareCancelledError,
    ShareError,
    ValidationError,
    display_message,
)


def test_loginus_error_str_without_context() -> None:
    error = LoginusError("Something failed")

    assert str(error) == "Something failed"


def test_loginus_error_str_with_context() -> None:
    error = LoginusError("Failed", user_id="123", attempt=3)

    assert "Failed" in str(error)
    assert "user_id='123'" in str(error)
    assert "attempt=3" in str(error)


def test_not_found_error_has_code_404() -> None:
    error = NotFoundError("Resource not found")

    assert error.code == 404


def test_rate_limit_error_has_code_429() -> None:
    error = RateLimitError()

    assert error.code == 429


def test_validation_error_keeps_field() -> None:
    error = ValidationError("Email is required", field="email")

    assert error.field == "email"
    assert error.message == "Email is required"


def test_share_cancelled_is_a_share_error() -> None:
    assert issubclass(ShareCancelledError, ShareError)


def test_invitation_link_error_is_an_invitation_error() -> None:
    assert issubclass(InvitationLinkError, InvitationError)


def test_display_message_prefers_backend_detail() -> None:
    error = APIError("Team not found", code=404, detail="Team not found")

    assert display_message(error, "fallback") == "Team not found"


def test_display_message_falls_back_without_detail() -> None:
    assert display_message(APIError("Request failed", code=500), "fallback") == "fallback"
    assert display_message(NetworkError("Network error while calling /x"), "fallback") == (
        "fallback"
    )
