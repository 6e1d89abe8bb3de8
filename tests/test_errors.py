"""Tests for movico.errors — the exception hierarchy."""

import pytest

from movico.errors import (
    ConfigurationError,
    EngineError,
    HTTPError,
    MethodNotAllowed,
    MovicoError,
    NotFound,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("x"),
            EngineError("x"),
            HTTPError(status=500),
            NotFound(),
            ValidationError(),
        ],
    )
    def test_all_are_movico_errors(self, error: Exception) -> None:
        assert isinstance(error, MovicoError)

    def test_http_subclasses(self) -> None:
        assert isinstance(NotFound(), HTTPError)
        assert isinstance(MethodNotAllowed(frozenset({"GET"})), HTTPError)
        assert isinstance(ValidationError(), HTTPError)


class TestHTTPError:
    def test_str_with_detail(self) -> None:
        assert str(HTTPError(status=418, detail="teapot")) == "418: teapot"

    def test_str_without_detail(self) -> None:
        assert str(HTTPError(status=503)) == "503"

    def test_not_found_defaults(self) -> None:
        error = NotFound()
        assert error.status == 404
        assert error.detail == "Not Found"

    def test_method_not_allowed_allow_header(self) -> None:
        error = MethodNotAllowed(frozenset({"POST", "GET"}))
        assert error.status == 405
        assert error.headers == (("Allow", "GET, POST"),)
        assert "GET, POST" in error.detail

    def test_validation_error_is_422(self) -> None:
        error = ValidationError("name is required")
        assert error.status == 422
        assert error.detail == "name is required"

    def test_can_be_raised(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            raise NotFound("gone")
        assert exc_info.value.status == 404
