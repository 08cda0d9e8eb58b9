import pytest

from src.models.envelope import ExpectedFixture, ResponseEnvelope
from src.models.outcome import ErrorKind, Shape
from src.validation.errors import check_error_response, describe_error, error_field


def envelope(status, body):
    return ResponseEnvelope(status=status, headers={}, body=body)


class TestErrorField:
    """Tests for error_field()."""

    @pytest.mark.unit
    def test_reads_nested_error_object(self):
        body = {"error": {"code": "IR_16", "message": "bad"}}
        assert error_field(body, "code") == "IR_16"

    @pytest.mark.unit
    def test_falls_back_to_top_level(self):
        assert error_field({"error_code": "x", "code": "HE_03"}, "code") == "HE_03"

    @pytest.mark.unit
    def test_non_dict_body_has_no_fields(self):
        assert error_field("Internal Server Error", "code") is None

    @pytest.mark.unit
    def test_describe_error_quotes_code_and_message(self):
        text = describe_error(envelope(400, {"error": {"code": "IR_06", "message": "Missing amount"}}))
        assert "HTTP 400" in text
        assert "'IR_06'" in text
        assert "'Missing amount'" in text


class TestCheckErrorResponse:
    """Tests for check_error_response()."""

    @pytest.mark.unit
    def test_matching_status_and_error_object_passes(self):
        fixture = ExpectedFixture(status=400, body={"error": {"type": "invalid_request", "code": "IR_16"}})
        env = envelope(400, {"error": {"type": "invalid_request", "code": "IR_16", "message": "..."}})

        outcome = check_error_response(env, fixture)

        assert outcome.ok is True
        assert outcome.shape is Shape.EXPECTED_FAILURE

    @pytest.mark.unit
    def test_status_differs_is_unexpected_status(self):
        outcome = check_error_response(envelope(500, {}), ExpectedFixture(status=400))
        assert outcome.ok is False
        assert outcome.error is ErrorKind.UNEXPECTED_STATUS
        assert "expected HTTP 400" in outcome.detail

    @pytest.mark.unit
    def test_success_fixture_against_error_response_fails(self):
        outcome = check_error_response(envelope(422, {"error": {"code": "IR_01"}}), ExpectedFixture())
        assert outcome.ok is False
        assert outcome.error is ErrorKind.UNEXPECTED_STATUS

    @pytest.mark.unit
    def test_error_object_mismatch_is_reported(self):
        fixture = ExpectedFixture(status=400, body={"error": {"code": "IR_16"}})
        outcome = check_error_response(envelope(400, {"error": {"code": "IR_14"}}), fixture)
        assert outcome.ok is False
        assert outcome.error is ErrorKind.VALIDATION_MISMATCH
        assert outcome.mismatches[0].key == "code"

    @pytest.mark.unit
    def test_response_without_error_object_fails_when_fixture_has_one(self):
        fixture = ExpectedFixture(status=400, body={"error": {"code": "IR_16"}})
        outcome = check_error_response(envelope(400, {"message": "nope"}), fixture)
        assert outcome.ok is False
        assert outcome.error is ErrorKind.VALIDATION_MISMATCH

    @pytest.mark.unit
    def test_fixture_without_error_object_only_checks_status(self):
        outcome = check_error_response(envelope(404, {"error": {"code": "HE_02"}}), ExpectedFixture(status=404))
        assert outcome.ok is True
