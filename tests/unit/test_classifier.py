"""Unit tests for the error classifier."""

import pytest

from payment_adapters.classifier import ErrorClassifier, is_retryable_status
from payment_adapters.models import ErrorKind, TransportFault


class FakeInspector:
    """Inspector reading a simplified body shape."""

    def is_approved(self, body):
        return body.get("code") == "000"

    def declared_errors(self, body):
        return body.get("errors", [])

    def credentials_rejected(self, status, body):
        return body is not None and body.get("reason") == "bad_key"


@pytest.fixture
def classifier():
    return ErrorClassifier(FakeInspector())


class TestClassificationOrder:
    """Tests for each classification rule and their precedence."""

    def test_transport_outcome(self, classifier):
        """Test that a transport failure wins over everything else."""
        outcome = TransportFault("reset", timeout=False)

        assert classifier.classify(200, {"code": "000"}, outcome=outcome) == ErrorKind.TRANSPORT_ERROR

    def test_nothing_received(self, classifier):
        assert classifier.classify(None, None) == ErrorKind.TRANSPORT_ERROR

    def test_401_beats_approved_body(self, classifier):
        assert classifier.classify(401, {"code": "000"}) == ErrorKind.AUTHENTICATION_ERROR

    def test_401_with_unparsable_body(self, classifier):
        assert classifier.classify(401, None) == ErrorKind.AUTHENTICATION_ERROR

    def test_credential_rejection_payload(self, classifier):
        assert classifier.classify(200, {"reason": "bad_key"}) == ErrorKind.AUTHENTICATION_ERROR

    @pytest.mark.parametrize("status", [500, 502, 503, 408, 429])
    def test_unparsable_retryable_status(self, classifier, status):
        assert classifier.classify(status, None) == ErrorKind.TRANSPORT_ERROR

    @pytest.mark.parametrize("status", [200, 201, 400, 404])
    def test_unparsable_body(self, classifier, status):
        assert classifier.classify(status, None) == ErrorKind.MALFORMED_RESPONSE

    def test_declared_error_beats_approval(self, classifier):
        """Test that an error payload fails the call even with an approval code on HTTP 200."""
        body = {"code": "000", "errors": [{"type": "HOST"}]}

        assert classifier.classify(200, body) == ErrorKind.PROCESSOR_ERROR

    def test_approved(self, classifier):
        assert classifier.classify(200, {"code": "000"}) == ErrorKind.SUCCESS

    def test_server_error_with_parsed_body(self, classifier):
        assert classifier.classify(500, {"code": "999"}) == ErrorKind.PROCESSOR_ERROR

    @pytest.mark.parametrize("status", [200, 402, 422])
    def test_declined(self, classifier, status):
        assert classifier.classify(status, {"code": "121"}) == ErrorKind.DECLINED


class TestRetryableStatus:
    """Tests for is_retryable_status."""

    @pytest.mark.parametrize("status, expected", [(500, True), (599, True), (408, True), (429, True), (400, False), (None, False)])
    def test_is_retryable_status(self, status, expected):
        assert is_retryable_status(status) is expected
