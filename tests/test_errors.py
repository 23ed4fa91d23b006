import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from warmerator import (AccessDeniedError, CredentialsError, SourceConnectionError, StaleLockError,
                        TableNotFoundError, error_message)
from warmerator.errors import classify_source_error


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "Scan")


class TestClassifySourceError:

    def test_connection(self):
        error = classify_source_error(EndpointConnectionError(endpoint_url="https://dynamodb.local"))
        assert isinstance(error, SourceConnectionError)

    def test_credentials(self):
        assert isinstance(classify_source_error(NoCredentialsError()), CredentialsError)
        assert isinstance(classify_source_error(_client_error("UnrecognizedClientException")), CredentialsError)

    def test_missing_table(self):
        assert isinstance(classify_source_error(_client_error("ResourceNotFoundException")), TableNotFoundError)

    def test_access_denied(self):
        assert isinstance(classify_source_error(_client_error("AccessDeniedException")), AccessDeniedError)

    def test_unknown_error_is_unchanged(self):
        error = _client_error("ProvisionedThroughputExceededException")
        assert classify_source_error(error) is error


class TestErrorMessage:

    def test_taxonomy_messages(self):
        assert error_message(SourceConnectionError()).startswith("Unable to connect to AWS DynamoDB")
        assert error_message(CredentialsError()).startswith("AWS credentials are missing or invalid")
        assert error_message(TableNotFoundError()).startswith("The specified DynamoDB table does not exist")
        assert error_message(AccessDeniedError()).startswith("Access denied to DynamoDB")

    def test_generic_fallback(self):
        generic = "An error occurred while fetching designs. Please try again later."
        assert error_message(StaleLockError("lock")) == generic
        assert error_message(RuntimeError("boom")) == generic


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
