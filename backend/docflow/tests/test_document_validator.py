"""
Tests for DocumentValidator.
"""

import pytest

from docflow.documents.validator import DocumentValidator
from docflow.ingestion.jobs.exceptions import AccessDeniedError, InvalidRequestError


@pytest.fixture
def validator(db_session):
    return DocumentValidator(db_session)


class TestResolveDocuments:
    """Tests for DocumentValidator.resolve."""

    def test_returns_documents_in_request_order(self, validator, make_user, make_document):
        owner = make_user()
        first = make_document(owner, title="First")
        second = make_document(owner, title="Second")

        documents = validator.resolve([second.id, first.id, second.id], owner.id)

        assert [doc.id for doc in documents] == [second.id, first.id]

    def test_empty_request_rejected(self, validator, make_user):
        with pytest.raises(InvalidRequestError) as exc_info:
            validator.resolve([], make_user().id)

        assert exc_info.value.message == "At least one document is required"

    def test_missing_document_rejected(self, validator, make_user, make_document):
        owner = make_user()
        document = make_document(owner)

        with pytest.raises(InvalidRequestError) as exc_info:
            validator.resolve([document.id, 987654], owner.id)

        assert exc_info.value.message == "Some documents not found"

    def test_foreign_document_denied(self, validator, make_user, make_document):
        """One foreign document fails the whole request."""
        owner = make_user()
        stranger = make_user()
        mine = make_document(owner)
        theirs = make_document(stranger)

        with pytest.raises(AccessDeniedError) as exc_info:
            validator.resolve([mine.id, theirs.id], owner.id)

        assert exc_info.value.message == "Access denied to some documents"

    def test_fetch_skips_missing(self, validator, make_user, make_document):
        document = make_document(make_user())

        assert [doc.id for doc in validator.fetch([987654, document.id])] == [document.id]
        assert validator.fetch([]) == []
