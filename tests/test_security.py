"""Tests for access and CSRF tokens."""

import uuid
from datetime import timedelta

import pytest

from memberhub.exceptions import InvalidInputException, OrganizationContextError, UserContextError
from memberhub.utils.org_context import (
    clear_all_context,
    get_current_user_id,
    get_organization_id,
    set_current_user_id,
    set_organization_id,
)
from memberhub.utils.security import (
    create_access_token,
    create_csrf_token,
    decode_access_token,
    hash_password,
    validate_csrf_token,
    verify_password,
)


class TestAccessToken:
    def test_round_trip_carries_organization(self):
        user_id = uuid.uuid4()
        organization_id = uuid.uuid4()

        payload = decode_access_token(create_access_token(user_id, organization_id))

        assert payload["sub"] == str(user_id)
        assert payload["organization_id"] == str(organization_id)

    def test_csrf_token_is_not_an_access_token(self):
        assert decode_access_token(create_csrf_token(uuid.uuid4())) is None


class TestCsrfToken:
    def test_valid_token_passes(self):
        user_id = uuid.uuid4()
        validate_csrf_token(create_csrf_token(user_id), user_id)

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    def test_missing_or_malformed_token(self, token):
        with pytest.raises(InvalidInputException) as exc_info:
            validate_csrf_token(token, uuid.uuid4())
        assert exc_info.value.kind == "InvalidCsrfToken"

    def test_token_of_other_user(self):
        with pytest.raises(InvalidInputException):
            validate_csrf_token(create_csrf_token(uuid.uuid4()), uuid.uuid4())

    def test_expired_token(self):
        user_id = uuid.uuid4()
        token = create_csrf_token(user_id, expires_delta=timedelta(seconds=-10))
        with pytest.raises(InvalidInputException):
            validate_csrf_token(token, user_id)

    def test_access_token_is_not_a_csrf_token(self):
        user_id = uuid.uuid4()
        with pytest.raises(InvalidInputException):
            validate_csrf_token(create_access_token(user_id, uuid.uuid4()), user_id)


class TestPasswordHashing:
    def test_hash_verifies_only_the_original_password(self):
        hashed = hash_password("correct horse")

        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed) is True
        assert verify_password("wrong horse", hashed) is False


class TestRequestContext:
    def test_unset_context_raises(self):
        clear_all_context()

        with pytest.raises(OrganizationContextError):
            get_organization_id()
        with pytest.raises(UserContextError):
            get_current_user_id()

    def test_set_context_is_returned_until_cleared(self):
        organization_id = uuid.uuid4()
        user_id = uuid.uuid4()
        set_organization_id(organization_id)
        set_current_user_id(user_id)

        assert get_organization_id() == organization_id
        assert get_current_user_id() == user_id

        clear_all_context()
        with pytest.raises(OrganizationContextError):
            get_organization_id()
