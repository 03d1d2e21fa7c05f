"""Tests for service-account key parsing."""

from __future__ import annotations

import json

import pytest

from indexing import (
    EmptyCredentialError,
    MalformedJSONError,
    MissingFieldError,
    WrongTypeError,
    parse_credential,
)
from indexing.credentials import DEFAULT_TOKEN_URI, REQUIRED_FIELDS


def test_parse_valid_key(key_json: str, key_data: dict[str, str]) -> None:
    credential = parse_credential(f"  {key_json}\n")
    assert credential.client_email == key_data["client_email"]
    assert credential.private_key_id == "key-123"
    assert credential.token_uri == key_data["token_uri"]


def test_token_uri_defaults_when_absent(key_data: dict[str, str]) -> None:
    key_data.pop("token_uri")
    credential = parse_credential(json.dumps(key_data))
    assert credential.token_uri == DEFAULT_TOKEN_URI


@pytest.mark.parametrize("raw", [None, "", "   \n\t"])
def test_blank_input_is_empty(raw: str | None) -> None:
    with pytest.raises(EmptyCredentialError):
        parse_credential(raw)


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '"service_account"'])
def test_malformed_json(raw: str) -> None:
    with pytest.raises(MalformedJSONError):
        parse_credential(raw)


@pytest.mark.parametrize("field", REQUIRED_FIELDS)
def test_missing_field_is_named(key_data: dict[str, str], field: str) -> None:
    key_data.pop(field)
    with pytest.raises(MissingFieldError) as excinfo:
        parse_credential(json.dumps(key_data))
    assert excinfo.value.field == field
    assert field in excinfo.value.message


@pytest.mark.parametrize("field", REQUIRED_FIELDS)
def test_empty_field_counts_as_missing(key_data: dict[str, str], field: str) -> None:
    key_data[field] = ""
    with pytest.raises(MissingFieldError) as excinfo:
        parse_credential(json.dumps(key_data))
    assert excinfo.value.field == field


def test_wrong_type(key_data: dict[str, str]) -> None:
    key_data["type"] = "authorized_user"
    with pytest.raises(WrongTypeError):
        parse_credential(json.dumps(key_data))


def test_credential_errors_share_log_status(key_data: dict[str, str]) -> None:
    key_data["type"] = "authorized_user"
    with pytest.raises(WrongTypeError) as excinfo:
        parse_credential(json.dumps(key_data))
    assert excinfo.value.status == "JSON_ERROR"
    assert excinfo.value.reason == "wrong_type"
