"""Tests for username/password collection."""
import pytest

from labprep.core.credentials import (
    CONFIRM_PROMPT,
    INVALID_USERNAME_MESSAGE,
    PASSWORD_MISMATCH_MESSAGE,
    PASSWORD_PROMPT,
    USERNAME_PROMPT,
    ScriptedInput,
    collect_password,
    collect_username,
    is_valid_username,
    passwords_match,
)
from labprep.core.errors import CredentialError


class TestUsernameValidation:
    """Usernames must match [a-z][-a-z0-9_]*."""

    @pytest.mark.parametrize("name", ["bob", "bob-1", "a", "dev_ops", "x9-_"])
    def test_accepted(self, name):
        assert is_valid_username(name) is True

    @pytest.mark.parametrize(
        "name",
        ["", "Bob", "1bob", "-bob", "_bob", "bob!", "bo b", "bob\n", "bøb", "bob.smith"],
    )
    def test_rejected(self, name):
        assert is_valid_username(name) is False


class TestPasswordMatch:
    def test_identical_non_empty(self):
        assert passwords_match("secret", "secret") is True

    def test_mismatch(self):
        assert passwords_match("secret", "Secret") is False

    def test_empty_matching_rejected(self):
        assert passwords_match("", "") is False


class TestCollectUsername:
    """Username prompt loop."""

    def test_valid_first_try(self):
        source = ScriptedInput(["bob-1"])

        assert collect_username(source) == "bob-1"
        assert source.prompts == [USERNAME_PROMPT]
        assert source.messages == []

    def test_uppercase_reprompted(self):
        source = ScriptedInput(["Bob", "bob"])

        assert collect_username(source) == "bob"
        assert source.prompts == [USERNAME_PROMPT, USERNAME_PROMPT]
        assert source.messages == [INVALID_USERNAME_MESSAGE]

    def test_never_accepts_invalid_name(self):
        """The loop keeps asking until input runs out."""
        source = ScriptedInput(["Bob", "BOB", "9lives"])

        with pytest.raises(EOFError):
            collect_username(source)

        assert len(source.prompts) == 4
        assert source.messages == [INVALID_USERNAME_MESSAGE] * 3

    def test_bounded_attempts(self):
        source = ScriptedInput(["Bob", "Bob"])

        with pytest.raises(CredentialError):
            collect_username(source, max_attempts=2)


class TestCollectPassword:
    """Password + confirmation loop."""

    def test_matching(self):
        source = ScriptedInput(["secret", "secret"])

        assert collect_password(source) == "secret"
        assert source.prompts == [PASSWORD_PROMPT, CONFIRM_PROMPT]

    def test_mismatch_then_match(self):
        source = ScriptedInput(["secret", "typo", "secret", "secret"])

        assert collect_password(source) == "secret"
        assert source.messages == [PASSWORD_MISMATCH_MESSAGE]

    def test_empty_rejected(self):
        source = ScriptedInput(["", "", "pw", "pw"])

        assert collect_password(source) == "pw"
        assert source.messages == [PASSWORD_MISMATCH_MESSAGE]

    def test_bounded_attempts(self):
        source = ScriptedInput(["a", "b"])

        with pytest.raises(CredentialError):
            collect_password(source, max_attempts=1)


def test_prompt_text():
    assert USERNAME_PROMPT == "Enter a username you want to login as: "
    assert PASSWORD_PROMPT == "Enter a password for that user: "
    assert CONFIRM_PROMPT == "Confirm password: "
