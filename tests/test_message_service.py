import pytest

from draftbot.services.message_service import (
    build_draft_message,
    derive_first_name_from_username,
    sanitize_first_name,
)


class TestBuildDraftMessage:
    def test_inserts_name_before_separator(self):
        assert (
            build_draft_message("Hey! Thanks for following.", "John")
            == "Hey John! Thanks for following."
        )

    def test_only_first_separator_used(self):
        assert build_draft_message("Hi! Great! Bye!", "Ana") == "Hi Ana! Great! Bye!"

    def test_missing_separator_prefixes_name(self):
        assert build_draft_message("Thanks for following.", "John") == "John! Thanks for following."

    def test_no_name_returns_trimmed_template(self):
        assert build_draft_message("  Hey! Thanks.  ", "") == "Hey! Thanks."

    def test_custom_separator(self):
        assert build_draft_message("Hello, nice to meet you", "Sam", ",") == "Hello Sam, nice to meet you"

    def test_empty_template(self):
        assert build_draft_message("", "John") == ""


@pytest.mark.parametrize(
    "username, expected",
    [
        ("john_doe", "John"),
        ("maria.k", "Maria"),
        ("JESSICA", "Jessica"),
        ("al_x.y", "Al"),
        ("x", ""),
        ("_hidden", "Hidden"),
        ("", ""),
    ],
)
def test_derive_first_name_from_username(username, expected):
    assert derive_first_name_from_username(username) == expected


def test_derive_truncates_long_usernames_without_separator():
    assert derive_first_name_from_username("a" * 25) == "A" + "a" * 19


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Jane 🌸 | Photographer", "Jane"),
        ("john smith", "John"),
        ("✨Luna✨", "Luna"),
        ("(Mike)", "Mike"),
        ("123", ""),
        ("", ""),
    ],
)
def test_sanitize_first_name(raw, expected):
    assert sanitize_first_name(raw) == expected
