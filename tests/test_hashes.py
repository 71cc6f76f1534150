from __future__ import annotations

import string

import pytest

from kausality.utils.hashes import (
    append_bounded,
    contains_hash,
    hash_username,
    intersect,
    join_hashes,
    parse_hashes,
    user_identifier,
)


@pytest.mark.parametrize(
    "username, uid, expected",
    [
        ("user@example.com", "12345", "user@example.com"),
        ("", "12345", "12345"),
        ("", "", ""),
        ("system:serviceaccount:kube-system:deployment-controller", "some-uid",
         "system:serviceaccount:kube-system:deployment-controller"),
    ],
)
def test_user_identifier(username, uid, expected):
    assert user_identifier(username, uid) == expected


@pytest.mark.parametrize(
    "identity",
    ["system:serviceaccount:kube-system:deployment-controller", "user@example.com", "system:admin", ""],
)
def test_hash_is_stable_five_char_base36(identity):
    h = hash_username(identity)
    assert len(h) == 5
    assert set(h) <= set(string.digits + string.ascii_lowercase)
    assert h == hash_username(identity)


def test_hash_known_values():
    # first 4 sha256 bytes as uint32, base36, cut to 5 characters
    assert hash_username("user1") == "2s1pj"
    assert hash_username("system:admin") == "afodm"


def test_distinct_identities_get_distinct_hashes():
    assert hash_username("user1") != hash_username("user2")
    assert hash_username("alice") != hash_username("bob")


def test_parse_hashes_drops_blanks():
    assert parse_hashes("") == []
    assert parse_hashes(None) == []
    assert parse_hashes(" a1b2c , ,d3e4f,") == ["a1b2c", "d3e4f"]


def test_join_and_contains():
    assert join_hashes(["a", "b"]) == "a,b"
    assert contains_hash(["a", "b"], "b")
    assert not contains_hash(["a", "b"], "c")


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ([], ["a"], []),
        (["a", "b"], ["c", "d"], []),
        (["a", "b", "c"], ["b", "c", "d"], ["b", "c"]),
        (["c", "a"], ["a", "c"], ["a", "c"]),
    ],
)
def test_intersect_keeps_order_of_second(a, b, expected):
    assert intersect(a, b) == expected


def test_append_bounded_evicts_oldest():
    hashes = ["h1", "h2", "h3", "h4", "h5"]
    assert append_bounded(hashes, "h6", 5) == ["h2", "h3", "h4", "h5", "h6"]
    # input untouched
    assert hashes == ["h1", "h2", "h3", "h4", "h5"]


def test_append_bounded_duplicate_is_noop():
    assert append_bounded(["h1", "h2"], "h1", 5) == ["h1", "h2"]
