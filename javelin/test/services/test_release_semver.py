from __future__ import annotations

import itertools

import pytest

from javelin.services.release.semver import BUMP_KINDS, SemVer, bump, parse_version


def test_bump_kinds() -> None:
    v = SemVer(1, 4, 9)
    assert v.bump("major") == SemVer(2, 0, 0)
    assert v.bump("minor") == SemVer(1, 5, 0)
    assert v.bump("patch") == SemVer(1, 4, 10)
    assert bump(v, "minor") == SemVer(1, 5, 0)


def test_bump_is_strictly_increasing_and_resets_lower_parts() -> None:
    for major, minor, patch in itertools.product((0, 1, 7), (0, 3), (0, 9)):
        current = SemVer(major, minor, patch)
        for kind in BUMP_KINDS:
            nxt = current.bump(kind)
            assert nxt > current
            if kind == "major":
                assert (nxt.minor, nxt.patch) == (0, 0)
            if kind == "minor":
                assert nxt.major == current.major and nxt.patch == 0
            if kind == "patch":
                assert (nxt.major, nxt.minor) == (current.major, current.minor)


def test_to_tag_and_str() -> None:
    v = SemVer(0, 3, 3)
    assert str(v) == "0.3.3"
    assert v.to_tag() == "v0.3.3"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0.3.2", SemVer(0, 3, 2)),
        ("v1.2.3", SemVer(1, 2, 3)),
        (" 10.0.1 ", SemVer(10, 0, 1)),
    ],
)
def test_parse_version(text: str, expected: SemVer) -> None:
    assert parse_version(text) == expected


@pytest.mark.parametrize("text", ["1.2", "1.2.3-beta.1", "01.2.3", "x.y.z", ""])
def test_parse_version_rejects(text: str) -> None:
    assert parse_version(text) is None
