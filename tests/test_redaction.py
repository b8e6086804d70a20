"""Tests for dotted-path redaction and include-list filtering."""

import copy

from sentry_router.constants import MASK_TOKEN
from sentry_router.services.redaction import filter_paths, get_path, redact

SNAPSHOT = {
    "GET": {"q": "shoes"},
    "SERVER": {
        "HTTP_AUTHORIZATION": "Bearer abc",
        "HTTP_HOST": "example.com",
        "EMPTY": None,
    },
    "SESSION": {"user": {"token": "t0k3n", "name": "alice"}},
}


# ── redact ───────────────────────────────────────────────────────


class TestRedact:
    def test_masks_existing_path(self):
        result = redact(SNAPSHOT, ["SERVER.HTTP_AUTHORIZATION"])
        assert result["SERVER"]["HTTP_AUTHORIZATION"] == MASK_TOKEN

    def test_other_paths_untouched(self):
        result = redact(SNAPSHOT, ["SERVER.HTTP_AUTHORIZATION"])
        assert result["SERVER"]["HTTP_HOST"] == "example.com"
        assert result["GET"] == SNAPSHOT["GET"]
        assert result["SESSION"] == SNAPSHOT["SESSION"]

    def test_nested_path(self):
        result = redact(SNAPSHOT, ["SESSION.user.token"])
        assert result["SESSION"]["user"] == {"token": MASK_TOKEN, "name": "alice"}

    def test_missing_paths_are_noops(self):
        result = redact(SNAPSHOT, ["SERVER.PHP_AUTH_PW", "COOKIE.sid", "GET.q.deeper"])
        assert result == SNAPSHOT

    def test_none_values_are_not_masked(self):
        result = redact(SNAPSHOT, ["SERVER.EMPTY"])
        assert result["SERVER"]["EMPTY"] is None

    def test_whole_group_can_be_masked(self):
        result = redact(SNAPSHOT, ["GET"])
        assert result["GET"] == MASK_TOKEN

    def test_does_not_mutate_input(self):
        original = copy.deepcopy(SNAPSHOT)
        redact(SNAPSHOT, ["SERVER.HTTP_AUTHORIZATION", "SESSION.user.token"])
        assert SNAPSHOT == original

    def test_idempotent(self):
        paths = ["SERVER.HTTP_AUTHORIZATION", "SESSION.user.token", "NOPE.x"]
        once = redact(SNAPSHOT, paths)
        assert redact(once, paths) == once

    def test_empty_rules(self):
        assert redact(SNAPSHOT, []) == SNAPSHOT


# ── filter_paths ─────────────────────────────────────────────────


class TestFilterPaths:
    def test_whole_group(self):
        result = filter_paths(SNAPSHOT, ["GET"])
        assert result == {"GET": {"q": "shoes"}}

    def test_single_key(self):
        result = filter_paths(SNAPSHOT, ["SERVER.HTTP_HOST"])
        assert result == {"SERVER": {"HTTP_HOST": "example.com"}}

    def test_exclusion(self):
        result = filter_paths(SNAPSHOT, ["SERVER", "!SERVER.HTTP_AUTHORIZATION"])
        assert "HTTP_AUTHORIZATION" not in result["SERVER"]
        assert result["SERVER"]["HTTP_HOST"] == "example.com"

    def test_missing_groups_ignored(self):
        assert filter_paths(SNAPSHOT, ["POST", "FILES.upload"]) == {}

    def test_result_is_a_copy(self):
        result = filter_paths(SNAPSHOT, ["SESSION"])
        result["SESSION"]["user"]["name"] = "mallory"
        assert SNAPSHOT["SESSION"]["user"]["name"] == "alice"


class TestGetPath:
    def test_resolves(self):
        assert get_path(SNAPSHOT, ["SESSION", "user", "name"]) == "alice"

    def test_default_when_missing(self):
        assert get_path(SNAPSHOT, ["SESSION", "nope"], "fallback") == "fallback"

    def test_stops_at_scalars(self):
        assert get_path(SNAPSHOT, ["GET", "q", "x"], None) is None
