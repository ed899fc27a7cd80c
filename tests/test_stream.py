"""Tests for snoostream/stream.py (the SnooStream facade)."""

from __future__ import annotations

import re
from datetime import timedelta

import pytest

from snoostream import ConfigurationError, RedditClient, SnooStream
from snoostream.sources.base import ItemKind

from conftest import T0, ScriptedSource, make_item


class TestValidation:
    """Everything here fails before any fetch is issued (and without a loop)."""

    @pytest.mark.parametrize("subreddit", ["", "a", None, 42])
    def test_bad_subreddit(self, subreddit):
        source = ScriptedSource()
        with pytest.raises(ConfigurationError):
            SnooStream(source).comment_stream(subreddit)
        with pytest.raises(ConfigurationError):
            SnooStream(source).submission_stream(subreddit)
        assert source.calls == []

    @pytest.mark.parametrize("rate", [0, -5, "fast", True, timedelta(0)])
    def test_bad_rate(self, rate):
        source = ScriptedSource()
        with pytest.raises(ConfigurationError):
            SnooStream(source).comment_stream("ab", rate=rate)
        assert source.calls == []

    @pytest.mark.parametrize("pattern", ["(", re.compile(b"abc")])
    def test_bad_pattern(self, pattern):
        source = ScriptedSource()
        with pytest.raises(ConfigurationError):
            SnooStream(source).comment_stream("python", pattern=pattern)
        assert source.calls == []

    @pytest.mark.parametrize("drift", [-1, "1", None])
    def test_bad_drift(self, drift):
        with pytest.raises(ConfigurationError):
            SnooStream(ScriptedSource(), drift=drift)

    def test_bad_source(self):
        with pytest.raises(ConfigurationError):
            SnooStream(object())

    def test_options_mapping_builds_reddit_client(self):
        stream = SnooStream({"user_agent": "test-agent/1.0"})
        assert isinstance(stream.source, RedditClient)
        assert stream.source.user_agent == "test-agent/1.0"

    @pytest.mark.asyncio
    async def test_two_char_subreddit_opens(self, run_ticks):
        source = ScriptedSource()
        stream = SnooStream(source).comment_stream("ab")
        await run_ticks(stream, 1)
        assert source.calls[0][:2] == ("get_new_comments", "ab")


@pytest.mark.asyncio
class TestCommentStream:
    async def test_end_to_end_scenario(self, fixed_clock, run_ticks):
        old = make_item("1", created_utc=T0 - 5, text="old")
        new = make_item("2", created_utc=T0 + 1, text="new match abc")
        source = ScriptedSource([], [old, new], [old, new])

        stream = SnooStream(source).comment_stream(rate=1, pattern=re.compile("abc"))
        matched, data = [], []
        stream.on("comment", lambda item, m: matched.append((item.id, m.group(0))))
        stream.on("data", data.append)

        await run_ticks(stream, 3)

        assert matched == [("2", "abc")]
        assert [[i.id for i in batch] for batch in data] == [[], ["2"], []]

    async def test_no_replay_of_history(self, fixed_clock, run_ticks):
        history = [make_item(f"h{i}", created_utc=T0 - i) for i in range(1, 6)]
        fresh = [make_item(f"n{i}", created_utc=T0 + i) for i in range(1, 6)]
        source = ScriptedSource(history + fresh)

        stream = SnooStream(source).comment_stream(rate=1)
        got = []
        stream.on("comment", lambda item, m: got.append(item.id))
        await run_ticks(stream, 1)

        assert got == [f"n{i}" for i in range(1, 6)]

    async def test_duplicates_delivered_once(self, fixed_clock, run_ticks):
        posts = [make_item(str(i), created_utc=T0, text=str(i)) for i in range(5)]
        source = ScriptedSource(posts, posts, posts + [make_item("5", created_utc=T0)])

        stream = SnooStream(source).comment_stream(rate=1)
        got = []
        stream.on("comment", lambda item, m: got.append(item.id))
        await run_ticks(stream, 3)

        assert got == ["0", "1", "2", "3", "4", "5"]

    async def test_reappearing_after_gap_is_new(self, fixed_clock, run_ticks):
        a = make_item("a", created_utc=T0)
        source = ScriptedSource([a], [make_item("other", created_utc=T0)], [a])

        stream = SnooStream(source).comment_stream(rate=1)
        got = []
        stream.on("comment", lambda item, m: got.append(item.id))
        await run_ticks(stream, 3)

        assert got == ["a", "other", "a"]

    async def test_drift_is_accounted_for(self, fixed_clock, run_ticks):
        drift = 3
        edge = make_item("edge", created_utc=T0 - drift)
        too_old = make_item("too_old", created_utc=T0 - drift - 1)
        source = ScriptedSource([edge, too_old])

        stream = SnooStream(source, drift=drift).comment_stream(rate=1)
        got = []
        stream.on("comment", lambda item, m: got.append(item.id))
        await run_ticks(stream, 1)

        assert got == ["edge"]

    async def test_only_matching_items_emitted(self, fixed_clock, run_ticks):
        hit = make_item("hit", created_utc=T0, text="asdf asdf sadf abc asdf")
        miss = make_item("miss", created_utc=T0, text="qwqwe asdf ewqiopadf")
        no_text = make_item("none", created_utc=T0, text=None)
        source = ScriptedSource([hit, miss, no_text])

        stream = SnooStream(source).comment_stream(rate=1, pattern="abc")
        got, data = [], []
        stream.on("comment", lambda item, m: got.append((item.id, m.span())))
        stream.on("data", lambda batch: data.extend(i.id for i in batch))
        await run_ticks(stream, 1)

        assert got == [("hit", (15, 18))]
        assert data == ["hit", "miss", "none"]

    async def test_fetch_error_leaves_state_untouched(self, fixed_clock, run_ticks):
        a = make_item("a", created_utc=T0)
        b = make_item("b", created_utc=T0)
        source = ScriptedSource([a], RuntimeError("reddit down"), [a, b])

        stream = SnooStream(source).comment_stream(rate=1)
        got, errors = [], []
        stream.on("comment", lambda item, m: got.append(item.id))
        stream.on("error", errors.append)
        await run_ticks(stream, 2)

        assert [str(e) for e in errors] == ["reddit down"]
        assert got == ["a", "b"]

    async def test_fetch_options_passed_through(self, run_ticks):
        source = ScriptedSource()
        stream = SnooStream(source).comment_stream("python", rate=timedelta(milliseconds=5), limit=100)
        await run_ticks(stream, 1)
        assert source.calls[0] == ("get_new_comments", "python", {"limit": 100})

    async def test_default_subreddit_is_all(self, run_ticks):
        source = ScriptedSource()
        await run_ticks(SnooStream(source).comment_stream(rate=1), 1)
        assert source.calls[0][1] == "all"


@pytest.mark.asyncio
class TestSubmissionStream:
    async def test_uses_get_new_and_selftext(self, fixed_clock, run_ticks):
        sub = make_item("s1", created_utc=T0 + 1, text="show hn abc", kind=ItemKind.SUBMISSION)
        other = make_item("s2", created_utc=T0 + 1, text="nothing", kind=ItemKind.SUBMISSION)
        source = ScriptedSource([sub, other], [sub, other])

        stream = SnooStream(source).submission_stream("python", rate=1, pattern=r"abc")
        got = []
        stream.on("submission", lambda item, m: got.append(item.id))
        with pytest.raises(ValueError):
            stream.on("comment", lambda *a: None)
        await run_ticks(stream, 2)

        assert got == ["s1"]
        assert {op for op, _, _ in source.calls} == {"get_new"}

    async def test_streams_have_independent_sessions(self, fixed_clock, run_ticks):
        a = make_item("a", created_utc=T0)
        snoo = SnooStream(ScriptedSource([a], [a]))
        first = snoo.comment_stream(rate=1)
        got_first = []
        first.on("comment", lambda item, m: got_first.append(item.id))
        await run_ticks(first, 2)

        second_source = ScriptedSource([a])
        second = SnooStream(second_source).comment_stream(rate=1)
        got_second = []
        second.on("comment", lambda item, m: got_second.append(item.id))
        await run_ticks(second, 1)

        assert got_first == ["a"]
        assert got_second == ["a"]
