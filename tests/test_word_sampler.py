from __future__ import annotations

import unittest

from chorus.core.errors import ConfigurationError, EmptyThemeError, InternalError, ValidationError
from chorus.core.pool_store import load_pool_data, parse_lexicon, parse_word_pool
from chorus.core.user_stream import UserStream
from chorus.core.word_sampler import build_slot_buckets, distinct_cluster_count, sample_words, select_candidates

SEED_HEX = "a7" * 32


def _small_theme():
    pool = parse_word_pool(
        {
            "version": "t1",
            "themes": {
                "night": {
                    "name": "Night",
                    "slots": {
                        "subject": {"words": ["owl", "bat", "moth"]},
                        "action": {"words": ["glide", "swoop", "owl"]},
                        "mood": {"words": ["hush"]},
                    },
                }
            },
        }
    )
    lexicon = parse_lexicon(
        {
            "version": "t1",
            "mappings": {
                "owl": {"slot": "subject", "cluster": "flyer"},
                "bat": {"slot": "subject", "cluster": "flyer"},
                "moth": {"slot": "subject", "cluster": "insect"},
                "glide": {"slot": "action", "cluster": "flight"},
                "swoop": {"slot": "action", "cluster": "flight"},
                "hush": {"slot": "mood", "cluster": "quiet"},
            },
        }
    )
    return pool.themes["night"], lexicon


class BucketTests(unittest.TestCase):
    def test_buckets_follow_sorted_slots_and_document_order(self) -> None:
        theme, lexicon = _small_theme()
        buckets = build_slot_buckets(theme, lexicon)
        self.assertEqual(list(buckets), ["action", "mood", "subject"])
        # "owl" is listed under action first, so the subject copy is dropped.
        self.assertEqual([r.word for r in buckets["action"]], ["glide", "swoop", "owl"])
        self.assertEqual([r.word for r in buckets["subject"]], ["bat", "moth"])
        self.assertEqual(distinct_cluster_count(buckets), 4)

    def test_missing_lexicon_words_are_skipped_with_warning(self) -> None:
        theme, _ = _small_theme()
        lexicon = parse_lexicon(
            {
                "version": "t1",
                "mappings": {
                    "glide": {"slot": "action", "cluster": "flight"},
                    "hush": {"slot": "mood", "cluster": "quiet"},
                },
            }
        )
        with self.assertLogs("chorus.word_sampler", level="WARNING") as logs:
            buckets = build_slot_buckets(theme, lexicon)
        self.assertEqual(list(buckets), ["action", "mood"])
        self.assertTrue(any("moth" in line for line in logs.output))


class SelectionTests(unittest.TestCase):
    def test_exhaustion_returns_distinct_cluster_capacity(self) -> None:
        theme, lexicon = _small_theme()
        records = select_candidates(theme, lexicon, UserStream(SEED_HEX, "u1"), 10)
        self.assertEqual(len(records), 4)
        self.assertEqual(len({r.cluster for r in records}), 4)
        self.assertEqual(len({r.word for r in records}), 4)

    def test_round_robin_covers_slots_in_sorted_order(self) -> None:
        theme, lexicon = _small_theme()
        for user in ("a", "b", "c", "d"):
            records = select_candidates(theme, lexicon, UserStream(SEED_HEX, user), 3)
            self.assertEqual([r.slot for r in records[:2]], ["action", "mood"])

    def test_debug_trace_records_every_pick(self) -> None:
        theme, lexicon = _small_theme()
        with self.assertLogs("chorus.word_sampler", level="DEBUG") as logs:
            records = select_candidates(theme, lexicon, UserStream(SEED_HEX, "traced"), 10)
        picks = [line for line in logs.output if "picked #" in line]
        self.assertEqual(len(picks), len(records))
        for line, record in zip(picks, records):
            self.assertIn(f"slot={record.slot} word={record.word} cluster={record.cluster} pending=", line)
        self.assertTrue(any("candidate pool theme=night slots=action,mood,subject" in line for line in logs.output))

    def test_count_one_returns_single_word(self) -> None:
        theme, lexicon = _small_theme()
        self.assertEqual(len(sample_words(theme, lexicon, UserStream(SEED_HEX, "solo"), 1)), 1)

    def test_invalid_count(self) -> None:
        theme, lexicon = _small_theme()
        for count in (0, 101, True):
            with self.subTest(count=count):
                with self.assertRaises(ValidationError):
                    select_candidates(theme, lexicon, UserStream(SEED_HEX, "u"), count)

    def test_empty_theme_raises(self) -> None:
        theme, _ = _small_theme()
        empty_lexicon = parse_lexicon({"version": "t1", "mappings": {}})
        with self.assertLogs("chorus.word_sampler", level="WARNING"):
            with self.assertRaises(EmptyThemeError) as ctx:
                select_candidates(theme, empty_lexicon, UserStream(SEED_HEX, "u"), 3)
        self.assertIsInstance(ctx.exception, ConfigurationError)
        self.assertIsInstance(ctx.exception, InternalError)

    def test_packaged_themes_fill_twelve_with_unique_clusters(self) -> None:
        data = load_pool_data()
        for key in data.pool.theme_keys:
            theme = data.pool.themes[key]
            records = select_candidates(theme, data.lexicon, UserStream(SEED_HEX, f"user-{key}"), 12)
            self.assertEqual(len(records), 12)
            self.assertEqual(len({r.cluster for r in records}), 12)
            self.assertEqual(
                [r.slot for r in records[:5]],
                ["action", "modifier", "mood", "setting", "subject"],
            )
            for record in records:
                self.assertIn(record.word, theme.slots[record.slot].words)


if __name__ == "__main__":
    unittest.main()
