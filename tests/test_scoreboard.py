import os
import random
import tempfile
import unittest
from datetime import datetime, timedelta

from guessgame import scoreboard
from guessgame.levels import EASY, HARD, MEDIUM
from guessgame.scoreboard import LeaderboardIOError, ScoreRecord, ScoreStore

BASE_DATE = datetime(2024, 5, 1, 12, 0)


def make_record(name="Ann", level=EASY, attempts=3, time_seconds=10, minutes=0, number=7) -> ScoreRecord:
    return ScoreRecord(name, level, attempts, time_seconds, BASE_DATE + timedelta(minutes=minutes), number)


class TestRanking(unittest.TestCase):
    def test_rank_orders_by_level_attempts_time_then_date(self) -> None:
        hard = make_record("hard", level=HARD, attempts=1)
        slow = make_record("slow", attempts=2, time_seconds=30)
        fast = make_record("fast", attempts=2, time_seconds=5)
        older = make_record("older", attempts=2, time_seconds=5, minutes=-10)
        medium = make_record("medium", level=MEDIUM, attempts=1)
        best = make_record("best", attempts=1, time_seconds=40)

        ranked = scoreboard.rank([hard, slow, fast, older, medium, best])
        self.assertEqual([r.name for r in ranked], ["best", "older", "fast", "slow", "medium", "hard"])

    def test_rank_is_idempotent(self) -> None:
        rng = random.Random(7)
        records = [
            make_record(f"p{i}", rng.choice([EASY, MEDIUM, HARD]), rng.randint(1, 5), rng.randint(0, 9), rng.randint(0, 3))
            for i in range(40)
        ]
        once = scoreboard.rank(records, limit=100)
        self.assertEqual(once, scoreboard.rank(once, limit=100))

    def test_exact_ties_keep_encounter_order(self) -> None:
        first = make_record("first")
        second = make_record("second")
        self.assertEqual(scoreboard.rank([first, second]), [first, second])


class TestScoreStore(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "scores", "guess_highscores.csv")
        scoreboard.set_safe_mode(False)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_add_keeps_best_twenty(self) -> None:
        rng = random.Random(42)
        store = ScoreStore(self.path)
        seen = []
        for i in range(60):
            record = make_record(
                f"p{i}", rng.choice([EASY, MEDIUM, HARD]), rng.randint(1, 12), rng.randint(0, 60), minutes=i
            )
            seen.append(record)
            store.add(record)
            self.assertLessEqual(len(store), scoreboard.MAX_ENTRIES)
            self.assertEqual(list(store.records), scoreboard.rank(seen))

    def test_serialize_writes_header_and_quotes_names(self) -> None:
        store = ScoreStore(self.path)
        store.add(make_record('He said, "hi"', attempts=4, time_seconds=12, number=33))
        lines = store.serialize().splitlines()
        self.assertEqual(lines[0], "Name,Level,Attempts,Time(s),Date,CorrectNumber")
        self.assertEqual(lines[1], '"He said, ""hi""",EASY,4,12,2024-05-01 12:00,33')
        self.assertEqual(store.export_all(), store.serialize())

    def test_round_trip_including_escaped_names(self) -> None:
        store = ScoreStore(self.path)
        for record in (
            make_record("Plain"),
            make_record('He said, "hi"', level=MEDIUM),
            make_record("two\nlines", level=HARD, minutes=5),
        ):
            store.add(record)
        self.assertEqual(ScoreStore.deserialize(store.serialize()), list(store.records))

    def test_malformed_rows_are_dropped(self) -> None:
        text = "\n".join(
            [
                "name,level,attempts,time,date,number",
                "",
                "Bob,NOPE,3,10,badtime,5",
                "Cy,EASY,x,10,2024-05-01 12:00,5",
                "Di,EASY,3,10,2024-05-01 12:00",
                "Ed,HARD,2,9,2024-05-01 12:00,99",
                "ID,foo",
            ]
        )
        records = ScoreStore.deserialize(text)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].name, "Ed")
        self.assertIs(records[0].level, HARD)

    def test_unclosed_quote_only_drops_its_own_line(self) -> None:
        text = "\n".join(
            [
                "Name,Level,Attempts,Time(s),Date,CorrectNumber",
                '"Bob,EASY,3,10,2024-05-01 12:00,5',
                "Ed,HARD,2,9,2024-05-01 12:00,99",
                "Fi,EASY,1,4,2024-05-01 12:00,7",
            ]
        )
        self.assertEqual([r.name for r in ScoreStore.deserialize(text)], ["Ed", "Fi"])

    def test_stray_quote_paired_with_a_later_line_is_skipped(self) -> None:
        text = "\n".join(
            [
                '"Bob,EASY,3,10,2024-05-01 12:00,5',
                "Ed,HARD,2,9,2024-05-01 12:00,99",
                '"Gil, Jr.",MEDIUM,4,20,2024-05-01 12:00,40',
            ]
        )
        records = ScoreStore.deserialize(text)
        self.assertEqual([r.name for r in records], ["Ed", "Gil, Jr."])

    def test_carriage_return_in_name_survives_round_trip(self) -> None:
        store = ScoreStore(self.path)
        store.add(make_record("a\rb"))
        store.add(make_record("c\r\nd", minutes=1))
        self.assertEqual([r.name for r in store], ["a\nb", "c\nd"])
        self.assertEqual(ScoreStore.deserialize(store.serialize()), list(store.records))

    def test_windows_line_endings_are_read(self) -> None:
        text = "Name,Level,Attempts,Time(s),Date,CorrectNumber\r\nAnn,EASY,3,10,2024-05-01 12:00,7\r\n"
        self.assertEqual(ScoreStore.deserialize(text), [make_record("Ann")])

    def test_load_skips_corrupt_row_in_the_middle(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8", newline="") as f:
            f.write("Name,Level,Attempts,Time(s),Date,CorrectNumber\n")
            f.write("Ann,EASY,1,5,2024-05-01 12:00,3\n")
            f.write('"Bob,EASY,3,10,2024-05-01 12:00,5\n')
            f.write("Cy,MEDIUM,2,8,2024-05-01 12:00,40\n")
            f.write("Di,HARD,4,30,2024-05-01 12:00,800\n")
        store = ScoreStore(self.path)
        store.load()
        self.assertEqual([r.name for r in store], ["Ann", "Cy", "Di"])

    def test_load_missing_file_gives_empty_store(self) -> None:
        store = ScoreStore(self.path)
        store.add(make_record())
        store.load()
        self.assertEqual(len(store), 0)

    def test_save_and_load_round_trip(self) -> None:
        store = ScoreStore(self.path)
        store.add(make_record("Ann"))
        store.add(make_record("Bo", level=MEDIUM))
        store.save()

        reloaded = ScoreStore(self.path)
        reloaded.load()
        self.assertEqual(reloaded.records, store.records)

    def test_load_ranks_and_truncates(self) -> None:
        lines = ["Name,Level,Attempts,Time(s),Date,CorrectNumber"]
        for i in range(30, 0, -1):
            lines.append(f"p{i},EASY,{i},5,2024-05-01 12:00,1")
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines))
        store = ScoreStore(self.path)
        store.load()
        self.assertEqual(len(store), 20)
        self.assertEqual([r.attempts for r in store], list(range(1, 21)))

    def test_save_failure_raises_and_keeps_records(self) -> None:
        blocker = os.path.join(self.temp_dir.name, "blocker")
        with open(blocker, "w", encoding="utf-8") as f:
            f.write("not a directory")
        store = ScoreStore(os.path.join(blocker, "scores.csv"))
        store.add(make_record())
        with self.assertRaises(LeaderboardIOError):
            store.save()
        self.assertEqual(len(store), 1)

    def test_load_unreadable_path_raises_and_keeps_records(self) -> None:
        store = ScoreStore(self.temp_dir.name)
        store.add(make_record())
        with self.assertRaises(LeaderboardIOError):
            store.load()
        self.assertEqual(len(store), 1)

    def test_import_merge_is_additive_and_pruned(self) -> None:
        store = ScoreStore(self.path)
        for i in range(15):
            store.add(make_record(f"old{i}", level=MEDIUM, attempts=i + 1))
        incoming = ScoreStore(self.path)
        for i in range(10):
            incoming.add(make_record(f"new{i}", level=EASY, attempts=i + 1))
        union = list(store.records) + list(incoming.records)

        added = store.import_merge(incoming.export_all() + "junk,line\n")
        self.assertEqual(added, 10)
        self.assertEqual(len(store), min(15 + 10, 20))
        self.assertEqual(list(store.records), scoreboard.rank(union))

    def test_import_merge_without_valid_rows(self) -> None:
        store = ScoreStore(self.path)
        store.add(make_record())
        self.assertEqual(store.import_merge("Name,Level\nBob,NOPE,3,10,badtime,5\n"), 0)
        self.assertEqual(len(store), 1)

    def test_export_and_import_files(self) -> None:
        store = ScoreStore(self.path)
        store.add(make_record("Ann"))
        export_path = os.path.join(self.temp_dir.name, "export.csv")
        store.export_file(export_path)

        other = ScoreStore(self.path)
        self.assertEqual(other.import_file(export_path), 1)
        self.assertEqual(other.records, store.records)
        with self.assertRaises(LeaderboardIOError):
            other.import_file(os.path.join(self.temp_dir.name, "missing.csv"))

    def test_safe_mode_skips_disk(self) -> None:
        scoreboard.set_safe_mode(True)
        try:
            store = ScoreStore(self.path)
            store.add(make_record())
            store.save()
            self.assertFalse(os.path.exists(self.path))
        finally:
            scoreboard.set_safe_mode(False)

    def test_create_truncates_to_minute_and_defaults_name(self) -> None:
        record = ScoreRecord.create("", EASY, 2, 5, 9, date=datetime(2024, 5, 1, 12, 30, 45, 123))
        self.assertEqual(record.name, "Player")
        self.assertEqual(record.date, datetime(2024, 5, 1, 12, 30))

    def test_header_like_names_are_saved_as_player(self) -> None:
        store = ScoreStore(self.path)
        for name in ("Name", " id ", "NAME"):
            store.add(ScoreRecord.create(name, EASY, 2, 5, 9, date=BASE_DATE))
        self.assertEqual({r.name for r in store}, {"Player"})
        store.save()

        reloaded = ScoreStore(self.path)
        reloaded.load()
        self.assertEqual(len(reloaded), 3)


if __name__ == "__main__":
    unittest.main()
