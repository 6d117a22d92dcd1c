import unittest
from datetime import time

from timetable_smt.constraints import SlotConstraint, SlotConstraintCompiler
from timetable_smt.converter import TimetableSmtlib2Converter
from timetable_smt.emitter import ShuffleDisjuncts, Smtlib2Emitter
from timetable_smt.encoding import (
    TOOEARLY_LATE,
    DuplicateWhoIdError,
    IdOverflowError,
    WhoIdTable,
    build_who_id_table,
    free_day_who_id,
    pack_who_id,
    unpack_who_id,
)
from timetable_smt.model import GenericTimetable, GlobalConstraints, Lesson, Module
from timetable_smt.smtlib import Assert, DeclareInt, Iff, Or
from timetable_smt.timeslots import SlotGrid, SlotRangeError


def mk_lesson(lesson_id, lesson_type, day, start, end):
    return Lesson(lesson_id, lesson_type, [(time(*start), time(*end))], [day])


class ModelTests(unittest.TestCase):
    def test_days_must_match_times(self):
        with self.assertRaises(ValueError):
            Lesson("1", "Lecture", [(time(10), time(12))], ["Monday", "Tuesday"])

    def test_module_groups_by_first_seen_type(self):
        mod = Module.from_lessons("CS1010", 4, [
            mk_lesson("2", "Tutorial", "Monday", (9, 0), (10, 0)),
            mk_lesson("1", "Lecture", "Monday", (10, 0), (12, 0)),
            mk_lesson("1", "Tutorial", "Tuesday", (9, 0), (10, 0)),
        ])
        self.assertEqual(mod.lesson_types(), ["Tutorial", "Lecture"])
        self.assertEqual([l.lesson_id for l in mod.lessons["Tutorial"]], ["2", "1"])

    def test_workload_bounds(self):
        with self.assertRaises(ValueError):
            GlobalConstraints(min_total_workload=20, max_total_workload=10)


class SlotGridTests(unittest.TestCase):
    def test_time_to_slot(self):
        grid = SlotGrid(8, 22)
        self.assertEqual(grid.slots_per_day, 28)
        self.assertEqual(grid.time_to_slot(time(10, 30), "Monday"), 5)
        self.assertEqual(grid.time_to_slot(time(9, 0), "tuesday"), 28 + 2)
        self.assertEqual(grid.slot_to_day_offset(30), (1, 2))
        self.assertEqual(grid.slot_label(31), "tuesday_0930")

    def test_out_of_window_is_fatal(self):
        grid = SlotGrid(8, 22)
        with self.assertRaises(SlotRangeError):
            grid.time_to_slot(time(7, 30), "Monday")
        with self.assertRaises(SlotRangeError):
            grid.time_to_slot(time(22, 30), "Monday")
        with self.assertRaises(SlotRangeError):
            grid.time_to_slot(time(10, 0), "Sunday")
        self.assertEqual(grid.hhmm_to_offset("2200"), 28)


class EncodingTests(unittest.TestCase):
    def test_packing_two_modules(self):
        lesson = mk_lesson("1", "Lecture", "Monday", (10, 30), (12, 30))
        lesson2 = mk_lesson("1", "Tutorial", "Tuesday", (10, 30), (12, 30))
        gt = GenericTimetable([
            Module.from_lessons("CS3203", 5, [lesson, lesson2]),
            Module.from_lessons("CS3210", 5, [lesson, lesson2]),
        ])
        conv = TimetableSmtlib2Converter(gt, SlotGrid(8, 16))
        self.assertEqual(conv.who_id_table, {
            "CS3203__Lecture__1": 0,
            "CS3203__Tutorial__1": 1024,
            "CS3210__Lecture__1": 1 << 20,
            "CS3210__Tutorial__1": (1 << 20) + 1024,
        })
        self.assertEqual(conv.reverse_who_id_table, {v: k for k, v in conv.who_id_table.items()})
        self.assertEqual(unpack_who_id((1 << 20) + 1024), (1, 1, 0))

    def test_overflow(self):
        with self.assertRaises(IdOverflowError):
            pack_who_id(2048, 0, 0)
        lessons = [mk_lesson(str(i), "Lecture", "Monday", (9, 0), (10, 0)) for i in range(1025)]
        gt = GenericTimetable([Module.from_lessons("BIG", 4, lessons)])
        with self.assertRaises(IdOverflowError):
            build_who_id_table(gt)

    def test_table_is_injective(self):
        table = WhoIdTable()
        table.add("A__Lecture__1", 0)
        table.add("A__Lecture__1", 0)
        with self.assertRaises(DuplicateWhoIdError):
            table.add("B__Lecture__1", 0)
        with self.assertRaises(DuplicateWhoIdError):
            table.add("A__Lecture__1", 5)

    def test_free_day_ids_are_distinct(self):
        ids = [free_day_who_id(d) for d in range(6)]
        self.assertEqual(len(set(ids)), 6)
        self.assertNotIn(TOOEARLY_LATE, ids)
        self.assertTrue(all(i < 0 for i in ids))


class CompilerTests(unittest.TestCase):
    def setUp(self):
        self.grid = SlotGrid(8, 22)
        self.mod = Module.from_lessons("CS2040", 4, [
            mk_lesson("1", "Lecture", "Monday", (10, 0), (12, 0)),
        ])

    def compile(self, constraints):
        gt = GenericTimetable([self.mod], constraints)
        table = build_who_id_table(gt)
        return SlotConstraintCompiler(gt, self.grid, table).compile(), table

    def test_free_day_excludes_last_day(self):
        groups, table = self.compile(GlobalConstraints(free_day_active=True))
        free = groups[-1]
        keys = [a.who_id_key for a in free.alternatives]
        self.assertEqual(len(keys), 5)
        self.assertNotIn("FREE_saturday", keys)
        self.assertEqual(free.alternatives[1].occupied_ranges, ((28, 56),))
        self.assertEqual(table["FREE_monday"], -2)

    def test_free_day_clipped_to_window(self):
        groups, _ = self.compile(GlobalConstraints(
            free_day_active=True, time_window_active=True, start_time="0900", end_time="1800"))
        free, window = groups[-2], groups[-1]
        self.assertEqual(free.alternatives[0].occupied_ranges, ((2, 20),))
        self.assertEqual(free.alternatives[1].occupied_ranges, ((30, 48),))
        (blocker,) = window.alternatives
        self.assertEqual(blocker.who_id, TOOEARLY_LATE)
        self.assertEqual(blocker.occupied_ranges[:2], ((0, 2), (20, 28)))
        self.assertEqual(len(blocker.occupied_ranges), 12)

    def test_free_day_needs_two_days(self):
        self.grid = SlotGrid(8, 22, days=("monday",))
        with self.assertRaisesRegex(ValueError, "al menos dos días"):
            self.compile(GlobalConstraints(free_day_active=True))

    def test_full_day_window_adds_nothing(self):
        groups, table = self.compile(GlobalConstraints(
            time_window_active=True, start_time="0800", end_time="2200"))
        self.assertEqual(len(groups), 1)
        self.assertNotIn("TOO_EARLY_OR_LATE", table)

    def test_optional_module_is_tagged(self):
        self.mod = Module.from_lessons("GE1000", 4, self.mod.lessons["Lecture"], is_compulsory=False)
        groups, _ = self.compile(GlobalConstraints())
        self.assertEqual(groups[0].optional_module, "GE1000")

    def test_lesson_outside_window(self):
        self.mod = Module.from_lessons("EARLY", 4, [mk_lesson("1", "Lecture", "Monday", (7, 0), (9, 0))])
        with self.assertRaises(SlotRangeError):
            self.compile(GlobalConstraints())


class EmitterTests(unittest.TestCase):
    def test_forced_and_disjunction(self):
        mod = Module.from_lessons("CS3203", 5, [
            mk_lesson("1", "Lecture", "Monday", (10, 0), (11, 0)),
            mk_lesson("1", "Tutorial", "Tuesday", (9, 0), (10, 0)),
            mk_lesson("2", "Tutorial", "Tuesday", (10, 0), (11, 0)),
            mk_lesson("3", "Tutorial", "Tuesday", (11, 0), (12, 0)),
        ])
        conv = TimetableSmtlib2Converter(GenericTimetable([mod]), SlotGrid(8, 22))
        conv.generate_smtlib2()
        asserts = [s.term for s in conv.emitter.assertions if isinstance(s, Assert)]
        ors = [t for t in asserts if isinstance(t, Or)]
        iffs = [t for t in asserts if isinstance(t, Iff)]
        self.assertEqual(len(ors), 1)
        self.assertEqual(len(ors[0].args), 3)
        self.assertEqual(len(iffs), 4)
        self.assertIn("(assert (= SL_0 0))", conv.emitter.to_smtlib2())
        self.assertNotIn("(or (= SL_0", conv.emitter.to_smtlib2())

    def test_slot_declared_once_at_first_reference(self):
        a = Module.from_lessons("A", 4, [mk_lesson("1", "Lecture", "Monday", (9, 0), (10, 0))])
        b = Module.from_lessons("B", 4, [mk_lesson("1", "Lecture", "Monday", (9, 30), (10, 30))])
        conv = TimetableSmtlib2Converter(GenericTimetable([a, b]), SlotGrid(8, 22))
        conv.generate_smtlib2()
        decls = [s.name for s in conv.emitter.declarations if isinstance(s, DeclareInt)]
        self.assertEqual(decls, ["SL_0", "h2", "h3", "SL_1048576", "h4"])

    def test_emitter_rejects_empty_group(self):
        with self.assertRaises(ValueError):
            Smtlib2Emitter().add_slot_constraint(SlotConstraint(alternatives=()))

    def test_shuffle_is_seeded(self):
        mod = Module.from_lessons("CS3203", 5, [
            mk_lesson(str(i), "Tutorial", "Tuesday", (9, 0), (10, 0)) for i in range(6)
        ])
        gt = GenericTimetable([mod])
        first = TimetableSmtlib2Converter(gt, SlotGrid(8, 22)).generate_smtlib2(tie_break=ShuffleDisjuncts(7))
        second = TimetableSmtlib2Converter(gt, SlotGrid(8, 22)).generate_smtlib2(randomize=True, seed=7)
        self.assertEqual(first, second)
        self.assertTrue(first.startswith("(set-option :smt.random_seed 7)\n"))
        or_line = next(l for l in first.splitlines() if "(or " in l)
        self.assertEqual(sorted(or_line.count(f"SL_0_1_2_3_4_5 {i})") for i in range(6)), [1] * 6)


class EndToEndTests(unittest.TestCase):
    def test_lecture_clashing_with_tutorial(self):
        # Clase 1030-1130, tutorías 0930-1030 y 1030-1130 (esta última choca)
        lesson = mk_lesson("1", "Lecture", "Monday", (10, 30), (11, 30))
        lesson2 = mk_lesson("1", "Tutorial", "Monday", (9, 30), (10, 30))
        lesson3 = mk_lesson("2", "Tutorial", "Monday", (10, 30), (11, 30))
        gt = GenericTimetable([Module.from_lessons("CS3203", 5, [lesson, lesson2, lesson3], True)])

        conv = TimetableSmtlib2Converter(gt, SlotGrid(8, 22))
        expected = """(declare-fun SL_0 () Int)
(assert-soft (= SL_0 -1) :weight 1 :id defaultval)
(declare-fun h5 () Int)
(assert-soft (= h5 -1) :weight 1 :id defaultval)
(declare-fun h6 () Int)
(assert-soft (= h6 -1) :weight 1 :id defaultval)
(declare-fun SL_1024_1025 () Int)
(assert-soft (= SL_1024_1025 -1) :weight 1 :id defaultval)
(declare-fun h3 () Int)
(assert-soft (= h3 -1) :weight 1 :id defaultval)
(declare-fun h4 () Int)
(assert-soft (= h4 -1) :weight 1 :id defaultval)
(assert (= SL_0 0))
(assert (= (= SL_0 0) (and (= h5 0) (= h6 0))))
(assert (or (= SL_1024_1025 1024) (= SL_1024_1025 1025)))
(assert (= (= SL_1024_1025 1024) (and (= h3 1024) (= h4 1024))))
(assert (= (= SL_1024_1025 1025) (and (= h5 1025) (= h6 1025))))
(check-sat)
(get-model)
(exit)"""
        self.assertEqual(conv.generate_smtlib2(), expected)


if __name__ == "__main__":
    unittest.main()
