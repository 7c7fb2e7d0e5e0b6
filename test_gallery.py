"""
Tests for the gallery engine: parsing, classification, query composition,
reveal window, tag chips and share helpers.

Run: python3 -m pytest test_gallery.py -v
"""

import json
import math
import os
import sys
import sqlite3
import tempfile
import unittest
from contextlib import closing
from unittest.mock import patch

# Ensure project root is on sys.path
_script_dir = os.path.dirname(os.path.abspath(__file__))
if _script_dir not in sys.path:
    sys.path.insert(0, _script_dir)

from config import get_performance_settings
from db import apply_pragmas, get_connection, init_database, rebuild_people_lookup, get_photo_people_count
from gallery.filters import FilterState, MatchSelection, parse_id_list, format_id_list
from gallery.models import PhotoRecord
from gallery.paginator import ResultWindow
from gallery.query import PhotoQuery, compose_query
from gallery.sharing import (
    download_filename, is_mobile, normalize_url, share_link, storage_url,
    WHATSAPP_DESKTOP, WHATSAPP_MOBILE,
)
from gallery.store import SqlitePhotoStore
from gallery.tags import dedupe, photo_tags
from gallery.view_modes import ViewMode, classify_view, banner_text

BASE_URL = 'https://photos.example.com/'


def seed_database(db_path, photos, students=(), staff=(), build_lookup=True):
    """Create the schema and insert photos and people.

    photos: iterable of dicts with storage_path, event_name, student_ids,
    staff_ids, created_at.
    """
    init_database(db_path)
    with get_connection(db_path) as conn:
        conn.executemany(
            "INSERT INTO photos (storage_path, event_name, student_ids, staff_ids, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            [(p['storage_path'], p.get('event_name', ''),
              json.dumps(list(p.get('student_ids', []))),
              json.dumps(list(p.get('staff_ids', []))),
              p['created_at']) for p in photos]
        )
        conn.executemany("INSERT INTO students (id, name) VALUES (?, ?)", list(students))
        conn.executemany("INSERT INTO staff (id, name) VALUES (?, ?)", list(staff))
        conn.commit()
    if build_lookup:
        rebuild_people_lookup(db_path)


def make_temp_db():
    fd, path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    return path


def remove_db(path):
    for suffix in ('', '-wal', '-shm'):
        try:
            os.unlink(path + suffix)
        except FileNotFoundError:
            pass


# ============================================================
# Identifier parsing
# ============================================================

class TestParseIdList(unittest.TestCase):

    def test_drops_malformed_and_collapses_duplicates(self):
        self.assertEqual(parse_id_list("101,abc,,102,101"), frozenset({101, 102}))

    def test_absent_input_is_empty(self):
        self.assertEqual(parse_id_list(None), frozenset())
        self.assertEqual(parse_id_list(''), frozenset())

    def test_whitespace_is_trimmed(self):
        self.assertEqual(parse_id_list(" 7 , 8"), frozenset({7, 8}))

    def test_never_raises_on_junk(self):
        for raw in (',,,', '1.5', '--3', '0x10', 'NaN', 'é', '1,2,'):
            result = parse_id_list(raw)
            self.assertIsInstance(result, frozenset)
            self.assertTrue(all(isinstance(i, int) and i >= 0 for i in result))

    def test_strict_integer_tokens(self):
        self.assertEqual(parse_id_list("1_000,12abc,+7"), frozenset({7}))

    def test_negative_ids_dropped(self):
        self.assertEqual(parse_id_list("-4,4"), frozenset({4}))

    def test_oversized_tokens_dropped(self):
        self.assertEqual(parse_id_list('1' * 5000), frozenset())
        self.assertEqual(parse_id_list(str(2 ** 63)), frozenset())
        self.assertEqual(parse_id_list('99999999999999999999,5'), frozenset({5}))

    def test_integer_range_boundary(self):
        self.assertEqual(parse_id_list(str(2 ** 63 - 1)), frozenset({2 ** 63 - 1}))
        self.assertEqual(parse_id_list('0' * 30 + '7'), frozenset({7}))
        self.assertEqual(parse_id_list('0,-0'), frozenset({0}))

    def test_order_independent(self):
        self.assertEqual(parse_id_list("3,1,2"), parse_id_list("2,3,1"))

    def test_format_round_trip_is_sorted(self):
        self.assertEqual(format_id_list({9, 2, 5}), '2,5,9')


class TestFilterState(unittest.TestCase):

    def test_from_navigation(self):
        state = FilterState.from_navigation({'studentId': '5,6', 'staffId': '9', 'event': 'Purim'})
        self.assertEqual(state.student_ids, frozenset({5, 6}))
        self.assertEqual(state.staff_ids, frozenset({9}))
        self.assertEqual(state.event_name, 'Purim')

    def test_legacy_staff_param(self):
        state = FilterState.from_navigation({'rabbiId': '3'})
        self.assertEqual(state.staff_ids, frozenset({3}))

    def test_value_equality(self):
        a = FilterState.from_navigation({'studentId': '1,2'})
        b = FilterState.from_navigation({'studentId': '2,1,1'})
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))

    def test_to_navigation_omits_empty(self):
        state = FilterState(student_ids=frozenset({2, 1}))
        self.assertEqual(state.to_navigation(), {'studentId': '1,2'})
        self.assertTrue(FilterState().is_empty)

    def test_single_person_navigation_clears_other_kind(self):
        nav = FilterState.single_person_navigation('student', 5, {'staffId': '9', 'event': 'Purim'})
        self.assertEqual(nav, {'studentId': '5', 'event': 'Purim'})
        nav = FilterState.single_person_navigation('staff', 3, {'studentId': '5', 'rabbiId': '1'})
        self.assertEqual(nav, {'staffId': '3'})


class TestMatchSelection(unittest.TestCase):

    def test_limits_and_duplicates(self):
        sel = MatchSelection()
        self.assertTrue(sel.add(1, 'student', 'Avi'))
        self.assertFalse(sel.add(1, 'student', 'Avi'))
        self.assertFalse(sel.can_search)
        self.assertTrue(sel.add(1, 'staff', 'Cohen'))
        self.assertTrue(sel.can_search)
        self.assertTrue(sel.add(2, 'student'))
        self.assertFalse(sel.add(3, 'student'))
        self.assertEqual(sel.to_navigation(), {'studentId': '1,2', 'staffId': '1'})

    def test_remove(self):
        sel = MatchSelection()
        sel.add(1, 'student')
        sel.add(2, 'staff')
        sel.remove(1, 'student')
        self.assertEqual(sel.to_navigation(), {'staffId': '2'})

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            MatchSelection().add(1, 'parent')


# ============================================================
# View classification
# ============================================================

class TestClassifyView(unittest.TestCase):

    def test_boundary_table(self):
        cases = [
            (({5}, set(), ''), ViewMode.PORTFOLIO),
            (({5}, {9}, ''), ViewMode.MATCH),
            (({5}, {9}, 'Purim'), ViewMode.MATCH),
            ((set(), set(), ''), ViewMode.GENERIC),
            (({5, 6}, set(), ''), ViewMode.GENERIC),
            (({5}, set(), 'Purim'), ViewMode.GENERIC),
            ((set(), {9}, ''), ViewMode.GENERIC),
            (({5}, {9, 10}, ''), ViewMode.GENERIC),
            (({5, 6}, {9}, ''), ViewMode.GENERIC),
        ]
        for args, expected in cases:
            with self.subTest(args=args):
                self.assertEqual(classify_view(*args), expected)

    def test_deterministic(self):
        self.assertEqual(classify_view({5}, set(), ''), classify_view({5}, set(), ''))

    def test_filter_state_mode_is_derived(self):
        self.assertEqual(FilterState.from_navigation({'studentId': '42'}).view_mode, ViewMode.PORTFOLIO)

    def test_banner_text(self):
        self.assertEqual(banner_text(ViewMode.PORTFOLIO, 'Moshe Levi'), "Moshe Levi's Portfolio")
        self.assertEqual(banner_text(ViewMode.PORTFOLIO, None), "Your Son's Portfolio")
        self.assertEqual(banner_text(ViewMode.MATCH, 'Moshe', 'Rabbi Cohen', 'Purim'),
                         "Moshe with Rabbi Cohen at Purim")
        self.assertEqual(banner_text(ViewMode.MATCH, 'Moshe', None), "Moshe with Staff Member")
        self.assertEqual(banner_text(ViewMode.GENERIC, event_name='Chanukah'), 'Chanukah')
        self.assertEqual(banner_text(ViewMode.GENERIC), 'All Photos')


# ============================================================
# Query composition
# ============================================================

def _record(path, students=(), staff=(), event='', created='2024-01-01T00:00:00'):
    return PhotoRecord(storage_path=path, event_name=event, student_ids=tuple(students),
                       staff_ids=tuple(staff), created_at=created)


class TestPhotoQueryMatches(unittest.TestCase):

    def test_student_containment(self):
        photo = _record('a.jpg', students=[5, 9])
        self.assertTrue(PhotoQuery(student_ids=frozenset({5})).matches(photo))
        self.assertFalse(PhotoQuery(student_ids=frozenset({5, 12})).matches(photo))

    def test_combined_kinds_are_anded(self):
        photo = _record('a.jpg', students=[5, 9], staff=[3])
        self.assertTrue(PhotoQuery(student_ids=frozenset({5}), staff_ids=frozenset({3})).matches(photo))
        self.assertFalse(PhotoQuery(student_ids=frozenset({5, 9, 12})).matches(photo))
        self.assertFalse(PhotoQuery(student_ids=frozenset({5}), staff_ids=frozenset({4})).matches(photo))

    def test_kinds_not_merged(self):
        # id 3 is only a staff tag; asking for student 3 must not match
        photo = _record('a.jpg', students=[5], staff=[3])
        self.assertFalse(PhotoQuery(student_ids=frozenset({3})).matches(photo))

    def test_duplicate_tags_still_match(self):
        photo = _record('a.jpg', students=[5, 5, 9])
        self.assertTrue(PhotoQuery(student_ids=frozenset({5, 9})).matches(photo))

    def test_event_equality(self):
        photo = _record('a.jpg', event='Purim')
        self.assertTrue(PhotoQuery(event_name='Purim').matches(photo))
        self.assertFalse(PhotoQuery(event_name='purim').matches(photo))

    def test_empty_query_matches_everything(self):
        self.assertTrue(PhotoQuery().matches(_record('a.jpg')))

    def test_compose_is_idempotent(self):
        state = FilterState.from_navigation({'studentId': '1,2', 'staffId': '3'})
        self.assertEqual(compose_query(state), compose_query(state))
        self.assertEqual(compose_query(state).order_direction, 'DESC')

    def test_apply_orders_newest_first(self):
        records = [
            _record('old.jpg', students=[1], created='2024-01-01T00:00:00'),
            _record('new.jpg', students=[1], created='2024-03-01T00:00:00'),
            _record('other.jpg', students=[2], created='2024-05-01T00:00:00'),
        ]
        result = PhotoQuery(student_ids=frozenset({1})).apply(records)
        self.assertEqual([r.storage_path for r in result], ['new.jpg', 'old.jpg'])


class TestPhotoQuerySql(unittest.TestCase):
    """Containment evaluated by SQLite, with and without the lookup table."""

    PHOTOS = [
        {'storage_path': 'e1/a.jpg', 'event_name': 'Purim', 'student_ids': [5, 9], 'staff_ids': [3],
         'created_at': '2024-03-01T10:00:00'},
        {'storage_path': 'e1/b.jpg', 'event_name': 'Purim', 'student_ids': [5, 5], 'staff_ids': [],
         'created_at': '2024-03-02T10:00:00'},
        {'storage_path': 'e2/c.jpg', 'event_name': 'Chanukah', 'student_ids': [9, 12], 'staff_ids': [3, 4],
         'created_at': '2023-12-10T10:00:00'},
    ]

    def setUp(self):
        self.db_path = make_temp_db()

    def tearDown(self):
        remove_db(self.db_path)

    def _paths(self, query, use_lookup):
        store = SqlitePhotoStore(self.db_path)
        store._lookup_available = use_lookup
        return [r.storage_path for r in store.fetch_photos_sync(query)]

    def _check_both(self, query, expected):
        for use_lookup in (True, False):
            with self.subTest(use_lookup=use_lookup):
                self.assertEqual(self._paths(query, use_lookup), expected)

    def test_containment_semantics(self):
        seed_database(self.db_path, self.PHOTOS)
        self._check_both(PhotoQuery(student_ids=frozenset({5})), ['e1/b.jpg', 'e1/a.jpg'])
        self._check_both(PhotoQuery(student_ids=frozenset({5, 12})), [])
        self._check_both(PhotoQuery(student_ids=frozenset({5}), staff_ids=frozenset({3})), ['e1/a.jpg'])
        self._check_both(PhotoQuery(student_ids=frozenset({9}), staff_ids=frozenset({3, 4})), ['e2/c.jpg'])
        self._check_both(PhotoQuery(event_name='Chanukah'), ['e2/c.jpg'])
        self._check_both(PhotoQuery(), ['e1/b.jpg', 'e1/a.jpg', 'e2/c.jpg'])

    def test_sql_agrees_with_in_memory(self):
        seed_database(self.db_path, self.PHOTOS)
        records = [PhotoRecord.from_row(p) for p in self.PHOTOS]
        queries = [
            PhotoQuery(student_ids=frozenset({9})),
            PhotoQuery(staff_ids=frozenset({3})),
            PhotoQuery(student_ids=frozenset({5}), event_name='Purim'),
        ]
        for query in queries:
            with self.subTest(query=query):
                expected = [r.storage_path for r in query.apply(records)]
                self._check_both(query, expected)

    def test_lookup_table_collapses_duplicates(self):
        seed_database(self.db_path, self.PHOTOS)
        # a.jpg: 5,9,3 / b.jpg: 5 / c.jpg: 9,12,3,4
        self.assertEqual(get_photo_people_count(self.db_path), 8)
        rebuild_people_lookup(self.db_path)
        self.assertEqual(get_photo_people_count(self.db_path), 8)

    def test_one_exists_per_requested_id(self):
        where, params, order_by = PhotoQuery(
            student_ids=frozenset({2, 1}), staff_ids=frozenset({7}), event_name='Purim').to_sql()
        self.assertEqual(len(where), 4)
        self.assertEqual(params, ['student', 1, 'student', 2, 'staff', 7, 'Purim'])
        self.assertTrue(order_by.startswith('created_at DESC'))

    def test_out_of_range_ids_match_nothing(self):
        seed_database(self.db_path, self.PHOTOS, students=[(5, 'Moshe Levi')])
        self._check_both(PhotoQuery(student_ids=frozenset({5, 2 ** 70})), [])
        self._check_both(PhotoQuery(staff_ids=frozenset({2 ** 63})), [])
        store = SqlitePhotoStore(self.db_path)
        self.assertIsNone(store.get_person_name_sync('student', 2 ** 70))

    def test_with_names(self):
        seed_database(self.db_path, self.PHOTOS, students=[(5, 'Moshe Levi'), (9, 'Avi Katz')],
                      staff=[(3, 'Yosef Cohen')])
        store = SqlitePhotoStore(self.db_path)
        record = store.fetch_photos_sync(PhotoQuery(staff_ids=frozenset({3}), event_name='Purim'),
                                         with_names=True)[0]
        self.assertEqual(record.student_names, ('Moshe Levi', 'Avi Katz'))
        self.assertEqual(record.staff_names, ('Yosef Cohen',))


class TestPeopleLookupSync(unittest.TestCase):
    """photo_people follows every write to photos."""

    PHOTOS = [
        {'storage_path': 'a.jpg', 'student_ids': [5, 9], 'staff_ids': [3],
         'created_at': '2024-03-01T10:00:00'},
    ]

    def setUp(self):
        self.db_path = make_temp_db()
        seed_database(self.db_path, self.PHOTOS)

    def tearDown(self):
        remove_db(self.db_path)

    def _execute(self, sql, params=()):
        with get_connection(self.db_path) as conn:
            conn.execute(sql, params)
            conn.commit()

    def _lookup_rows(self, path):
        with get_connection(self.db_path, row_factory=False) as conn:
            return sorted(conn.execute(
                "SELECT kind, person_id FROM photo_people WHERE photo_path = ?", (path,)
            ).fetchall())

    def _paths(self, query):
        results = {}
        for use_lookup in (True, False):
            store = SqlitePhotoStore(self.db_path)
            store._lookup_available = use_lookup
            results[use_lookup] = [r.storage_path for r in store.fetch_photos_sync(query)]
        self.assertEqual(results[True], results[False])
        return results[True]

    def test_retag_and_insert_after_rebuild(self):
        self._execute("INSERT INTO photos (storage_path, student_ids, created_at) VALUES (?, ?, ?)",
                      ('b.jpg', '[5]', '2024-03-02T10:00:00'))
        self._execute("UPDATE photos SET student_ids = ? WHERE storage_path = ?", ('[9]', 'a.jpg'))

        self.assertTrue(SqlitePhotoStore(self.db_path).is_lookup_available())
        self.assertEqual(self._paths(PhotoQuery(student_ids=frozenset({5}))), ['b.jpg'])
        self.assertEqual(self._paths(PhotoQuery(student_ids=frozenset({9}))), ['a.jpg'])
        self.assertEqual(self._lookup_rows('a.jpg'), [('staff', 3), ('student', 9)])

    def test_rename_and_delete(self):
        self._execute("UPDATE photos SET storage_path = ? WHERE storage_path = ?", ('moved.jpg', 'a.jpg'))
        self.assertEqual(self._lookup_rows('a.jpg'), [])
        self.assertEqual(self._paths(PhotoQuery(staff_ids=frozenset({3}))), ['moved.jpg'])

        self._execute("DELETE FROM photos WHERE storage_path = ?", ('moved.jpg',))
        self.assertEqual(get_photo_people_count(self.db_path), 0)

    def test_rebuild_drops_stale_rows(self):
        self._execute("INSERT INTO photo_people (photo_path, kind, person_id) VALUES (?, ?, ?)",
                      ('a.jpg', 'student', 77))
        total_rows, processed = rebuild_people_lookup(self.db_path)
        self.assertEqual((total_rows, processed), (3, 1))
        self.assertEqual(self._paths(PhotoQuery(student_ids=frozenset({77}))), [])

    def test_malformed_tag_columns(self):
        self._execute("INSERT INTO photos (storage_path, student_ids, staff_ids, created_at) "
                      "VALUES (?, ?, ?, ?)",
                      ('junk.jpg', 'not json', '{"id": 3}', '2024-03-05T10:00:00'))
        self._execute("INSERT INTO photos (storage_path, student_ids, created_at) VALUES (?, ?, ?)",
                      ('mixed.jpg', '[5, true, "9", 1.5]', '2024-03-06T10:00:00'))
        self.assertEqual(self._lookup_rows('junk.jpg'), [])
        self.assertEqual(self._paths(PhotoQuery(student_ids=frozenset({5}))), ['mixed.jpg', 'a.jpg'])
        self.assertEqual(self._paths(PhotoQuery(student_ids=frozenset({1}))), [])
        self.assertEqual(self._lookup_rows('mixed.jpg'), [('student', 5)])
        rebuild_people_lookup(self.db_path)
        self.assertEqual(self._lookup_rows('mixed.jpg'), [('student', 5)])

    def test_database_without_triggers_is_backfilled(self):
        legacy_path = make_temp_db()
        self.addCleanup(remove_db, legacy_path)
        with closing(sqlite3.connect(legacy_path)) as conn:
            conn.execute("CREATE TABLE photos (storage_path TEXT PRIMARY KEY, event_name TEXT, "
                         "student_ids TEXT, staff_ids TEXT, created_at TEXT)")
            conn.execute("CREATE TABLE photo_people (photo_path TEXT, kind TEXT, person_id INTEGER, "
                         "PRIMARY KEY (photo_path, kind, person_id))")
            conn.execute("INSERT INTO photos VALUES ('old.jpg', '', '[5]', '[]', '2024-01-01T00:00:00')")
            conn.execute("INSERT INTO photo_people VALUES ('old.jpg', 'student', 99)")
            conn.commit()

        store = SqlitePhotoStore(legacy_path)
        self.assertFalse(store.is_lookup_available())
        self.assertEqual([r.storage_path for r in
                          store.fetch_photos_sync(PhotoQuery(student_ids=frozenset({99})))], [])

        init_database(legacy_path)
        store = SqlitePhotoStore(legacy_path)
        self.assertTrue(store.is_lookup_available())
        self.assertEqual([r.storage_path for r in
                          store.fetch_photos_sync(PhotoQuery(student_ids=frozenset({5})))], ['old.jpg'])
        self.assertEqual(store.fetch_photos_sync(PhotoQuery(student_ids=frozenset({99}))), [])

    def test_init_database_closes_its_connection(self):
        opened = []
        real_connect = sqlite3.connect

        def tracking_connect(*args, **kwargs):
            conn = real_connect(*args, **kwargs)
            opened.append(conn)
            return conn

        with patch('db.connection.sqlite3.connect', tracking_connect):
            init_database(self.db_path)
        self.assertTrue(opened)
        for conn in opened:
            with self.assertRaises(sqlite3.ProgrammingError):
                conn.execute("SELECT 1")


class TestConnectionSettings(unittest.TestCase):

    def test_performance_section(self):
        settings = get_performance_settings({'performance': {'mmap_size_mb': 1, 'cache_size_mb': 2}})
        self.assertEqual(settings, {'mmap_size': 1024 * 1024, 'cache_size_kb': 2000})

    def test_performance_defaults(self):
        expected = {'mmap_size': 64 * 1024 * 1024, 'cache_size_kb': 16000}
        self.assertEqual(get_performance_settings({}), expected)
        self.assertEqual(get_performance_settings({'performance': 'fast'}), expected)
        self.assertEqual(get_performance_settings({'performance': {'cache_size_mb': -1,
                                                                   'mmap_size_mb': 'big'}}), expected)

    def test_apply_pragmas(self):
        with closing(sqlite3.connect(':memory:')) as conn:
            apply_pragmas(conn, {'mmap_size': 0, 'cache_size_kb': 2000})
            self.assertEqual(conn.execute("PRAGMA cache_size").fetchone()[0], -2000)
            self.assertEqual(conn.execute("PRAGMA busy_timeout").fetchone()[0], 5000)


# ============================================================
# Reveal window
# ============================================================

class TestResultWindow(unittest.TestCase):

    def test_monotonic_and_clamped(self):
        for total in (0, 1, 49, 50, 51, 73, 100, 101, 250):
            with self.subTest(total=total):
                window = ResultWindow(page_size=50)
                window.replace(list(range(total)))
                previous = window.revealed_count
                self.assertLessEqual(previous, total)
                for _ in range(math.ceil(total / 50)):
                    window.advance()
                    self.assertGreaterEqual(window.revealed_count, previous)
                    self.assertLessEqual(window.revealed_count, total)
                    previous = window.revealed_count
                self.assertEqual(window.revealed_count, total)
                self.assertFalse(window.advance())
                self.assertEqual(window.revealed_count, total)

    def test_replace_resets_to_one_page(self):
        window = ResultWindow(page_size=50)
        window.replace(list(range(200)))
        window.advance()
        window.advance()
        self.assertEqual(window.revealed_count, 150)
        window.begin_loading()
        self.assertTrue(window.loading)
        self.assertEqual(window.visible, [])
        window.replace(list(range(120)))
        self.assertFalse(window.loading)
        self.assertEqual(window.revealed_count, 50)

    def test_advance_is_noop_while_loading(self):
        window = ResultWindow(page_size=10)
        window.replace(list(range(30)))
        window.loading = True
        self.assertFalse(window.advance())
        self.assertEqual(window.revealed_count, 10)

    def test_visible_preserves_order(self):
        window = ResultWindow(page_size=2)
        window.replace(['c', 'a', 'b'])
        self.assertEqual(window.visible, ['c', 'a'])
        window.advance()
        self.assertEqual(window.visible, ['c', 'a', 'b'])

    def test_status_text(self):
        window = ResultWindow(page_size=50)
        window.replace(list(range(73)))
        self.assertEqual(window.status_text, 'Loaded 50 of 73')
        window.advance()
        self.assertEqual(window.status_text, 'End of Gallery')

    def test_rejects_bad_page_size(self):
        with self.assertRaises(ValueError):
            ResultWindow(page_size=0)


# ============================================================
# Tag chips
# ============================================================

class TestTags(unittest.TestCase):

    def test_dedupe_keeps_first_occurrence(self):
        self.assertEqual(dedupe([5, 9, 5, 3, 9]), [5, 9, 3])

    def test_dedupe_idempotent(self):
        once = dedupe([4, 4, 1, 2, 1])
        self.assertEqual(dedupe(once), once)

    def test_chips_by_id(self):
        record = _record('a.jpg', students=[5, 9, 5], staff=[3, 3])
        state = FilterState(student_ids=frozenset({9}))
        chips = photo_tags(record, state)
        self.assertEqual([c.label for c in chips], ['#5', '#9', '#R3'])
        self.assertEqual([c.selected for c in chips], [False, True, False])

    def test_chips_by_name(self):
        record = PhotoRecord(storage_path='a.jpg', student_ids=(5, 9, 5),
                             student_names=('Moshe', 'Avi', 'Moshe'),
                             staff_ids=(3,), staff_names=('',))
        chips = photo_tags(record)
        self.assertEqual([c.label for c in chips], ['Moshe', 'Avi', '#R3'])
        self.assertEqual([c.person_id for c in chips], [5, 9, 3])

    def test_names_without_ids(self):
        record = PhotoRecord(storage_path='a.jpg', student_names=('Moshe', 'Avi', 'Moshe'))
        chips = photo_tags(record)
        self.assertEqual([c.label for c in chips], ['Moshe', 'Avi'])
        self.assertEqual([c.person_id for c in chips], [None, None])


# ============================================================
# Share links and download names
# ============================================================

class TestSharing(unittest.TestCase):

    def test_storage_url_encodes_segments(self):
        url = storage_url('https://photos.example.com', 'Purim 2024/img #1.jpg')
        self.assertEqual(url, 'https://photos.example.com/Purim%202024/img%20%231.jpg')

    def test_normalize_url_is_stable(self):
        url = storage_url(BASE_URL, 'Purim 2024/a b.jpg')
        self.assertEqual(normalize_url(url, BASE_URL), url)
        self.assertEqual(normalize_url(url.replace('%20', ' '), BASE_URL), url)

    def test_mobile_detection(self):
        self.assertTrue(is_mobile('Mozilla/5.0 (iPhone; CPU iPhone OS 17_0)'))
        self.assertTrue(is_mobile('Mozilla/5.0 (Linux; Android 14)'))
        self.assertFalse(is_mobile('Mozilla/5.0 (Windows NT 10.0; Win64; x64)'))
        self.assertFalse(is_mobile(None))

    def test_share_link_endpoints(self):
        url = storage_url(BASE_URL, 'e/a.jpg')
        mobile = share_link(url, 'Purim', 'Shraga', BASE_URL, user_agent='Android')
        desktop = share_link(url, 'Purim', 'Shraga', BASE_URL, user_agent='Windows')
        self.assertTrue(mobile.startswith(WHATSAPP_MOBILE))
        self.assertTrue(desktop.startswith(WHATSAPP_DESKTOP))
        self.assertIn('Purim', desktop)

    def test_share_link_fallback(self):
        link = share_link('https://x/a.jpg', 'Purim', 'Shraga', BASE_URL,
                          message_template='{missing}')
        self.assertTrue(link.startswith('https://wa.me/?text='))

    def test_download_filename(self):
        record = PhotoRecord(
            storage_path='purim/IMG_001.JPG', event_name='Purim 2024',
            student_ids=(1, 2, 3, 4), student_names=('Moshe Levi', 'Avi Katz', 'Moshe Stern', 'Dovid Gold'),
            staff_ids=(7,), staff_names=('Yosef Cohen',),
        )
        self.assertEqual(download_filename(record, max_people=3),
                         'Purim 2024 - Moshe - Avi - Dovid.jpg')
        self.assertEqual(download_filename(record),
                         'Purim 2024 - Moshe - Avi - Dovid - R Yosef.jpg')

    def test_download_filename_fallback(self):
        record = PhotoRecord(storage_path='e/IMG_9.jpg')
        self.assertEqual(download_filename(record), 'IMG_9.jpg')


class TestPhotoRecord(unittest.TestCase):

    def test_empty_path_rejected(self):
        with self.assertRaises(ValueError):
            PhotoRecord(storage_path='')

    def test_from_row_tolerates_bad_json(self):
        record = PhotoRecord.from_row({'storage_path': 'a.jpg', 'student_ids': 'not json',
                                       'staff_ids': '[1, "x", 2]'})
        self.assertEqual(record.student_ids, ())
        self.assertEqual(record.staff_ids, (1, 2))
        self.assertFalse(record.has_names)


if __name__ == '__main__':
    unittest.main()
