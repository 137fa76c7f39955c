import sys
import unittest
from pathlib import Path


# Allow `import permitscan.*` when running from repo root.
APP_ROOT = Path(__file__).resolve().parents[1]
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))


from permitscan.columns import locate_columns  # noqa: E402
from permitscan.context import Layout, Word  # noqa: E402


def _line(y: float, spans: list[tuple[float, float, str]]) -> list[Word]:
    return [Word(text=t, confidence=90.0, choice_count=1, x=x, y=y, width=w, height=12) for x, w, t in spans]


def _table_line(y: float) -> list[Word]:
    # 列间空隙：30 / 70 / 105 / 95，列内词间隙 5
    return _line(
        y,
        [
            (10, 60, "1/05/2018"),
            (100, 80, "077/586/2018"),
            (250, 60, "Dwelling"),
            (315, 80, "alterations"),
            (500, 10, "J"),
            (515, 40, "Smith"),
            (650, 20, "12"),
            (675, 60, "Vine"),
        ],
    )


class TestLocateColumns(unittest.TestCase):
    def setUp(self) -> None:
        self.layout = Layout()

    def test_finds_five_sorted_columns(self) -> None:
        lines = [_table_line(y) for y in (10, 30, 50, 70)]
        columns = locate_columns(lines, self.layout)
        self.assertIsNotNone(columns)
        self.assertEqual([c.x for c in columns], [10, 100, 250, 500, 650])
        xs = [c.x for c in columns]
        self.assertTrue(all(a < b for a, b in zip(xs, xs[1:])))
        self.assertTrue(all(c.count == 4 for c in columns))

    def test_rare_candidates_are_discarded(self) -> None:
        lines = [_table_line(y) for y in (10, 30, 50, 70, 90)]
        lines[0] = lines[0] + _line(10, [(850, 30, "noise")])
        columns = locate_columns(lines, self.layout)
        self.assertIsNotNone(columns)
        self.assertEqual(len(columns), 5)
        self.assertNotIn(850, [c.x for c in columns])

    def test_narrow_gaps_are_found_by_shrinking_threshold(self) -> None:
        lines = [
            _line(y, [(0, 40, "a"), (60, 40, "b"), (120, 40, "c"), (180, 40, "d"), (240, 40, "e")])
            for y in (0, 20, 40)
        ]
        columns = locate_columns(lines, self.layout)
        self.assertIsNotNone(columns)
        self.assertEqual([c.x for c in columns], [0, 60, 120, 180, 240])

    def test_wrong_column_count_is_failure(self) -> None:
        lines = [_line(y, [(0, 40, "a"), (200, 40, "b"), (400, 40, "c")]) for y in (0, 20, 40)]
        self.assertIsNone(locate_columns(lines, self.layout))

    def test_no_lines_is_failure(self) -> None:
        self.assertIsNone(locate_columns([], self.layout))


if __name__ == "__main__":
    unittest.main()
