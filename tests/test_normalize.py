import unittest
from datetime import datetime

from dashboard.historical.normalize import (
    MalformedRecordError, month_index, normalize, parse_value,
)


class TestNormalizePeriod(unittest.TestCase):
    def test_every_abbreviation_is_first_of_month(self):
        labels = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]
        for i, label in enumerate(labels, start=1):
            rec = normalize({"year": 2017, "periodLabel": label, "value": "1"})
            self.assertEqual(rec.timestamp, datetime(2017, i, 1, 0, 0, 0))

    def test_case_insensitive_and_long_names(self):
        self.assertEqual(normalize({"year": 2017, "periodLabel": "June"}).timestamp, datetime(2017, 6, 1))
        self.assertEqual(normalize({"year": 2017, "periodLabel": "jun"}).timestamp, datetime(2017, 6, 1))

    def test_unknown_label_defaults_to_january(self):
        rec = normalize({"year": 2019, "periodLabel": "xyz", "value": "3"})
        self.assertEqual(rec.timestamp, datetime(2019, 1, 1))
        for label in ("", None, "YEAR", "xyz"):
            self.assertEqual(month_index(label), 1)
        self.assertEqual(normalize({"year": 2019}).timestamp, datetime(2019, 1, 1))

    def test_quickstats_field_names(self):
        rec = normalize({"year": "2020", "reference_period_desc": "AUG", "Value": "2.15"})
        self.assertEqual(rec.timestamp, datetime(2020, 8, 1))
        self.assertAlmostEqual(rec.value, 2.15)

    def test_missing_year_is_malformed(self):
        with self.assertRaises(MalformedRecordError):
            normalize({"periodLabel": "JAN", "value": "1"}, "period")

    def test_year_out_of_range_is_malformed(self):
        for year in (0, 10000, "-5"):
            with self.assertRaises(MalformedRecordError):
                normalize({"year": year, "periodLabel": "JAN", "value": "1"}, "period")

    def test_non_object_record_is_malformed(self):
        for raw in (None, 2020, "2020-JAN", ["2020", "JAN"]):
            with self.assertRaises(MalformedRecordError):
                normalize(raw, "period")


class TestNormalizeLoadTime(unittest.TestCase):
    def test_load_timestamp_keeps_time_of_day(self):
        rec = normalize({"loadTimestamp": "2017-06-30 15:04:05", "value": "1.25"})
        self.assertEqual(rec.timestamp, datetime.fromisoformat("2017-06-30T15:04:05"))

    def test_load_time_wins_without_explicit_convention(self):
        rec = normalize({"year": 2010, "periodLabel": "JAN", "load_time": "2012-03-01 00:00:00"})
        self.assertEqual(rec.timestamp, datetime(2012, 3, 1))

    def test_explicit_convention(self):
        raw = {"year": 2010, "periodLabel": "FEB", "load_time": "2012-03-01 00:00:00"}
        self.assertEqual(normalize(raw, "period").timestamp, datetime(2010, 2, 1))
        self.assertEqual(normalize(raw, "load_time").timestamp, datetime(2012, 3, 1))
        with self.assertRaises(MalformedRecordError):
            normalize({"year": 2010}, "load_time")
        with self.assertRaises(ValueError):
            normalize(raw, "weekly")

    def test_bad_timestamp_is_malformed(self):
        with self.assertRaises(MalformedRecordError):
            normalize({"loadTimestamp": "not a date"})


class TestParseValue(unittest.TestCase):
    def test_numeric(self):
        self.assertAlmostEqual(parse_value("1.50"), 1.5)
        self.assertAlmostEqual(parse_value(" 2 "), 2.0)
        self.assertAlmostEqual(parse_value(3), 3.0)
        self.assertEqual(parse_value("0"), 0.0)

    def test_non_numeric_is_absent(self):
        for v in ("N/A", "", None, "abc", " (D)", "1,234", "nan", "inf"):
            self.assertIsNone(parse_value(v), v)
        rec = normalize({"year": 2020, "periodLabel": "FEB", "value": "abc"})
        self.assertIsNone(rec.value)
        self.assertTrue(rec.is_absent)


if __name__ == "__main__":
    unittest.main()
