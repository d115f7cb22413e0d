import unittest
from datetime import datetime, timedelta, timezone

from remoteapply.util.time import (
    format_elapsed,
    normalize_dt,
    parse_rfc3339,
    to_rfc3339,
)


class TestUtilTime(unittest.TestCase):
    def test_normalize_dt_rejects_naive(self) -> None:
        naive = datetime(2025, 1, 1, 12, 0, 0)
        with self.assertRaises(ValueError):
            normalize_dt(naive)

    def test_parse_rfc3339_z(self) -> None:
        dt = parse_rfc3339("2025-01-01T12:34:56Z")
        self.assertEqual(dt.tzinfo, timezone.utc)
        self.assertEqual(dt, datetime(2025, 1, 1, 12, 34, 56, tzinfo=timezone.utc))

    def test_parse_rfc3339_offset_converts_to_utc(self) -> None:
        dt = parse_rfc3339("2025-01-01T12:34:56+09:00")
        self.assertEqual(dt.tzinfo, timezone.utc)
        # 12:34:56 JST == 03:34:56 UTC
        self.assertEqual(dt, datetime(2025, 1, 1, 3, 34, 56, tzinfo=timezone.utc))

    def test_to_rfc3339_outputs_z(self) -> None:
        dt = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        self.assertTrue(to_rfc3339(dt).endswith("Z"))

    def test_format_elapsed_truncates(self) -> None:
        self.assertEqual(format_elapsed(timedelta(seconds=29)), "0s")
        self.assertEqual(format_elapsed(timedelta(seconds=95)), "1m30s")
        self.assertEqual(format_elapsed(timedelta(seconds=3725)), "1h2m0s")
        self.assertEqual(format_elapsed(timedelta(seconds=95), truncate_sec=0), "1m35s")


if __name__ == "__main__":
    unittest.main()
