import unittest

from core.clock import SystemClock


class TestSystemClock(unittest.TestCase):

    def test_never_goes_backwards(self):
        readings = iter([100.0, 105.0, 99.0, 104.0, 106.0])
        clock = SystemClock(source=lambda: next(readings))
        self.assertEqual([clock() for _ in range(5)], [100.0, 105.0, 105.0, 105.0, 106.0])

    def test_default_source_is_wall_clock(self):
        clock = SystemClock()
        self.assertGreater(clock(), 0)


if __name__ == "__main__":
    unittest.main()
