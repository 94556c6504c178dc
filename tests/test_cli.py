import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from dashboard.historical import cli


class TestCLI(unittest.TestCase):
    def _run(self, *argv):
        buf = io.StringIO()
        with mock.patch("sys.argv", ["cli", *argv]), redirect_stdout(buf):
            try:
                cli.main()
                code = 0
            except SystemExit as e:
                code = e.code
        return code, buf.getvalue()

    def _write(self, payload) -> str:
        tmp = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False)
        json.dump(payload, tmp)
        tmp.close()
        self.addCleanup(Path(tmp.name).unlink)
        return tmp.name

    def test_usage(self):
        code, out = self._run()
        self.assertEqual(code, 2)
        self.assertIn("Usage", out)

    def test_quickstats_payload(self):
        path = self._write({"data": [{"load_time": "2000-01-01 00:00:00", "Value": "1"}]})
        code, out = self._run(path, "10Y", "load_time")
        self.assertEqual(code, 0)
        body = json.loads(out)
        self.assertEqual(body["timeframe"], "10Y")
        self.assertEqual(body["labels"], [])

    def test_no_data(self):
        path = self._write([])
        code, out = self._run(path)
        self.assertEqual(code, 1)
        self.assertIn("no data available", out)


if __name__ == "__main__":
    unittest.main()
