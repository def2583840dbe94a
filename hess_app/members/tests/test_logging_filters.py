import logging

from django.test import SimpleTestCase

from config.logging_filters import HealthEndpointFilter


def _record(msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="gunicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class HealthEndpointFilterTests(SimpleTestCase):
    def test_successful_probes_are_dropped(self) -> None:
        filt = HealthEndpointFilter()

        self.assertFalse(filt.filter(_record('"GET /healthz HTTP/1.1" 200 15')))
        self.assertFalse(filt.filter(_record('10.0.0.1 - [17/Oct/2026:10:00:00 +0000] "GET /readyz HTTP/1.1" 200 34 2ms')))

    def test_failed_probes_and_other_paths_are_kept(self) -> None:
        filt = HealthEndpointFilter()

        self.assertTrue(filt.filter(_record('"GET /readyz HTTP/1.1" 503 40')))
        self.assertTrue(filt.filter(_record('"POST /registration-updates/4/approve/ HTTP/1.1" 200 120')))
