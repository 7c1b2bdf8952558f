import pytest
import requests

from compsync.client.clock import DEFAULT_TIMEOUT, ClockCalibrator
from compsync.errors import CalibrationError


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.bad_json:
            raise ValueError('no json')
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []
        self.timeouts = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        self.timeouts.append(timeout)
        if self.error:
            raise self.error
        return self.response


class StepClock:
    def __init__(self, *values):
        self.values = list(values)

    def __call__(self):
        return self.values.pop(0) if len(self.values) > 1 else self.values[0]


def test_offset_uses_half_round_trip():
    clock = StepClock(1000, 1100, 2000)
    calibrator = ClockCalibrator('http://srv/api/time', session=FakeSession(FakeResponse({'serverTime': 5000})), clock=clock)
    offset = calibrator.calibrate()
    # server 5000 + latency 50 - local 1100
    assert offset == 3950
    assert calibrator.adjusted_now() == 2000 + 3950


def test_negative_offset_when_local_clock_ahead():
    clock = StepClock(10_000, 10_020)
    calibrator = ClockCalibrator('http://srv/api/time', session=FakeSession(FakeResponse({'serverTime': 4_000})), clock=clock)
    assert calibrator.calibrate() == 4_000 + 10 - 10_020


@pytest.mark.parametrize('session', [
    FakeSession(error=requests.ConnectionError('refused')),
    FakeSession(FakeResponse({'serverTime': 1}, status_code=500)),
    FakeSession(FakeResponse(bad_json=True)),
    FakeSession(FakeResponse({})),
    FakeSession(FakeResponse({'serverTime': 'soon'})),
    FakeSession(FakeResponse([1, 2, 3])),
])
def test_bad_probe_raises_calibration_error(session):
    calibrator = ClockCalibrator('http://srv/api/time', session=session, clock=StepClock(0, 10))
    with pytest.raises(CalibrationError):
        calibrator.calibrate()


def test_failure_degrades_to_zero_offset():
    calibrator = ClockCalibrator(
        'http://srv/api/time',
        session=FakeSession(error=requests.ConnectionError('refused')),
        clock=StepClock(0, 10, 777),
    )
    calibrator.offset = 1234
    assert calibrator.calibrate_or_zero() == 0
    assert calibrator.offset == 0
    assert calibrator.adjusted_now() == 10


def test_timeout_degrades_to_zero_offset():
    session = FakeSession(error=requests.Timeout('read timed out'))
    calibrator = ClockCalibrator('http://srv/api/time', session=session, clock=StepClock(0, 10))
    assert calibrator.calibrate_or_zero() == 0
    assert session.timeouts == [DEFAULT_TIMEOUT]


def test_round_trip_excludes_body_parsing():
    class ManualClock:
        now = 1000

        def __call__(self):
            return self.now

    clock = ManualClock()

    class SlowResponse(FakeResponse):
        def json(self):
            clock.now += 500
            return super().json()

    class SlowSession:
        def get(self, url, timeout=None):
            clock.now += 100
            return SlowResponse({'serverTime': 5000})

    calibrator = ClockCalibrator('http://srv/api/time', session=SlowSession(), clock=clock)
    # Round trip is the 100ms spent in get, not the 500ms spent parsing
    assert calibrator.calibrate() == 5000 + 50 - 1100


def test_calibrates_against_real_endpoint(client):
    class FlaskSession:
        def get(self, url, timeout=None):
            res = client.get(url)
            return FakeResponse(res.get_json(), res.status_code)

    calibrator = ClockCalibrator('/api/time', session=FlaskSession())
    offset = calibrator.calibrate()
    # Same machine, so the clocks agree to within the request time
    assert abs(offset) < 1000
