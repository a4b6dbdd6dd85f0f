from warp_transcribe.backend.player.display import RefreshThrottle


class _Clock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now


class _Scheduler:
    def __init__(self):
        self.calls = []

    def __call__(self, delay, callback):
        self.calls.append((delay, callback))

    def fire(self):
        calls, self.calls = self.calls, []
        for _delay, callback in calls:
            callback()


def test_refreshes_at_most_once_per_interval():
    clock = _Clock()
    shown = []
    throttle = RefreshThrottle(shown.append, 0.1, clock=clock, schedule=_Scheduler())
    counter = iter(range(100))

    fired = [throttle.request(lambda: next(counter)) for _ in range(5)]
    clock.now = 0.05
    fired.append(throttle.request(lambda: next(counter)))
    clock.now = 0.11
    fired.append(throttle.request(lambda: next(counter)))

    assert fired == [True, False, False, False, False, False, True]
    assert shown == [0, 1]


def test_held_back_requests_do_not_compute_the_value():
    clock = _Clock()
    calls = []
    throttle = RefreshThrottle(lambda value: None, 1.0, clock=clock, schedule=_Scheduler())

    throttle.request(lambda: calls.append("a"))
    throttle.request(lambda: calls.append("b"))

    assert calls == ["a"]
    assert throttle.pending


def test_trailing_refresh_shows_the_latest_state():
    clock = _Clock()
    scheduler = _Scheduler()
    state = {"position": 10}
    shown = []
    throttle = RefreshThrottle(shown.append, 0.1, clock=clock, schedule=scheduler)

    throttle.request(lambda: state["position"])
    clock.now = 0.03
    state["position"] = 11
    throttle.request(lambda: state["position"])
    clock.now = 0.06
    state["position"] = 12
    throttle.request(lambda: state["position"])

    assert shown == [10]
    assert len(scheduler.calls) == 1
    assert round(scheduler.calls[0][0], 2) == 0.07

    clock.now = 5.0
    scheduler.fire()

    assert shown == [10, 12]
    assert not throttle.pending


def test_flush_and_cancel_drop_the_trailing_refresh():
    clock = _Clock(10.0)
    scheduler = _Scheduler()
    shown = []
    throttle = RefreshThrottle(shown.append, 0.1, clock=clock, schedule=scheduler)

    throttle.request(lambda: "first")
    throttle.request(lambda: "held")
    throttle.flush(lambda: "final")
    scheduler.fire()
    clock.now = 10.05

    assert throttle.request(lambda: "late") is False
    throttle.cancel()
    scheduler.fire()

    assert shown == ["first", "final"]


def test_zero_interval_never_throttles():
    shown = []
    scheduler = _Scheduler()
    throttle = RefreshThrottle(shown.append, 0.0, clock=_Clock(), schedule=scheduler)

    for value in range(3):
        throttle.request(lambda value=value: value)

    assert shown == [0, 1, 2]
    assert scheduler.calls == []
