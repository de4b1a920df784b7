"""Window behaviour, with pyglet's display, image, text and clock calls stubbed."""

import logging

import pytest

from chip8vm.config import load_config
from chip8vm.cpu import Chip8


@pytest.fixture
def window_module():
    try:
        from chip8vm import window
    except Exception as e:  # no GL/X libraries on this machine
        pytest.skip(f"pyglet window backend unavailable: {e}")
    return window


class FakePlayer:
    instances = []

    def __init__(self):
        self.queued = []
        self.calls = []
        FakePlayer.instances.append(self)

    def queue(self, source):
        self.queued.append(source)

    def play(self):
        self.calls.append("play")

    def pause(self):
        self.calls.append("pause")

    def delete(self):
        self.calls.append("delete")


@pytest.fixture
def scheduled(window_module, monkeypatch):
    clock = {"scheduled": [], "unscheduled": []}
    pyglet = window_module.pyglet
    monkeypatch.setattr(pyglet.window.Window, "__init__", lambda self, **kwargs: None)
    monkeypatch.setattr(pyglet.window.Window, "close", lambda self: clock.setdefault("closed", True))
    monkeypatch.setattr(pyglet.image, "ImageData", lambda *args: args)
    monkeypatch.setattr(pyglet.text, "Label", lambda *args, **kwargs: kwargs)
    monkeypatch.setattr(pyglet.clock, "schedule", lambda fn: clock["scheduled"].append(fn))
    monkeypatch.setattr(
        pyglet.clock, "schedule_interval", lambda fn, interval: clock["scheduled"].append(fn)
    )
    monkeypatch.setattr(pyglet.clock, "unschedule", lambda fn: clock["unscheduled"].append(fn))
    monkeypatch.setattr(pyglet.media, "Player", FakePlayer)
    monkeypatch.setattr(window_module.synthesis, "Sine", lambda **kwargs: kwargs)
    FakePlayer.instances = []
    return clock


@pytest.fixture
def win(window_module, scheduled):
    return window_module.Chip8Window(Chip8(), load_config({"pitch_variation": 0}))


@pytest.fixture
def pkg_log():
    logger = logging.getLogger("chip8vm")
    old_level = logger.level
    logger.setLevel(logging.INFO)
    yield logger
    logger.setLevel(old_level)


def test_f1_toggles_trace_once_per_press(window_module, win, pkg_log):
    # EventDispatcher.dispatch_event runs pushed handlers and then the method itself
    dispatch_event = window_module.pyglet.event.EventDispatcher.dispatch_event

    dispatch_event(win, "on_key_press", window_module.key.F1, 0)
    assert pkg_log.level == logging.DEBUG

    dispatch_event(win, "on_key_press", window_module.key.F1, 0)
    assert pkg_log.level == logging.INFO


def test_keypad_keys_reach_machine(window_module, win):
    dispatch_event = window_module.pyglet.event.EventDispatcher.dispatch_event
    dispatch_event(win, "on_key_press", window_module.key.W, 0)
    assert win.vm.keypad.is_down(0x5)
    dispatch_event(win, "on_key_release", window_module.key.W, 0)
    assert not win.vm.keypad.is_down(0x5)


def test_sound_timer_of_one_beeps(win):
    win.vm.sound_timer = 1
    win._timer_tick(1 / 60)
    assert len(FakePlayer.instances) == 1
    assert win.sound_playing
    assert win.vm.sound_timer == 0


def test_beep_stops_when_sound_timer_expires(win):
    win.vm.sound_timer = 2
    win._timer_tick(1 / 60)
    win._timer_tick(1 / 60)
    player = FakePlayer.instances[0]
    assert player.calls == ["play"]

    win._timer_tick(1 / 60)
    assert player.calls == ["play", "pause", "delete"]
    assert not win.sound_playing
    assert len(FakePlayer.instances) == 1


def test_beep_is_not_restarted_while_playing(win):
    win.vm.sound_timer = 5
    for _ in range(3):
        win._timer_tick(1 / 60)
    assert len(FakePlayer.instances) == 1


def test_halt_unschedules_every_loop(win, scheduled):
    win.halt()
    callbacks = {win.tick, win._timer_tick, win.draw_frame, win._update_bench}
    assert set(scheduled["scheduled"]) == callbacks
    assert set(scheduled["unscheduled"]) == callbacks
    assert scheduled["closed"]
