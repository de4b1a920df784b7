# pyglet front end: we subclass pyglet.window.Window (that'll handle graphics,
# sound output and keyboard handling) and drive the Chip8 core from the pyglet
# clock. The CPU and the timers run on separate schedules so games keep the
# same speed no matter how fast instructions are executed.

import logging
import random

import pyglet
from pyglet.media import synthesis
from pyglet.window import key

from .cpu import StepOutcome
from .framebuffer import HEIGHT, WIDTH

log = logging.getLogger(__name__)

#map binding keys
KEYMAP = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}

LABEL_COLOR = (255, 255, 255, 255)


class Chip8Window(pyglet.window.Window):

    def __init__(self, vm, config, title="CHIP-8 Emulator"):
        self.pixel_scale = config["scale"]
        self.window_width = WIDTH * self.pixel_scale
        self.window_height = HEIGHT * self.pixel_scale
        super().__init__(
            width=self.window_width,
            height=self.window_height,
            caption=title,
            vsync=config["vsync"],
        )
        self.vm = vm
        self.settings = config

        self.image = pyglet.image.ImageData(
            self.window_width,
            self.window_height,
            'RGBA',
            self._framebuffer_bytes(),
        )

        # Performance tracking counters
        self._fps_counter = 0
        self._bench_cycles = vm.cycle_count
        self._bench_time = pyglet.clock.get_default().time()
        self.fps_label = pyglet.text.Label(
            "FPS: 0", font_size=12, x=5, y=self.window_height - 15,
            anchor_x='left', anchor_y='center', color=LABEL_COLOR,
        )
        self.cps_label = pyglet.text.Label(
            "Cycles/s: 0", font_size=12, x=5, y=self.window_height - 30,
            anchor_x='left', anchor_y='center', color=LABEL_COLOR,
        )

        self.sound_playing = False
        self._player = None

        # Schedule the loops
        pyglet.clock.schedule_interval(self.tick, 1 / config["cpu_hz"])
        pyglet.clock.schedule_interval(self._timer_tick, 1 / config["timer_hz"])
        pyglet.clock.schedule(self.draw_frame)
        if config["show_stats"]:
            pyglet.clock.schedule_interval(self._update_bench, 1.0)

    def _framebuffer_bytes(self):
        rgba = self.vm.framebuffer.to_rgba(
            self.pixel_scale, self.settings["foreground"], self.settings["background"]
        )
        # pyglet images start at the bottom row
        return rgba[::-1].tobytes()

    # ---- loops ----
    def tick(self, dt):
        outcome = self.vm.step()
        if outcome is StepOutcome.FAULT:
            self.halt()

    def halt(self):
        for callback in (self.tick, self._timer_tick, self.draw_frame, self._update_bench):
            pyglet.clock.unschedule(callback)
        self._stop_beep()
        self.close()

    def _timer_tick(self, dt):
        # the buzzer follows the sound timer as it was before this tick
        if self.vm.sound_on:
            if not self.sound_playing:
                self._play_beep()
        elif self.sound_playing:
            self._stop_beep()
        self.vm.tick_timers()

    def draw_frame(self, dt):
        if self.vm.framebuffer.dirty:
            self.dispatch_event('on_draw')

    def _update_bench(self, dt):
        now = pyglet.clock.get_default().time()
        elapsed = now - self._bench_time
        if elapsed >= 1.0:
            cycles = self.vm.cycle_count - self._bench_cycles
            self.fps_label.text = f"FPS: {self._fps_counter / elapsed:.1f}"
            self.cps_label.text = f"Cycles/s: {cycles / elapsed:.0f}"
            self._fps_counter = 0
            self._bench_cycles = self.vm.cycle_count
            self._bench_time = now

    # ---- sound ----
    def _play_beep(self):
        variation = self.settings["pitch_variation"]
        freq = self.settings["beep_frequency"] + random.randint(-variation, variation)
        wave = synthesis.Sine(duration=self.settings["beep_duration"], frequency=freq, sample_rate=44100)
        player = pyglet.media.Player()
        player.queue(wave)
        player.play()
        self._player = player
        self.sound_playing = True

        def on_eos():
            if self._player is player:
                self._player = None
                self.sound_playing = False
            player.delete()

        player.on_eos = on_eos

    def _stop_beep(self):
        player, self._player = self._player, None
        self.sound_playing = False
        if player is not None:
            player.pause()
            player.delete()

    # ---- draw ----
    def on_draw(self):
        self.clear()
        self.image.set_data('RGBA', self.window_width * 4, self._framebuffer_bytes())
        self.image.blit(0, 0)
        if self.settings["show_stats"]:
            self.fps_label.draw()
            self.cps_label.draw()
        self.vm.framebuffer.mark_clean()
        self._fps_counter += 1

    # ---- keyboard ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.halt()
            return pyglet.event.EVENT_HANDLED
        if symbol == key.F1:
            pkg_log = logging.getLogger("chip8vm")
            debug = pkg_log.getEffectiveLevel() > logging.DEBUG
            pkg_log.setLevel(logging.DEBUG if debug else logging.INFO)
            log.info("Instruction trace %s", "on" if debug else "off")
        if symbol in KEYMAP:
            self.vm.press_key(KEYMAP[symbol])

    def on_key_release(self, symbol, modifiers):
        if symbol in KEYMAP:
            self.vm.release_key(KEYMAP[symbol])


def run(vm, config):
    """Open a window for `vm` and block until it is closed."""
    window = Chip8Window(vm, config)
    pyglet.app.run()
    return window
