# 64x32 monochrome display. Pixels are either on or off (0 || 1) and only
# change through clear() and draw_sprite().

import numpy as np

WIDTH, HEIGHT = 64, 32


class Framebuffer:

    def __init__(self, width=WIDTH, height=HEIGHT):
        self.width = width
        self.height = height
        self._vram = np.zeros((height, width), dtype=np.uint8)
        self.dirty = True   # so the host paints the first frame

    @property
    def pixels(self):
        """Read-only view of the pixel grid, indexed [y, x]."""
        view = self._vram.view()
        view.flags.writeable = False
        return view

    def lit(self, x, y):
        return bool(self._vram[y, x])

    def clear(self):
        self._vram[:] = 0
        self.dirty = True

    def draw_sprite(self, x, y, rows):
        """XOR an 8-pixel-wide sprite in at (x, y).

        The origin wraps around the screen. Columns that run off the right
        edge wrap as well, rows that run off the bottom are clipped.
        Returns True if any lit pixel was switched off.
        """
        x %= self.width
        y %= self.height
        collision = False
        for row, sprite in enumerate(rows):
            py = y + row
            if py >= self.height:
                break
            if sprite == 0:
                continue
            line = self._vram[py]
            for bit in range(8):
                if sprite & (0x80 >> bit):
                    px = (x + bit) % self.width
                    if line[px]:
                        collision = True
                    line[px] ^= 1
        self.dirty = True
        return collision

    def mark_clean(self):
        self.dirty = False

    def to_rgba(self, scale=1, foreground=(255, 255, 255), background=(0, 0, 0)):
        """Return an upscaled (height*scale, width*scale, 4) uint8 image.

        Row 0 of the result is the top of the screen; pyglet wants the
        bottom row first, so the window flips it.
        """
        palette = np.array([(*background, 255), (*foreground, 255)], dtype=np.uint8)
        image = palette[self._vram]
        if scale != 1:
            image = np.repeat(np.repeat(image, scale, axis=0), scale, axis=1)
        return image
