import numpy as np

KEY_COUNT = 16


class Keypad:
    """State of the 16-key hex keypad (keys 0x0-0xF)."""

    def __init__(self):
        self.keys = np.zeros(KEY_COUNT, dtype=np.uint8)

    @staticmethod
    def valid(key):
        return key is not None and 0 <= key < KEY_COUNT

    def press(self, key):
        if self.valid(key):
            self.keys[key] = 1

    def release(self, key):
        if self.valid(key):
            self.keys[key] = 0

    def is_down(self, key):
        return self.valid(key) and bool(self.keys[key])

    def release_all(self):
        self.keys[:] = 0
