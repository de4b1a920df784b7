# CHIP8 Virtual Machine:
# Input - key states are kept in a Keypad and checked by the skip/wait opcodes.
# Output - 64x32 framebuffer (pixels are either on or off (0 || 1)) & sound timer for the buzzer.
# Memory - 4096 bytes holding the fonts (from 0x000) and the ROM (from 0x200).
#----------------------------------------------------------------------------------------------
# 16 8-bit registers V0-VF (VF doubles as the carry/borrow/collision flag), a 16-bit
# address register I, a 16-entry return stack and two timers that the host counts
# down at 60Hz. Nothing in here knows about windows, audio or files: the host calls
# step() for every instruction and tick_timers() for every timer tick.

import logging
import random
from enum import Enum

import numpy as np

from .decoder import SETS_PC, Op, decode, mnemonic
from .errors import (
    LoadError,
    OutOfBounds,
    StackOverflow,
    StackUnderflow,
    UnsupportedInstruction,
    VMError,
)
from .framebuffer import Framebuffer
from .keypad import Keypad

log = logging.getLogger(__name__)

MEMORY_SIZE = 4096
ROM_START_ADDRESS = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - ROM_START_ADDRESS
STACK_DEPTH = 16
FLAG = 0xF

# set fonts (binary pixel patterns), one 5-byte glyph per hex digit
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
] #notice 80 bytes
FONT_GLYPH_SIZE = 5


class StepOutcome(Enum):
    ADVANCED = "advanced"
    DRAW = "draw"                   # framebuffer changed, host should repaint
    AWAITING_KEY = "awaiting_key"   # suspended on Fx0A until press_key()
    FAULT = "fault"                 # terminal, see Chip8.fault


def load_rom(path):
    """Read a ROM image from disk."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise LoadError(f"Could not load ROM {path}: {e.strerror or e}") from e


class Chip8:

    def __init__(self, keypad=None, rng=None):
        self.keypad = keypad if keypad is not None else Keypad()
        self.rng = rng if rng is not None else random.Random()
        self.framebuffer = Framebuffer()
        self.rom = b""

        self.handlers = {op: getattr(self, "op_" + op.value) for op in Op}
        self.reset()

    def reset(self):
        """Power-cycle the machine, keeping the loaded ROM."""
        self.memory = bytearray(MEMORY_SIZE)
        self.memory[:len(FONTSET)] = bytes(FONTSET)
        self.memory[ROM_START_ADDRESS:ROM_START_ADDRESS + len(self.rom)] = self.rom

        self.V = [0] * 16
        self.I = 0
        self.pc = ROM_START_ADDRESS
        self.stack = np.zeros(STACK_DEPTH, dtype=np.uint16)
        self.sp = 0

        self.delay_timer = 0
        self.sound_timer = 0

        self.framebuffer.clear()
        self.keypad.release_all()
        self.waiting_register = None
        self.fault = None
        self.cycle_count = 0

    def load(self, data):
        """Copy a ROM image into memory at 0x200."""
        data = bytes(data)
        if len(data) > MAX_ROM_SIZE:
            raise LoadError(f"ROM is {len(data)} bytes, at most {MAX_ROM_SIZE} fit in memory")
        self.rom = data
        self.memory[ROM_START_ADDRESS:ROM_START_ADDRESS + len(data)] = data
        log.info("Loaded ROM: %d bytes", len(data))

    # ---- host interface ----

    @property
    def awaiting_key(self):
        return self.waiting_register is not None

    @property
    def sound_on(self):
        return self.sound_timer > 0

    @property
    def status(self):
        if self.fault is not None:
            return StepOutcome.FAULT
        if self.awaiting_key:
            return StepOutcome.AWAITING_KEY
        return StepOutcome.ADVANCED

    def step(self):
        """Fetch, decode and execute one instruction."""
        if self.fault is not None or self.awaiting_key:
            return self.status

        pc = self.pc
        opcode = None
        try:
            if pc + 1 >= MEMORY_SIZE:
                raise OutOfBounds(pc)
            opcode = (self.memory[pc] << 8) | self.memory[pc + 1]
            ins = decode(opcode)
            if log.isEnabledFor(logging.DEBUG):
                log.debug("0x%03X: %04X  %s", pc, opcode, mnemonic(ins))
            self.handlers[ins.op](ins)
            if ins.op not in SETS_PC and not self.awaiting_key:
                self.pc = (self.pc + 2) & 0xFFFF
        except VMError as e:
            if e.pc is None:
                e.pc = pc
            if e.opcode is None:
                e.opcode = opcode
            self.fault = e
            log.error("Emulation error: %s", e)
            return StepOutcome.FAULT

        self.cycle_count += 1
        if self.awaiting_key:
            return StepOutcome.AWAITING_KEY
        if ins.op in (Op.CLS, Op.DRW):
            return StepOutcome.DRAW
        return StepOutcome.ADVANCED

    def run(self, cycles):
        """Step up to `cycles` times, stopping early on a key wait or fault."""
        outcome = self.status
        for _ in range(cycles):
            outcome = self.step()
            if outcome in (StepOutcome.AWAITING_KEY, StepOutcome.FAULT):
                break
        return outcome

    def tick_timers(self):
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def press_key(self, key):
        """Host reports a key going down; completes a pending Fx0A."""
        if not self.keypad.valid(key):
            return
        self.keypad.press(key)
        if self.awaiting_key:
            self.V[self.waiting_register] = key
            log.debug("Key 0x%X stored in V%X", key, self.waiting_register)
            self.waiting_register = None
            self.pc = (self.pc + 2) & 0xFFFF

    def release_key(self, key):
        self.keypad.release(key)

    # ---- memory helpers ----

    def _check_range(self, address, length=1):
        if address < 0 or address + length > MEMORY_SIZE:
            bad = address if address < 0 or address >= MEMORY_SIZE else MEMORY_SIZE
            raise OutOfBounds(bad)

    def read_block(self, address, length):
        self._check_range(address, length)
        return self.memory[address:address + length]

    def write_block(self, address, data):
        self._check_range(address, len(data))
        self.memory[address:address + len(data)] = bytes(data)

    # ---- opcode handlers ----

    def op_SYS(self, ins):
        raise UnsupportedInstruction(ins.opcode)

    def op_CLS(self, ins):
        self.framebuffer.clear()

    def op_RET(self, ins):
        # the stack holds the CALL's own address, the +2 afterwards steps past it
        if self.sp == 0:
            raise StackUnderflow("Stack underflow on RET")
        self.sp -= 1
        self.pc = int(self.stack[self.sp])

    def op_JP(self, ins):
        self.pc = ins.nnn

    def op_CALL(self, ins):
        if self.sp >= STACK_DEPTH:
            raise StackOverflow("Stack overflow on CALL")
        self.stack[self.sp] = self.pc
        self.sp += 1
        self.pc = ins.nnn

    def _skip_if(self, condition):
        self.pc = (self.pc + (4 if condition else 2)) & 0xFFFF

    def op_SE_Vx_kk(self, ins):
        self._skip_if(self.V[ins.x] == ins.kk)

    def op_SNE_Vx_kk(self, ins):
        self._skip_if(self.V[ins.x] != ins.kk)

    def op_SE_Vx_Vy(self, ins):
        self._skip_if(self.V[ins.x] == self.V[ins.y])

    def op_SNE_Vx_Vy(self, ins):
        self._skip_if(self.V[ins.x] != self.V[ins.y])

    def op_LD_Vx_kk(self, ins):
        self.V[ins.x] = ins.kk

    def op_ADD_Vx_kk(self, ins):
        self.V[ins.x] = (self.V[ins.x] + ins.kk) & 0xFF

    def op_LD_Vx_Vy(self, ins):
        self.V[ins.x] = self.V[ins.y]

    def op_OR(self, ins):
        self.V[ins.x] |= self.V[ins.y]

    def op_AND(self, ins):
        self.V[ins.x] &= self.V[ins.y]

    def op_XOR(self, ins):
        self.V[ins.x] ^= self.V[ins.y]

    def op_ADD(self, ins):
        total = self.V[ins.x] + self.V[ins.y]
        self.V[ins.x] = total & 0xFF
        self.V[FLAG] = 1 if total > 0xFF else 0

    def _subtract(self, x, minuend, subtrahend):
        # a borrow floors the result at 0 and clears VF
        diff = minuend - subtrahend
        self.V[x] = max(diff, 0) & 0xFF
        self.V[FLAG] = 0 if diff < 0 else 1

    def op_SUB(self, ins):
        self._subtract(ins.x, self.V[ins.x], self.V[ins.y])

    def op_SUBN(self, ins):
        self._subtract(ins.x, self.V[ins.y], self.V[ins.x])

    def op_SHR(self, ins):
        value = self.V[ins.x]
        self.V[ins.x] = value >> 1
        self.V[FLAG] = value & 1

    def op_SHL(self, ins):
        value = self.V[ins.x]
        self.V[ins.x] = (value << 1) & 0xFF
        self.V[FLAG] = (value >> 7) & 1

    def op_LD_I(self, ins):
        self.I = ins.nnn

    def op_JP_V0(self, ins):
        self.pc = ins.nnn + self.V[0]

    def op_RND(self, ins):
        self.V[ins.x] = self.rng.randrange(256) & ins.kk

    def op_DRW(self, ins):
        # origin is read before VF is cleared, DFyn/DxFn draw at VF's value
        px, py = self.V[ins.x], self.V[ins.y]
        self.V[FLAG] = 0
        rows = self.read_block(self.I, ins.n)
        collision = self.framebuffer.draw_sprite(px, py, rows)
        self.V[FLAG] = 1 if collision else 0

    def op_SKP(self, ins):
        self._skip_if(self.keypad.is_down(self.V[ins.x] & 0xF))

    def op_SKNP(self, ins):
        self._skip_if(not self.keypad.is_down(self.V[ins.x] & 0xF))

    def op_LD_Vx_DT(self, ins):
        self.V[ins.x] = self.delay_timer

    def op_WAITKEY(self, ins):
        # pc stays on this instruction until press_key() resumes us
        self.waiting_register = ins.x

    def op_LD_DT_Vx(self, ins):
        self.delay_timer = self.V[ins.x]

    def op_LD_ST_Vx(self, ins):
        self.sound_timer = self.V[ins.x]

    def op_ADD_I_Vx(self, ins):
        self.I = (self.I + self.V[ins.x]) & 0xFFFF

    def op_FONT(self, ins):
        self.I = self.V[ins.x] * FONT_GLYPH_SIZE

    def op_BCD(self, ins):
        v = self.V[ins.x]
        self.write_block(self.I, (v // 100, (v // 10) % 10, v % 10))

    def op_STORE(self, ins):
        self.write_block(self.I, self.V[:ins.x + 1])

    def op_LOAD(self, ins):
        self.V[:ins.x + 1] = list(self.read_block(self.I, ins.x + 1))
