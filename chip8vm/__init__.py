"""CHIP-8 virtual machine with a pyglet front end."""

from .cpu import Chip8, StepOutcome, load_rom
from .decoder import Instruction, Op, decode, disassemble, mnemonic
from .errors import (
    Chip8Error,
    ConfigError,
    DecodeError,
    LoadError,
    OutOfBounds,
    StackOverflow,
    StackUnderflow,
    UnsupportedInstruction,
    VMError,
)
from .framebuffer import Framebuffer
from .keypad import Keypad

__version__ = "0.1.0"
