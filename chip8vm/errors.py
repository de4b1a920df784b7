"""Exceptions raised by the CHIP-8 machine and its host."""


class Chip8Error(Exception):
    """Base class for every error raised by chip8vm."""


class LoadError(Chip8Error):
    """ROM could not be read or does not fit in program memory."""


class VMError(Chip8Error):
    """A fatal fault while executing a program."""

    def __init__(self, message, pc=None, opcode=None):
        super().__init__(message)
        self.message = message
        self.pc = pc
        self.opcode = opcode

    def __str__(self):
        where = []
        if self.pc is not None:
            where.append(f"pc=0x{self.pc:03X}")
        if self.opcode is not None:
            where.append(f"opcode={self.opcode:04X}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class DecodeError(VMError):
    def __init__(self, opcode, pc=None):
        super().__init__("Unknown opcode", pc=pc, opcode=opcode)


class UnsupportedInstruction(DecodeError):
    """0NNN machine-code call, which no interpreter here implements."""

    def __init__(self, opcode, pc=None):
        super().__init__(opcode, pc=pc)
        self.message = "Machine code call (0NNN) is not supported"


class StackOverflow(VMError):
    pass


class StackUnderflow(VMError):
    pass


class OutOfBounds(VMError):
    def __init__(self, address, pc=None, opcode=None):
        super().__init__(f"Memory access out of bounds at 0x{address:04X}", pc=pc, opcode=opcode)
        self.address = address


class ConfigError(Chip8Error, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""
