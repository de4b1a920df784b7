"""Shared fixtures for the machine tests."""

import random

import pytest

from chip8vm.cpu import ROM_START_ADDRESS, Chip8


@pytest.fixture
def vm():
    return Chip8(rng=random.Random(1234))


@pytest.fixture
def program(vm):
    """Return a loader that puts the given opcodes at 0x200."""

    def _load(*words):
        rom = b"".join(w.to_bytes(2, "big") for w in words)
        vm.load(rom)
        assert vm.pc == ROM_START_ADDRESS
        return vm

    return _load
