"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the `e20sim`
package without needing PYTHONPATH set externally. Also provides small
helpers for assembling E20 programs by hand.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (e20sim/tests -> e20sim -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def write_program(tmp_path):
    """Write a list of words as a machine code file and return its path."""

    def _write(words, name='program.bin'):
        path = tmp_path / name
        lines = [f"ram[{addr}] = 16'b{word:016b};" for addr, word in enumerate(words)]
        path.write_text('\n'.join(lines) + '\n')
        return str(path)

    return _write
