"""
Shared test helpers.

`ScriptedRng` stands in for a numpy Generator: scalar `random()` calls
return scripted values (then a default), every other method is delegated
to a real seeded Generator. This pins down the probability rolls a test
cares about while keeping shuffles, integer draws and uniform nudges real.
"""

import numpy as np
import pytest


class ScriptedRng:
    def __init__(self, values=(), default: float = 0.5, seed: int = 0):
        self.values = list(values)
        self.default = default
        self._inner = np.random.default_rng(seed)

    def random(self, size=None):
        if size is not None:
            return self._inner.random(size)
        if self.values:
            return self.values.pop(0)
        return self.default

    def __getattr__(self, name):
        return getattr(self._inner, name)


@pytest.fixture
def scripted():
    """Factory: scripted(values=[...], default=0.5) -> ScriptedRng."""
    return ScriptedRng
