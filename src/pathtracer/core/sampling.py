"""Low-discrepancy sampling and recursion bookkeeping for path tracing.

This module provides two pieces:

    QuasiRandomSequence: an additive-recurrence (R-sequence) generator in 1, 2
        or 3 dimensions. The n-th point is ``fract(seed + n * alpha)`` where the
        components of ``alpha`` are negative powers of the generalized golden
        ratio for the dimension.
    TraceContext: the per-worker sampling state. It owns the recursion depth
        counter used to bound light bounces, three pools of quasi-random
        generators (one per dimensionality), and the true-random source used
        to reseed those pools for every pixel.

Within one sample, the k-th draw of a given dimensionality along a path is
served by the k-th generator of the matching pool, so every bounce consumes
its own sequence. ``next_sample()`` rewinds the cursors so the next sample
continues those same generators, and ``next_pixel()`` throws the pools away
and reseeds them to decorrelate neighbouring pixels.

Example:
    >>> import numpy as np
    >>> from src.pathtracer.core.sampling import TraceContext
    >>> ctx = TraceContext(max_depth=4, rng=np.random.default_rng(7))
    >>> u = ctx.rng1()
    >>> if ctx.try_push():
    ...     ctx.pop()
    >>> ctx.next_sample()
"""

from __future__ import annotations

import math
import sys
from functools import lru_cache

import numpy as np
import numpy.typing as npt

from src.pathtracer.core.ray import ONE, Vec3, normalize_or_zero

# Interpreter frames held per bounce: Scene.get_color, Material.shade, the
# bounce helper and one delegating material such as a checkerboard
FRAMES_PER_BOUNCE = 5

# Frames left to the caller (test runner, thread pool, CLI) below the first bounce
RESERVED_FRAMES = 200


class TraceContextError(RuntimeError):
    """Raised when the trace context is driven outside of its contract.

    These indicate a logic bug in the caller (unbalanced push/pop, or resetting
    the context while a path is still being traced), never a runtime condition.
    """


def max_supported_depth() -> int:
    """Deepest recursion the interpreter can serve without RecursionError.

    Shading recurses through plain Python calls, so the ceiling follows
    ``sys.getrecursionlimit()``; with the default limit of 1000 it is 160.
    """
    return max((sys.getrecursionlimit() - RESERVED_FRAMES) // FRAMES_PER_BOUNCE, 0)


def check_max_depth(max_depth: int) -> int:
    """Validate a recursion depth and return it as an int.

    Raises:
        ValueError: If ``max_depth`` is negative or above ``max_supported_depth()``.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    limit = max_supported_depth()
    if max_depth > limit:
        raise ValueError(
            f"max_depth {max_depth} exceeds the supported maximum {limit} "
            f"for recursion limit {sys.getrecursionlimit()}"
        )
    return int(max_depth)


@lru_cache(maxsize=None)
def _r_sequence_alpha(dim: int) -> npt.NDArray[np.float64]:
    """Compute the R-sequence increments for a dimension.

    ``phi`` is the positive root of ``x**(dim + 1) = x + 1``, found by
    fixed-point iteration.
    """
    phi = 2.0
    for _ in range(30):
        phi = (1.0 + phi) ** (1.0 / (dim + 1))
    return np.array([phi ** -(i + 1) for i in range(dim)], dtype=np.float64)


class QuasiRandomSequence:
    """An R-sequence low-discrepancy generator.

    Attributes:
        dim: Number of components per draw (1, 2 or 3).
        seed: Starting offset in [0, 1).
    """

    def __init__(self, dim: int, seed: float) -> None:
        if dim not in (1, 2, 3):
            raise ValueError(f"Unsupported sequence dimension: {dim}")
        self.dim = dim
        self.seed = float(seed) % 1.0
        self._alpha = _r_sequence_alpha(dim)
        self._state = np.full(dim, self.seed, dtype=np.float64)

    def next(self) -> npt.NDArray[np.float64]:
        """Advance the sequence and return the new point in [0, 1)^dim."""
        self._state = np.mod(self._state + self._alpha, 1.0)
        return self._state.copy()

    def advance(self, count: int) -> None:
        """Skip ``count`` points without returning them."""
        if count < 0:
            raise ValueError(f"Cannot advance by a negative count: {count}")
        self._state = np.mod(self._state + count * self._alpha, 1.0)

    def __repr__(self) -> str:
        return f"QuasiRandomSequence(dim={self.dim}, seed={self.seed!r})"


def pool_seed(index: int, reseed: float) -> float:
    """Seed for the ``index``-th generator of a pool (1-based).

    ``fract(exp(index + reseed))`` spreads consecutive generators over [0, 1)
    while staying reproducible for a given reseed value. Precision runs out
    quickly: once ``index + reseed`` passes about 36, ``exp`` exceeds 2**52 and
    the fraction is exactly 0, so deeper generators all start at 0 whatever
    the reseed. From 710 on ``math.exp`` raises OverflowError; with
    ``max_depth`` capped by ``max_supported_depth()`` a path draws a few
    hundred values per pool at most in practice.
    """
    frac, _ = math.modf(math.exp(index + reseed))
    return frac


class _SequencePool:
    """A growable list of generators with a "next index" cursor."""

    __slots__ = ("dim", "cursor", "sequences")

    def __init__(self, dim: int) -> None:
        self.dim = dim
        self.cursor = 0
        self.sequences: list[QuasiRandomSequence] = []

    def draw(self, reseed: float) -> npt.NDArray[np.float64]:
        if self.cursor >= len(self.sequences):
            self.cursor = len(self.sequences)
            seed = pool_seed(len(self.sequences) + 1, reseed)
            self.sequences.append(QuasiRandomSequence(self.dim, seed))
        self.cursor += 1
        return self.sequences[self.cursor - 1].next()

    def rewind(self) -> None:
        self.cursor = 0

    def clear(self) -> None:
        self.cursor = 0
        self.sequences.clear()


class TraceContext:
    """Per-worker sampling context: recursion depth plus quasi-random pools.

    A TraceContext is owned by exactly one worker and is never shared between
    threads. The true-random source is only used to draw the per-pixel
    ``reseed`` value.

    Attributes:
        max_depth: Maximum number of nested bounces (fixed at construction).
        current_depth: Number of bounces currently pushed.
        reseed: Offset mixed into every generator seed for the current pixel.
    """

    def __init__(self, max_depth: int, rng: np.random.Generator | None = None) -> None:
        """Create a context.

        Args:
            max_depth: Maximum recursion depth, in
                ``[0, max_supported_depth()]``.
            rng: Independent true-random source for reseeding. Defaults to a
                generator seeded from operating system entropy.

        Raises:
            ValueError: If max_depth is out of range.
        """
        self.max_depth = check_max_depth(max_depth)
        self.current_depth = 0
        self._rng = rng if rng is not None else np.random.default_rng()
        self._pool1 = _SequencePool(1)
        self._pool2 = _SequencePool(2)
        self._pool3 = _SequencePool(3)
        self.reseed = float(self._rng.random())

    # =========================================================================
    # Recursion Depth
    # =========================================================================

    def try_push(self) -> bool:
        """Reserve one more recursion level.

        Returns:
            False when the depth limit is reached (the caller contributes zero
            radiance), True after incrementing the depth otherwise.
        """
        if self.current_depth == self.max_depth:
            return False
        self.current_depth += 1
        return True

    def pop(self) -> None:
        """Release a level previously reserved with ``try_push``.

        Raises:
            TraceContextError: If no level is currently reserved.
        """
        if self.current_depth <= 0:
            raise TraceContextError("pop() called at depth 0 without a matching try_push()")
        self.current_depth -= 1

    # =========================================================================
    # Sample / Pixel Transitions
    # =========================================================================

    def _require_idle(self, operation: str) -> None:
        if self.current_depth != 0:
            raise TraceContextError(
                f"{operation}() called at depth {self.current_depth}; "
                "it is only valid between paths"
            )

    def next_sample(self) -> None:
        """Rewind all pool cursors; generators keep their positions."""
        self._require_idle("next_sample")
        self._pool1.rewind()
        self._pool2.rewind()
        self._pool3.rewind()

    def next_pixel(self) -> None:
        """Discard all generators and draw a fresh reseed value."""
        self._require_idle("next_pixel")
        self._pool1.clear()
        self._pool2.clear()
        self._pool3.clear()
        self.reseed = float(self._rng.random())

    # =========================================================================
    # Quasi-random Draws
    # =========================================================================

    def rng1(self) -> float:
        """Draw a scalar in [0, 1)."""
        return float(self._pool1.draw(self.reseed)[0])

    def rng2(self) -> npt.NDArray[np.float64]:
        """Draw a 2D point in [0, 1)^2."""
        return self._pool2.draw(self.reseed)

    def rng3(self) -> npt.NDArray[np.float64]:
        """Draw a 3D point in [0, 1)^3."""
        return self._pool3.draw(self.reseed)

    def pool_sizes(self) -> tuple[int, int, int]:
        """Number of generators currently held by the 1D, 2D and 3D pools."""
        return (
            len(self._pool1.sequences),
            len(self._pool2.sequences),
            len(self._pool3.sequences),
        )

    def cursors(self) -> tuple[int, int, int]:
        """Current "next index" of the 1D, 2D and 3D pools."""
        return (self._pool1.cursor, self._pool2.cursor, self._pool3.cursor)

    def blur_vector(self, v: Vec3, blur_amount: float) -> Vec3:
        """Perturb a direction with isotropic jitter.

        Args:
            v: The direction to perturb (usually a unit normal).
            blur_amount: Jitter scale, clamped to [0, 0.999].

        Returns:
            ``normalize(v + amount * (2 * rng3() - 1))``.
        """
        amount = min(max(blur_amount, 0.0), 0.999)
        return normalize_or_zero(v + amount * (2.0 * self.rng3() - ONE))

    def __repr__(self) -> str:
        return (
            f"TraceContext(depth={self.current_depth}/{self.max_depth}, "
            f"pools={self.pool_sizes()})"
        )
