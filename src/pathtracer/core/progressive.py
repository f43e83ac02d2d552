"""Batched, resumable driver around the integrator.

``ProgressiveRenderer`` keeps adding samples to the integrator's pixel sums
across calls, reporting after every batch through a callback or a generator.
A cancellation signal is forwarded to the integrator and checked before each
sample, so a long render can be stopped and its partial image still saved.

Because the random stream of every pixel depends only on the render seed and
the running sample index, splitting a render into batches or calls never
changes the final image.

Example:
    >>> from pathtracer.core.config import init_taichi
    >>> init_taichi()
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> ...
    >>> scene.build(camera)
    >>>
    >>> renderer = ProgressiveRenderer(400, 225, max_depth=50)
    >>> renderer.render(100, batch_size=10)
    >>> pixels = renderer.get_image_numpy()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtracer.core.cancellation import ShouldContinue
from pathtracer.core.integrator import (
    RenderResult,
    clear_render_target,
    get_result,
    get_total_samples,
    render_samples,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Called after every batch with (samples so far, samples targeted by this call)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Adds samples to the shared pixel sums in batches.

    The renderer maintains its own state for width/height/depth/seed and
    delegates to the global integrator buffers (which are Taichi fields).
    Repeated calls to render() keep drawing fresh samples, so rendering 10
    samples twice gives the same image as rendering 20 at once.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of hit-checks per path.
        seed: Render seed.
    """

    def __init__(self, width: int, height: int, max_depth: int = 50, seed: int = 0) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            max_depth: Maximum number of hit-checks per path.
            seed: Render seed.

        Raises:
            ValueError: If dimensions exceed maximum supported size or
                max_depth is not positive.
        """
        if max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the pixel sums and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def _render_batch(self, batch: int, should_continue: ShouldContinue | None) -> int:
        return render_samples(
            batch,
            max_depth=self.max_depth,
            seed=self.seed,
            should_continue=should_continue,
        )

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
        should_continue: ShouldContinue | None = None,
    ) -> int:
        """Add samples in batches, reporting after each one.

        Repeated calls keep refining the same image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).
            should_continue: Optional cancellation signal, polled before
                each sample.

        Returns:
            The number of samples actually added.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        added = 0
        for current, target in self.render_progressive(num_samples, batch_size, should_continue):
            added = current - (target - num_samples)
            if callback is not None:
                callback(current, target)
        return added

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        should_continue: ShouldContinue | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        This is a generator-based alternative to render() with callbacks.
        Stops early, after yielding the partial batch, once should_continue
        returns False.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.
            should_continue: Optional cancellation signal.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        start_samples = self.sample_count
        target_samples = start_samples + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            completed = self._render_batch(batch, should_continue)
            remaining -= completed
            if completed > 0:
                yield (self.sample_count, target_samples)
            if completed < batch:
                logger.info(
                    "Progressive render cancelled at %d of %d samples",
                    self.sample_count,
                    target_samples,
                )
                return

    def get_result(self) -> RenderResult:
        """Get the normalized image accumulated so far."""
        return get_result()

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the rendered linear image as an array of shape (height, width, 3)."""
        return self.get_result().as_image()

    def save_image(self, filepath: str | Path) -> Path:
        """Save the rendered image to a file.

        Args:
            filepath: Path to save the image (e.g., "output.png").

        Returns:
            The path actually written.
        """
        from pathtracer.output.export import save_image

        return save_image(self.get_result(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
