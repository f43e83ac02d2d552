"""Unit tests for render configuration and cancellation signals.

Tests cover:
- RenderConfig validation and derived properties
- Taichi initialization state
- ContinueFlag behavior
"""

import threading

import pytest


class TestRenderConfig:
    """Tests for the RenderConfig dataclass."""

    def test_valid_config(self):
        """Test that valid options are stored unchanged."""
        from pathtracer.core.config import RenderConfig

        config = RenderConfig(samples_per_pixel=4, max_depth=8, image_width=40, image_height=20)
        assert config.samples_per_pixel == 4
        assert config.max_depth == 8
        assert config.seed == 0
        assert config.aspect_ratio == pytest.approx(2.0)
        assert config.pixel_count == 800

    @pytest.mark.parametrize(
        "field", ["samples_per_pixel", "max_depth", "image_width", "image_height"]
    )
    def test_non_positive_rejected(self, field):
        """Test that zero counts and sizes raise ValueError."""
        from pathtracer.core.config import RenderConfig

        options = {"samples_per_pixel": 1, "max_depth": 1, "image_width": 1, "image_height": 1}
        options[field] = 0
        with pytest.raises(ValueError, match=field):
            RenderConfig(**options)

    def test_oversized_image_rejected(self):
        """Test that images larger than the preallocated buffers raise."""
        from pathtracer.core.config import MAX_IMAGE_WIDTH, RenderConfig

        with pytest.raises(ValueError, match="exceed maximum"):
            RenderConfig(
                samples_per_pixel=1,
                max_depth=1,
                image_width=MAX_IMAGE_WIDTH + 1,
                image_height=1,
            )

    def test_negative_seed_rejected(self):
        """Test that a negative seed raises ValueError."""
        from pathtracer.core.config import RenderConfig

        with pytest.raises(ValueError, match="seed"):
            RenderConfig(samples_per_pixel=1, max_depth=1, image_width=1, image_height=1, seed=-1)

    def test_taichi_initialized(self):
        """Test that the session fixture initialized the runtime."""
        from pathtracer.core.config import is_initialized

        assert is_initialized()


class TestContinueFlag:
    """Tests for the thread-safe cancellation flag."""

    def test_starts_continuing(self):
        """Test that a new flag asks the renderer to keep going."""
        from pathtracer.core.cancellation import ContinueFlag

        flag = ContinueFlag()
        assert flag() is True
        assert not flag.stopped

    def test_stop_and_reset(self):
        """Test that stop() clears the flag and reset() restores it."""
        from pathtracer.core.cancellation import ContinueFlag

        flag = ContinueFlag()
        flag.stop()
        assert flag() is False
        assert flag.stopped
        assert "stopped=True" in repr(flag)

        flag.reset()
        assert flag() is True

    def test_stop_from_another_thread(self):
        """Test that a stop issued on another thread is visible."""
        from pathtracer.core.cancellation import ContinueFlag

        flag = ContinueFlag()
        worker = threading.Thread(target=flag.stop)
        worker.start()
        worker.join()
        assert flag() is False
