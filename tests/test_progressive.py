"""Tests for the ProgressiveRenderer."""

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def renderer():
    from src.pathtracer.camera.pinhole import PinholeCamera
    from src.pathtracer.core.progressive import ProgressiveRenderer
    from src.pathtracer.core.ray import vec3
    from src.pathtracer.scene.intersection import Scene

    value = vec3(0.2, 0.4, 0.6)
    scene = Scene([], background=lambda ray: value)
    camera = PinholeCamera(eye=(0, 0, 0), target=(1, 0, 0))
    return ProgressiveRenderer(scene, camera, 6, 4, workers=2)


class TestProgressiveRendering:
    """Test batched accumulation and progress reporting."""

    def test_callback_reports_each_batch(self, renderer):
        calls = []
        renderer.render(5, batch_size=2, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(2, 5), (4, 5), (5, 5)]
        assert renderer.sample_count == 5

    def test_render_continues_accumulating(self, renderer):
        renderer.render(2)
        calls = []
        renderer.render(3, batch_size=3, callback=lambda c, t: calls.append((c, t)))
        assert calls == [(5, 5)]

    def test_generator_yields_progress(self, renderer):
        progress = list(renderer.render_progressive(4, batch_size=3))
        assert progress == [(3, 4), (4, 4)]

    def test_zero_samples_do_nothing(self, renderer):
        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size_raises(self, renderer):
        with pytest.raises(ValueError):
            renderer.render(4, batch_size=0)

    def test_reset_clears_samples(self, renderer):
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0
        assert np.allclose(renderer.get_linear_image_numpy(), 0.0)

    def test_resize(self, renderer):
        renderer.render(1)
        renderer.resize(3, 2)
        assert (renderer.width, renderer.height) == (3, 2)
        assert renderer.sample_count == 0
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (2, 3, 3)

    def test_negative_max_depth_raises(self):
        from src.pathtracer.camera.pinhole import PinholeCamera
        from src.pathtracer.core.progressive import ProgressiveRenderer
        from src.pathtracer.scene.intersection import Scene

        camera = PinholeCamera(eye=(0, 0, 0), target=(1, 0, 0))
        with pytest.raises(ValueError):
            ProgressiveRenderer(Scene([]), camera, 4, 4, max_depth=-1)

    def test_max_depth_above_recursion_ceiling_raises(self):
        from src.pathtracer.camera.pinhole import PinholeCamera
        from src.pathtracer.core.progressive import ProgressiveRenderer
        from src.pathtracer.core.sampling import max_supported_depth
        from src.pathtracer.scene.intersection import Scene

        camera = PinholeCamera(eye=(0, 0, 0), target=(1, 0, 0))
        with pytest.raises(ValueError, match="supported maximum"):
            ProgressiveRenderer(Scene([]), camera, 4, 4, max_depth=max_supported_depth() + 1)

    def test_repr(self, renderer):
        assert "6x4" in repr(renderer)


class TestProgressiveOutput:
    """Test image readback and export."""

    def test_linear_image(self, renderer):
        renderer.render(2)
        image = renderer.get_image_numpy()
        assert image.shape == (4, 6, 3)
        assert np.allclose(image, [0.2, 0.4, 0.6])

    def test_srgb_image(self, renderer):
        from src.pathtracer.preview.color import linear_to_srgb

        renderer.render(1)
        image = renderer.get_image_numpy(gamma="srgb")
        assert np.allclose(image, linear_to_srgb([0.2, 0.4, 0.6]), atol=1e-6)

    def test_uint8_image(self, renderer):
        renderer.render(1)
        image = renderer.get_image_uint8(gamma=1.0)
        assert image.dtype == np.uint8
        assert np.array_equal(image[0, 0], [51, 102, 153])

    def test_save_image(self, renderer, tmp_path):
        renderer.render(1)
        path = tmp_path / "out.png"
        renderer.save_image(path)
        with Image.open(path) as img:
            assert img.size == (6, 4)
            assert img.mode == "RGB"
