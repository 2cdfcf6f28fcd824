"""Tests for the image codec, colormaps and subset visualization."""

import numpy as np
import pytest
from PIL import Image as PILImage

from dice_core import DeformationMap, Subset, UninitializedAccess
from dice_core.core.errors import LoadError
from dice_core.core.image import Image
from dice_core.utils.image_io import (
    load_images,
    read_image,
    validate_image_format,
    write_image,
)
from dice_core.utils.colormaps import apply_colormap, get_colormap
from dice_core.visualization import subset_raster, write_subset


class TestImageIO:
    """Tests for image reading and writing."""

    def test_validate_image_format_valid(self, sample_grayscale_image):
        """Test valid grayscale image."""
        valid, msg = validate_image_format(sample_grayscale_image)

        assert valid
        assert msg == ""

    def test_validate_image_format_rgba(self):
        """Test RGBA images are accepted."""
        img = np.zeros((20, 20, 4), dtype=np.uint8)

        valid, _ = validate_image_format(img)

        assert valid

    def test_validate_image_format_invalid_channels(self):
        """Test invalid channel count."""
        img = np.zeros((20, 20, 2), dtype=np.uint8)

        valid, msg = validate_image_format(img)

        assert not valid
        assert "channels" in msg

    def test_validate_image_format_invalid_dims(self):
        """Test invalid dimensions."""
        valid, msg = validate_image_format(np.zeros(10))

        assert not valid

    def test_read_image(self, temp_image_file, sample_grayscale_image):
        """Test reading a PNG."""
        img = read_image(temp_image_file)

        assert img.width == 100
        assert img.height == 100
        assert img.path == str(temp_image_file.parent)
        np.testing.assert_array_equal(img.intensities, sample_grayscale_image)

    def test_read_rgb_image(self, sample_rgb_image, temp_dir):
        """Test colour files are converted to grayscale."""
        path = temp_dir / "rgb.png"
        PILImage.fromarray(sample_rgb_image).save(path)

        img = read_image(path)

        assert img.intensities.shape == (100, 100)

    def test_read_palette_image(self, temp_dir):
        """Test palette files load as intensities, not palette indices."""
        gray = np.array([[10, 200], [60, 250]], dtype=np.uint8)
        path = temp_dir / "palette.png"
        PILImage.fromarray(gray).convert("RGB").convert("P", palette=PILImage.Palette.ADAPTIVE).save(path)

        img = read_image(path)

        np.testing.assert_allclose(img.intensities, gray, atol=1.0)

    def test_read_gray_alpha_image(self, temp_dir):
        """Test grey+alpha files keep the grey channel."""
        gray = np.array([[10, 200], [60, 250]], dtype=np.uint8)
        path = temp_dir / "gray_alpha.png"
        PILImage.fromarray(gray).convert("LA").save(path)

        img = read_image(path)

        np.testing.assert_array_equal(img.intensities, gray)

    def test_read_bilevel_image(self, temp_dir):
        """Test 1-bit files load as 0 / 255 intensities."""
        path = temp_dir / "bilevel.png"
        PILImage.fromarray(np.array([[0, 255], [255, 0]], dtype=np.uint8)).convert("1").save(path)

        img = read_image(path)

        np.testing.assert_array_equal(img.intensities, [[0, 255], [255, 0]])

    def test_read_missing_file(self, temp_dir):
        """Test missing file."""
        with pytest.raises(LoadError):
            read_image(temp_dir / "nonexistent.png")

    def test_read_unsupported_format(self, temp_dir):
        """Test unsupported suffix."""
        path = temp_dir / "image.txt"
        path.write_text("not an image")

        with pytest.raises(LoadError):
            read_image(path)

    def test_read_corrupt_file(self, temp_dir):
        """Test undecodable data."""
        path = temp_dir / "broken.png"
        path.write_bytes(b"\x00\x01garbage")

        with pytest.raises(LoadError):
            read_image(path)

    def test_load_error_is_os_error(self, temp_dir):
        """Test LoadError can be handled as OSError."""
        with pytest.raises(OSError):
            read_image(temp_dir / "nonexistent.png")

    def test_load_images(self, temp_image_file):
        """Test loading a list of images."""
        images = load_images([temp_image_file, temp_image_file])

        assert len(images) == 2
        assert all(isinstance(img, Image) for img in images)

    def test_write_tiff_keeps_floats(self, temp_dir):
        """Test TIFF output keeps fractional intensities."""
        path = temp_dir / "raster.tif"
        buffer = np.array([0.25, 1.5, 300.0, -2.0, 7.75, 8.0])

        write_image(path, 3, 2, buffer)
        img = read_image(path)

        assert (img.width, img.height) == (3, 2)
        np.testing.assert_array_equal(img.intensities.ravel(), buffer)

    def test_write_png_clips(self, temp_dir):
        """Test 8-bit output rounds and clips."""
        path = temp_dir / "raster.png"

        write_image(path, 2, 2, [-5.0, 10.4, 10.6, 300.0])

        with PILImage.open(path) as pil_img:
            data = np.array(pil_img)
        np.testing.assert_array_equal(data, [[0, 10], [11, 255]])

    def test_write_size_mismatch(self, temp_dir):
        """Test buffer and raster size must agree."""
        with pytest.raises(ValueError):
            write_image(temp_dir / "raster.tif", 3, 3, np.zeros(8))

    def test_write_unsupported_format(self, temp_dir):
        """Test unsupported output suffix."""
        with pytest.raises(ValueError):
            write_image(temp_dir / "raster.xyz", 1, 1, [0.0])


class TestColormaps:
    """Tests for colormap utilities."""

    def test_get_default_colormap(self):
        """Test the package colormap."""
        cmap = get_colormap()

        assert cmap.name == "dice"

    def test_get_matplotlib_colormap(self):
        """Test matplotlib colormaps by name."""
        assert get_colormap("gray") is not None
        assert get_colormap("viridis") is not None

    def test_unknown_colormap(self):
        """Test unknown names."""
        with pytest.raises(ValueError):
            get_colormap("no-such-map")

    def test_apply_colormap(self):
        """Test colour mapping."""
        data = np.linspace(0, 1, 100).reshape(10, 10)

        rgb = apply_colormap(data)

        assert rgb.shape == (10, 10, 3)
        assert rgb.dtype == np.uint8

    def test_apply_colormap_mask(self):
        """Test pixels outside the mask get the background colour."""
        data = np.arange(4, dtype=np.float64).reshape(2, 2)
        mask = np.array([[True, False], [True, True]])

        rgb = apply_colormap(data, cmap_name="gray", mask=mask, background=(1, 2, 3))

        np.testing.assert_array_equal(rgb[0, 1], [1, 2, 3])
        np.testing.assert_array_equal(rgb[0, 0], [0, 0, 0])
        np.testing.assert_array_equal(rgb[1, 1], [255, 255, 255])


class TestVisualization:
    """Tests for writing subset intensities."""

    def test_raster_of_rectangle(self, speckle_image):
        """Test the raster of a rectangular subset is the image patch."""
        subset = Subset.from_rectangle(50, 60, 7, 5)
        subset.initialize(speckle_image)

        width, height, buffer, mask = subset_raster(subset)

        assert (width, height) == (7, 5)
        assert mask.all()
        np.testing.assert_array_equal(
            buffer.reshape(5, 7), speckle_image.intensities[58:63, 47:54]
        )

    def test_raster_of_sparse_subset(self, speckle_image):
        """Test pixels outside an arbitrary subset are zero."""
        xs = [2 * i + 4 for i in range(48)]
        ys = [42 + i for i in range(48)]
        subset = Subset(125, 250, xs, ys)
        subset.initialize(speckle_image)

        width, height, buffer, mask = subset_raster(subset)

        assert (width, height) == (95, 48)
        assert mask.sum() == 48
        raster = buffer.reshape(height, width)
        assert raster[0, 0] == speckle_image.at(4, 42)
        assert raster[0, 1] == 0.0

    def test_write_reference_and_deformed(self, speckle_image, temp_dir):
        """Test writing both buffers and reading them back."""
        subset = Subset.from_rectangle(100, 100, 13, 19)
        subset.initialize(speckle_image)
        subset.initialize(speckle_image, DeformationMap(u=20, v=5))

        subset.write(temp_dir / "squareSubsetRef.tif", use_deformed=False)
        subset.write(temp_dir / "squareSubsetDef.tif", use_deformed=True)

        ref = read_image(temp_dir / "squareSubsetRef.tif")
        deformed = read_image(temp_dir / "squareSubsetDef.tif")
        assert (ref.width, ref.height) == (13, 19)
        np.testing.assert_array_equal(ref.intensities.ravel(), subset.ref_buffer)
        np.testing.assert_array_equal(deformed.intensities.ravel(), subset.def_buffer)

    def test_write_colormap(self, speckle_image, temp_dir):
        """Test false-colour output."""
        subset = Subset.from_rectangle(100, 100, 9, 9)
        subset.initialize(speckle_image)
        path = temp_dir / "subset.png"

        write_subset(subset, path, colormap="dice")

        with PILImage.open(path) as pil_img:
            assert pil_img.mode == "RGB"
            assert pil_img.size == (9, 9)

    def test_write_uninitialized(self, temp_dir):
        """Test writing a buffer that was never sampled."""
        subset = Subset.from_rectangle(100, 100, 9, 9)

        with pytest.raises(UninitializedAccess):
            subset.write(temp_dir / "subset.tif", use_deformed=True)
        assert not (temp_dir / "subset.tif").exists()
