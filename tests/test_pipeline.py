"""
End-to-end tests: in-memory pipeline, MosaicMaker and the command line.

Everything runs on tiny synthetic PNGs so the whole flow stays fast.
"""

import numpy as np
import pytest
from PIL import Image

from pngmosaic.catalog import TileCatalog
from pngmosaic.cli import main as cli_main
from pngmosaic.config import EdgePolicy, MosaicConfig
from pngmosaic.errors import InvalidChunkSize
from pngmosaic.pngmosaic import MosaicMaker, make_mosaic, tile_geometry

DARK = np.array([[[0, 0, 0], [10, 10, 10]],
                 [[20, 20, 20], [30, 30, 30]]], dtype=np.uint8)       # averages to 15
BRIGHT = np.array([[[250, 250, 250], [240, 240, 240]],
                   [[230, 230, 230], [220, 220, 220]]], dtype=np.uint8)  # averages to 235

SMALL = dict(chunk_size=2, tile_chunk_size=2, tile_size=2)


def _quadrant_target():
    """4x4 target: dark top-left/bottom-right, bright elsewhere."""
    target = np.empty((4, 4, 3), dtype=np.uint8)
    target[:2, :2] = 12
    target[:2, 2:] = 200
    target[2:, :2] = 250
    target[2:, 2:] = 40
    return target


def _write_inputs(tmp_path, target=None):
    target_path = tmp_path / "target.png"
    Image.fromarray(_quadrant_target() if target is None else target).save(target_path)
    tiles_dir = tmp_path / "tiles"
    tiles_dir.mkdir()
    Image.fromarray(DARK).save(tiles_dir / "dark.png")
    Image.fromarray(BRIGHT).save(tiles_dir / "bright.png")
    return target_path, tiles_dir


def _small_catalog():
    catalog = TileCatalog(3)
    catalog.add_image(DARK, blocksize=2, tile_size=2)
    catalog.add_image(BRIGHT, blocksize=2, tile_size=2)
    return catalog


def _assert_quadrants(out):
    assert out.shape == (4, 4, 3)
    assert np.array_equal(out[:2, :2], DARK)
    assert np.array_equal(out[:2, 2:], BRIGHT)
    assert np.array_equal(out[2:, :2], BRIGHT)
    assert np.array_equal(out[2:, 2:], DARK)


# ---------------------------------------------------------------------------
# In-memory pipeline
# ---------------------------------------------------------------------------


class TestMakeMosaic:
    def test_each_quadrant_is_its_matched_tile(self):
        out = make_mosaic(_quadrant_target(), _small_catalog(), MosaicConfig(**SMALL))
        _assert_quadrants(out)

    def test_rgba_target(self):
        target = np.dstack([_quadrant_target(), np.full((4, 4), 7, dtype=np.uint8)])
        out = make_mosaic(target, _small_catalog(), MosaicConfig(**SMALL))
        _assert_quadrants(out)

    def test_chunk_size_is_negotiated(self):
        # 6x6 target, guess 4 -> 6, a single block
        target = np.full((6, 6, 3), 240, dtype=np.uint8)
        out = make_mosaic(target, _small_catalog(), MosaicConfig(chunk_size=4, tile_chunk_size=2, tile_size=2))
        assert np.array_equal(out, BRIGHT)

    def test_output_length(self):
        target = np.zeros((8, 12, 3), dtype=np.uint8)
        out = make_mosaic(target, _small_catalog(), MosaicConfig(**SMALL))
        # 6x4 blocks of 2x2 tiles
        assert out.size == 6 * 4 * 2 * 2 * 3

    def test_pad_partial_keeps_edge_blocks(self):
        target = np.full((5, 5, 3), 240, dtype=np.uint8)
        config = MosaicConfig(edge_policy=EdgePolicy.PAD_PARTIAL, **SMALL)
        out = make_mosaic(target, _small_catalog(), config)
        assert out.shape == (6, 6, 3)
        assert np.array_equal(out[4:, 4:], BRIGHT)

    def test_pad_partial_rejects_oversized_chunk(self):
        config = MosaicConfig(edge_policy="pad-partial", chunk_size=9, tile_chunk_size=2, tile_size=2)
        with pytest.raises(InvalidChunkSize):
            make_mosaic(np.zeros((4, 4, 3), dtype=np.uint8), _small_catalog(), config)

    def test_exact_target_without_divisor(self):
        config = MosaicConfig(chunk_size=417, tile_chunk_size=2, tile_size=2)
        with pytest.raises(InvalidChunkSize):
            make_mosaic(np.zeros((17, 20, 3), dtype=np.uint8), _small_catalog(), config)


class TestConfig:
    def test_reference_tile_geometry(self):
        assert tile_geometry(MosaicConfig()) == (52, 8)

    def test_tile_chunk_is_negotiated(self):
        assert tile_geometry(MosaicConfig(tile_chunk_size=5, tile_size=12)) == (6, 2)

    def test_rejects_bad_values(self):
        with pytest.raises(ValueError):
            MosaicConfig(channels=4)
        with pytest.raises(ValueError):
            MosaicConfig(tile_mode="thumbnail")
        with pytest.raises(ValueError):
            MosaicConfig(edge_policy="truncate")

    def test_output_is_always_rgb(self):
        with pytest.raises(ValueError):
            MosaicConfig(channels=1)
        assert MosaicConfig().channels == 3


# ---------------------------------------------------------------------------
# MosaicMaker
# ---------------------------------------------------------------------------


class TestMosaicMaker:
    def test_writes_rgb_png(self, tmp_path):
        target_path, tiles_dir = _write_inputs(tmp_path)
        output = tmp_path / "mosaic.png"

        m = MosaicMaker(str(target_path), str(tiles_dir), target_image=str(output), config=MosaicConfig(**SMALL))
        result = m.build_mosaic()

        _assert_quadrants(result)
        with Image.open(output) as written:
            assert written.mode == "RGB"
            assert written.size == (4, 4)
            assert np.array_equal(np.array(written), result)

    def test_pixelated_tiles(self, tmp_path):
        target_path = tmp_path / "target.png"
        Image.fromarray(np.full((2, 2, 3), 250, dtype=np.uint8)).save(target_path)
        tiles_dir = tmp_path / "tiles"
        tiles_dir.mkdir()
        tile = np.zeros((4, 4, 3), dtype=np.uint8)
        tile[:2, :2] = 255
        tile[:2, 2:] = 251
        tile[2:, :2] = 247
        tile[2:, 2:] = 243
        Image.fromarray(tile).save(tiles_dir / "tile.png")

        config = MosaicConfig(chunk_size=2, tile_chunk_size=2, tile_size=4, tile_mode="pixelated")
        result = MosaicMaker(str(target_path), str(tiles_dir), config=config).build_mosaic(
            filename=str(tmp_path / "out.png"))

        assert result[:, :, 0].tolist() == [[255, 251], [247, 243]]

    def test_default_filename(self, tmp_path, monkeypatch):
        target_path, tiles_dir = _write_inputs(tmp_path)
        monkeypatch.chdir(tmp_path)

        MosaicMaker(str(target_path), str(tiles_dir), config=MosaicConfig(**SMALL)).build_mosaic()

        assert (tmp_path / "mosaic-2x2-TS2-brute-force-full-target.png").exists()


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def _cli_args(target_path, output, tiles_dir, *extra):
    return [str(target_path), str(output), str(tiles_dir),
            "--chunk-size", "2", "--tile-size", "2", "--tile-chunk-size", "2", *extra]


class TestCli:
    def test_builds_mosaic(self, tmp_path):
        target_path, tiles_dir = _write_inputs(tmp_path)
        output = tmp_path / "mosaic.png"

        assert cli_main(_cli_args(target_path, output, tiles_dir, "--method", "kdtree")) == 0

        with Image.open(output) as written:
            _assert_quadrants(np.array(written))

    @pytest.mark.parametrize("argv", [[], ["target.png"], ["target.png", "out.png"]])
    def test_too_few_arguments_exit_silently(self, argv, capsys):
        assert cli_main(argv) == 0
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_missing_target(self, tmp_path):
        _, tiles_dir = _write_inputs(tmp_path)
        output = tmp_path / "mosaic.png"
        assert cli_main(_cli_args(tmp_path / "missing.png", output, tiles_dir)) == 1
        assert not output.exists()

    def test_undecodable_target(self, tmp_path):
        _, tiles_dir = _write_inputs(tmp_path)
        bogus = tmp_path / "bogus.png"
        bogus.write_text("not a png")
        assert cli_main(_cli_args(bogus, tmp_path / "mosaic.png", tiles_dir)) == 1

    def test_unsupported_target_color_type(self, tmp_path):
        _, tiles_dir = _write_inputs(tmp_path)
        gray = tmp_path / "gray.png"
        Image.fromarray(np.zeros((4, 4), dtype=np.uint8)).save(gray)
        assert cli_main(_cli_args(gray, tmp_path / "mosaic.png", tiles_dir)) == 1

    def test_no_usable_tiles(self, tmp_path):
        target_path = tmp_path / "target.png"
        Image.fromarray(_quadrant_target()).save(target_path)
        tiles_dir = tmp_path / "tiles"
        tiles_dir.mkdir()
        Image.fromarray(np.zeros((3, 3, 3), dtype=np.uint8)).save(tiles_dir / "odd.png")
        output = tmp_path / "mosaic.png"

        assert cli_main(_cli_args(target_path, output, tiles_dir)) == 1
        assert not output.exists()

    def test_oversized_target(self, tmp_path, monkeypatch):
        target_path, tiles_dir = _write_inputs(tmp_path)
        output = tmp_path / "mosaic.png"
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 4)
        assert cli_main(_cli_args(target_path, output, tiles_dir)) == 1
        assert not output.exists()

    def test_output_cannot_be_created(self, tmp_path):
        target_path, tiles_dir = _write_inputs(tmp_path)
        output = tmp_path / "no" / "such" / "dir" / "mosaic.png"
        assert cli_main(_cli_args(target_path, output, tiles_dir)) == 1
