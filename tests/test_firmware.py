"""Tests for firmware image loading."""

import hashlib

import pytest

from n76_flasher.firmware import FirmwareFileError, FirmwareImage, load_firmware


def test_load_firmware_reads_bytes(tmp_path):
    path = tmp_path / "app.bin"
    path.write_bytes(bytes(range(40)))

    image = load_firmware(path)

    assert image.data == bytes(range(40))
    assert image.source == str(path)
    assert len(image) == 40
    assert image.block_count == 3
    assert image.padding == 8
    assert image.sha256 == hashlib.sha256(bytes(range(40))).hexdigest()


def test_aligned_image_needs_no_padding():
    image = FirmwareImage(b"\x00" * 64)
    assert image.block_count == 4
    assert image.padding == 0
    assert len(image.blocks()) == 4


def test_blocks_are_padded():
    image = FirmwareImage(b"\x01\x02")
    assert image.blocks() == [b"\x01\x02" + b"\xff" * 14]


def test_missing_file(tmp_path):
    with pytest.raises(FirmwareFileError):
        load_firmware(tmp_path / "missing.bin")


def test_empty_file(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    with pytest.raises(FirmwareFileError):
        load_firmware(path)


def test_firmware_file_error_is_oserror():
    assert issubclass(FirmwareFileError, OSError)
