import io

import PIL.Image
import pytest

import grid_label_sheets.codes


#============================================
def test_qr_png_is_deterministic() -> None:
	"""
	The same value always encodes to the same PNG.
	"""
	first = grid_label_sheets.codes.build_qr_png("SN-000123")
	second = grid_label_sheets.codes.build_qr_png("SN-000123")
	other = grid_label_sheets.codes.build_qr_png("SN-000124")
	assert first == second
	assert first != other
	assert first.startswith(b"\x89PNG")


#============================================
def test_resolver_returns_square_image_and_caches() -> None:
	"""
	Resolved images are square PNGs, generated once per value.
	"""
	resolver = grid_label_sheets.codes.QrCodeResolver(box_size=4, border=2)
	image = resolver("Widget")
	assert image.value == "Widget"
	assert image.width == image.height
	# version 1 QR is 21 modules, plus a 2 module border each side
	assert image.width >= (21 + 4) * 4
	with PIL.Image.open(io.BytesIO(image.png)) as decoded:
		assert decoded.size == (image.width, image.height)
	assert resolver("Widget") is image
	assert list(resolver.cache) == ["Widget"]


#============================================
def test_resolver_rejects_empty_value() -> None:
	resolver = grid_label_sheets.codes.QrCodeResolver()
	with pytest.raises(grid_label_sheets.codes.CodeResolutionError):
		resolver("")


#============================================
def test_resolver_rejects_oversized_value() -> None:
	"""
	Values beyond QR capacity raise CodeResolutionError.
	"""
	resolver = grid_label_sheets.codes.QrCodeResolver()
	with pytest.raises(grid_label_sheets.codes.CodeResolutionError):
		resolver("X" * 5000)


#============================================
def test_unknown_error_correction_level() -> None:
	with pytest.raises(ValueError):
		grid_label_sheets.codes.build_qr_png("SN1", error_correction="Z")
