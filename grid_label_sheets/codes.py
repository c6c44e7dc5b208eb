"""
Scannable code images for label cells.
"""

# Standard Library
import dataclasses
import io

# PIP3 modules
import PIL.Image
import qrcode
import qrcode.constants
import qrcode.exceptions
import qrcode.image.pil

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.config


QR_ERROR_CORRECTION = gls.config.QR_ERROR_CORRECTION
QR_BOX_SIZE = gls.config.QR_BOX_SIZE
QR_BORDER = gls.config.QR_BORDER

ERROR_CORRECTION_LEVELS = {
	"L": qrcode.constants.ERROR_CORRECT_L,
	"M": qrcode.constants.ERROR_CORRECT_M,
	"Q": qrcode.constants.ERROR_CORRECT_Q,
	"H": qrcode.constants.ERROR_CORRECT_H,
}


class CodeResolutionError(Exception):
	"""
	Raised when a value cannot be turned into a code image.
	"""


@dataclasses.dataclass(frozen=True)
class CodeImage:
	value: str
	png: bytes
	width: int
	height: int


#============================================
def build_qr_png(
	value: str,
	error_correction: str = QR_ERROR_CORRECTION,
	box_size: int = QR_BOX_SIZE,
	border: int = QR_BORDER,
) -> bytes:
	"""
	Encode a value as a QR code PNG.

	Args:
		value: Text to encode.
		error_correction: Error correction level (L, M, Q or H).
		box_size: Pixels per QR module.
		border: Quiet zone width in modules.

	Returns:
		PNG bytes.
	"""
	if not value:
		raise CodeResolutionError("Cannot encode an empty value")
	level = ERROR_CORRECTION_LEVELS.get(error_correction.upper())
	if level is None:
		raise ValueError(f"Unknown QR error correction level {error_correction!r}")
	qr = qrcode.QRCode(
		version=None,
		error_correction=level,
		box_size=box_size,
		border=border,
		image_factory=qrcode.image.pil.PilImage,
	)
	qr.add_data(value)
	try:
		qr.make(fit=True)
	except qrcode.exceptions.DataOverflowError as error:
		raise CodeResolutionError(f"Value too long for a QR code ({len(value)} chars)") from error
	image = qr.make_image(fill_color="black", back_color="white")
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


class QrCodeResolver:
	"""
	Resolve field values to QR code images, one image per distinct value.
	"""

	def __init__(
		self,
		error_correction: str = QR_ERROR_CORRECTION,
		box_size: int = QR_BOX_SIZE,
		border: int = QR_BORDER,
	):
		self.error_correction = error_correction
		self.box_size = box_size
		self.border = border
		self.cache: dict[str, CodeImage] = {}

	def __call__(self, value: str) -> CodeImage:
		"""
		Resolve a value to a code image.

		Args:
			value: Field value to encode.

		Returns:
			CodeImage for the value.
		"""
		cached = self.cache.get(value)
		if cached is not None:
			return cached
		png = build_qr_png(
			value,
			error_correction=self.error_correction,
			box_size=self.box_size,
			border=self.border,
		)
		with PIL.Image.open(io.BytesIO(png)) as image:
			width, height = image.size
		code_image = CodeImage(value=value, png=png, width=width, height=height)
		self.cache[value] = code_image
		return code_image
