"""
Shared configuration and constants.
"""

import dataclasses


POINTS_PER_INCH = 72.0
POINTS_PER_MM = POINTS_PER_INCH / 25.4

GRID_COLUMNS = 6

KIND_STATIC_TEXT = "static_text"
KIND_TEXT = "text"
KIND_CODE_IMAGE = "code_image"
KIND_CODE_TEXT = "code_text"
CELL_KINDS = (KIND_STATIC_TEXT, KIND_TEXT, KIND_CODE_IMAGE, KIND_CODE_TEXT)
FIELD_KINDS = (KIND_TEXT, KIND_CODE_IMAGE, KIND_CODE_TEXT)
UNIT_PADDING = "padding"
UNIT_ERROR = "error"

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"
ALIGNMENTS = (ALIGN_LEFT, ALIGN_CENTER, ALIGN_RIGHT)

MISSING_FIELD_PLACEHOLDER = "---"
RESOLUTION_ERROR_TEXT = "QR ERROR"
ERROR_TEXT_COLOR = "#CC0000"

DEFECT_SPAN_TOO_WIDE = "span_too_wide"
DEFECT_SPAN_DOES_NOT_FIT = "span_does_not_fit"
DEFECT_MISSING_FIELD = "missing_field"
DEFECT_RESOLUTION_FAILURE = "resolution_failure"

QR_ERROR_CORRECTION = "H"
QR_BOX_SIZE = 8
QR_BORDER = 2

ALLOWED_ROW_EXTENSIONS = (".csv",)
CSV_DELIMITERS = (",", ";", "\t")

# Avery L7173 on A4: 2 columns x 5 rows, 99.1 x 57 mm
COLUMNS = 2
ROWS = 5
DEFAULT_LABEL_WIDTH = 99.1 * POINTS_PER_MM
DEFAULT_LABEL_HEIGHT = 57.0 * POINTS_PER_MM
DEFAULT_LEFT_MARGIN = 4.65 * POINTS_PER_MM
DEFAULT_TOP_MARGIN = 6.0 * POINTS_PER_MM
DEFAULT_H_GAP = 2.5 * POINTS_PER_MM
DEFAULT_V_GAP = 0.0
DEFAULT_INSET = 4.0

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_TEXT_SIZE = 9.0
DEFAULT_TEXT_MIN_SIZE = 5.0
CELL_PADDING = 1.5
CELL_OUTLINE_WIDTH = 0.3
IMAGE_SCALE = 0.95
PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 10


@dataclasses.dataclass
class ImpositionConfig:
	label_width: float
	label_height: float
	columns: int
	rows: int
	left_margin: float
	top_margin: float
	h_gap: float
	v_gap: float
	x_scale: float
	y_scale: float
	include_partial: bool
	calibration: bool
	draw_outlines: bool
	max_pages: int | None = None
	max_labels: int | None = None


@dataclasses.dataclass
class TileConfig:
	label_width: float
	label_height: float
	inset: float
	text_font_size: float
	text_min_font_size: float
	text_fit: bool
	normalize_text: bool
	draw_cell_outlines: bool


@dataclasses.dataclass
class ImpositionResult:
	total_labels: int
	printed_labels: int
	leftover_labels: int
	pages: int
	labels_per_page: int

