"""
Label tile rendering with ReportLab and sheet imposition with pypdf.
"""

# Standard Library
import io
import json
import pathlib
import unicodedata

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.lib.pagesizes
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.assemble
import grid_label_sheets.cells
import grid_label_sheets.config
import grid_label_sheets.layout


Label = gls.assemble.Label
RenderedUnit = gls.cells.RenderedUnit
LayoutDefect = gls.layout.LayoutDefect
ImpositionConfig = gls.config.ImpositionConfig
TileConfig = gls.config.TileConfig
ImpositionResult = gls.config.ImpositionResult

PAGE_SIZE = reportlab.lib.pagesizes.A4
POINTS_PER_MM = gls.config.POINTS_PER_MM
DEFAULT_FONT_REGULAR = gls.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = gls.config.DEFAULT_FONT_BOLD
KIND_STATIC_TEXT = gls.config.KIND_STATIC_TEXT
KIND_CODE_IMAGE = gls.config.KIND_CODE_IMAGE
KIND_CODE_TEXT = gls.config.KIND_CODE_TEXT
UNIT_ERROR = gls.config.UNIT_ERROR
ERROR_TEXT_COLOR = gls.config.ERROR_TEXT_COLOR
CELL_PADDING = gls.config.CELL_PADDING
CELL_OUTLINE_WIDTH = gls.config.CELL_OUTLINE_WIDTH
IMAGE_SCALE = gls.config.IMAGE_SCALE
PROGRESS_BAR_WIDTH = gls.config.PROGRESS_BAR_WIDTH
PROGRESS_UPDATE_EVERY = gls.config.PROGRESS_UPDATE_EVERY


#============================================
def compute_align_offset(available: float, used: float, align: str) -> float:
	"""
	Compute a horizontal alignment offset.

	Args:
		available: Available width.
		used: Width of the content.
		align: Alignment string.

	Returns:
		Offset in points.
	"""
	normalized = align.strip().lower()
	if normalized == "left":
		return 0.0
	if normalized == "right":
		return max(0.0, available - used)
	return max(0.0, (available - used) / 2.0)


#============================================
def print_progress(stage: str, done: int, total: int) -> None:
	"""
	Redraw a one-line progress bar for a pipeline stage.

	Args:
		stage: Stage name shown before the bar.
		done: Labels finished so far.
		total: Labels in the stage.
	"""
	if total <= 0:
		return
	fraction = min(1.0, done / total)
	filled = int(fraction * PROGRESS_BAR_WIDTH + 0.5)
	bar = "=" * filled + " " * (PROGRESS_BAR_WIDTH - filled)
	print(f"{stage}: |{bar}| {done} of {total} labels", end="\r")


#============================================
def parse_hex_color(
	value: str | None,
	default_value: tuple[float, float, float] | None = (0.0, 0.0, 0.0),
) -> tuple[float, float, float] | None:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC" or "#ABC".
		default_value: Returned when the string is not a hex color.

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range, or the default.
	"""
	if not value:
		return default_value
	value = value.strip()
	if not value.startswith("#"):
		return default_value
	digits = value[1:]
	if len(digits) == 3:
		digits = "".join(char * 2 for char in digits)
	if len(digits) != 6:
		return default_value
	try:
		red = int(digits[0:2], 16) / 255.0
		green = int(digits[2:4], 16) / 255.0
		blue = int(digits[4:6], 16) / 255.0
	except ValueError:
		return default_value
	return (red, green, blue)


#============================================
def parse_font_size(value: str | None, default_value: float) -> float:
	"""
	Parse a font size string into points.

	Args:
		value: String like "9", "9pt", "12px" or "3mm".
		default_value: Fallback when parsing fails.

	Returns:
		Font size in points.
	"""
	if value is None:
		return default_value
	value = value.strip().lower()
	if not value:
		return default_value
	factor = 1.0
	if value.endswith("pt"):
		value = value[:-2]
	elif value.endswith("px"):
		value = value[:-2]
		factor = 0.75
	elif value.endswith("mm"):
		value = value[:-2]
		factor = POINTS_PER_MM
	try:
		size = float(value) * factor
	except ValueError:
		return default_value
	if size <= 0.0:
		return default_value
	return size


#============================================
def normalize_text(value: str) -> str:
	"""
	Normalize label text to ASCII for the built-in PDF fonts.

	Args:
		value: Input text.

	Returns:
		Normalized text.
	"""
	if not value:
		return value
	replacements = {
		"\u0131": "i",
		"\u0130": "I",
		"\u00df": "ss",
		"\u00d8": "O",
		"\u00f8": "o",
		"\u00b0": "deg",
		"\u00a0": " ",
	}
	for old, new in replacements.items():
		value = value.replace(old, new)
	value = unicodedata.normalize("NFKD", value)
	value = value.encode("ascii", "ignore").decode("ascii")
	return value


#============================================
def file_token(value: str) -> str:
	"""
	Reduce a value to ASCII letters, digits and single underscores.

	Args:
		value: Free text, e.g. a file stem or a serial number.

	Returns:
		Token safe for file names, empty when nothing usable is left.
	"""
	folded = normalize_text(value)
	pieces = []
	for char in folded:
		pieces.append(char if char.isalnum() else " ")
	return "_".join("".join(pieces).split())


#============================================
def build_tile_name(prefix: str, label: Label) -> str:
	"""
	Name a tile after its row position and the value its code encodes.

	Args:
		prefix: Name prefix, usually the input file stem.
		label: Assembled label.

	Returns:
		Tile file name like "stock_0003_SN0042.pdf".
	"""
	stem = f"{file_token(prefix) or 'label'}_{label.row_index:04d}"
	for unit in label.units:
		if unit.image is not None:
			code_token = file_token(unit.image.value)
			if code_token:
				stem = f"{stem}_{code_token}"
			break
	return f"{stem}.pdf"


#============================================
def compute_cell_box(
	label: Label,
	unit: RenderedUnit,
	config: TileConfig,
) -> tuple[float, float, float, float]:
	"""
	Compute the tile-space box of a rendered cell.

	Args:
		label: Label the cell belongs to.
		unit: Rendered cell.
		config: Tile configuration.

	Returns:
		Box as (x, y, width, height), y measured from the tile bottom.
	"""
	available_width = config.label_width - 2.0 * config.inset
	available_height = config.label_height - 2.0 * config.inset
	column_width = available_width / label.columns
	row_height = available_height / max(1, label.grid_rows)
	placed = unit.placed
	x = config.inset + placed.column * column_width
	y = config.inset + (label.grid_rows - placed.row - placed.row_span) * row_height
	return (x, y, placed.col_span * column_width, placed.row_span * row_height)


#============================================
def draw_text_cell(
	pdf: reportlab.pdfgen.canvas.Canvas,
	text: str,
	box: tuple[float, float, float, float],
	font_name: str,
	font_size: float,
	align: str,
	color: tuple[float, float, float],
	text_fit: bool,
	min_font_size: float,
) -> bool:
	"""
	Draw text inside a cell box, vertically centered.

	Args:
		pdf: ReportLab canvas.
		text: Text to draw, may hold several lines.
		box: Cell box (x, y, width, height).
		font_name: ReportLab font name.
		font_size: Requested font size.
		align: Horizontal alignment.
		color: RGB fill color.
		text_fit: Whether to shrink text to fit the box.
		min_font_size: Smallest size allowed when shrinking.

	Returns:
		True if the text hit the minimum size while shrinking.
	"""
	lines = text.splitlines()
	if not lines:
		return False
	x, y, width, height = box
	inner_width = max(0.0, width - 2.0 * CELL_PADDING)
	inner_height = max(0.0, height - 2.0 * CELL_PADDING)

	def compute_leading(size: float) -> float:
		return size * 1.2

	leading = compute_leading(font_size)
	text_height = font_size + leading * (len(lines) - 1)
	max_width = max(pdf.stringWidth(line, font_name, font_size) for line in lines)
	clamped = False
	if text_fit and (max_width > inner_width or text_height > inner_height):
		scale_width = inner_width / max_width if max_width > 0 else 1.0
		scale_height = inner_height / text_height if text_height > 0 else 1.0
		scale = min(1.0, scale_width, scale_height)
		if scale < 1.0:
			target_size = font_size * scale
			if target_size < min_font_size:
				font_size = min_font_size
				clamped = True
			else:
				font_size = target_size
			leading = compute_leading(font_size)
			text_height = font_size + leading * (len(lines) - 1)

	pdf.setFont(font_name, font_size)
	pdf.setFillColorRGB(color[0], color[1], color[2])
	descent = reportlab.pdfbase.pdfmetrics.getDescent(font_name) * font_size / 1000.0
	top_baseline = y + (height + text_height) / 2.0 - font_size - descent / 2.0
	for index, line in enumerate(lines):
		line_width = pdf.stringWidth(line, font_name, font_size)
		text_x = x + CELL_PADDING + compute_align_offset(inner_width, line_width, align)
		text_y = top_baseline - index * leading
		pdf.drawString(text_x, text_y, line)
	return clamped


#============================================
def draw_image_cell(
	pdf: reportlab.pdfgen.canvas.Canvas,
	image_reader: reportlab.lib.utils.ImageReader,
	box: tuple[float, float, float, float],
	align: str,
) -> None:
	"""
	Draw a square code image inside a cell box.

	Args:
		pdf: ReportLab canvas.
		image_reader: ImageReader instance.
		box: Cell box (x, y, width, height).
		align: Horizontal alignment.
	"""
	x, y, width, height = box
	side = min(width, height) * IMAGE_SCALE
	if side <= 0.0:
		return
	image_x = x + compute_align_offset(width, side, align)
	image_y = y + (height - side) / 2.0
	pdf.drawImage(
		image_reader,
		image_x,
		image_y,
		width=side,
		height=side,
		mask=None,
		preserveAspectRatio=True,
		anchor="c",
	)


#============================================
def build_image_reader(png: bytes) -> reportlab.lib.utils.ImageReader:
	"""
	Wrap PNG bytes for ReportLab.

	Args:
		png: PNG bytes.

	Returns:
		ImageReader instance.
	"""
	image = PIL.Image.open(io.BytesIO(png))
	image.load()
	return reportlab.lib.utils.ImageReader(image)


#============================================
def draw_label(
	pdf: reportlab.pdfgen.canvas.Canvas,
	label: Label,
	config: TileConfig,
	image_cache: dict[str, reportlab.lib.utils.ImageReader],
) -> int:
	"""
	Draw every cell of a label onto a tile canvas.

	Args:
		pdf: ReportLab canvas sized to one label.
		label: Label to draw.
		config: Tile configuration.
		image_cache: ImageReader cache keyed by encoded value.

	Returns:
		Number of text cells clamped at the minimum font size.
	"""
	clamp_count = 0
	for unit in label.units:
		box = compute_cell_box(label, unit, config)
		if config.draw_cell_outlines:
			pdf.setLineWidth(CELL_OUTLINE_WIDTH)
			pdf.setStrokeColorRGB(0.7, 0.7, 0.7)
			pdf.rect(box[0], box[1], box[2], box[3], stroke=1, fill=0)
		if unit.is_padding:
			continue

		background = parse_hex_color(unit.style.background_color, None)
		if background is not None:
			pdf.setFillColorRGB(background[0], background[1], background[2])
			pdf.rect(box[0], box[1], box[2], box[3], stroke=0, fill=1)

		if unit.kind == KIND_CODE_IMAGE and unit.image is not None:
			image_reader = image_cache.get(unit.image.value)
			if image_reader is None:
				image_reader = build_image_reader(unit.image.png)
				image_cache[unit.image.value] = image_reader
			draw_image_cell(pdf, image_reader, box, unit.align)
			continue

		text = unit.text
		if config.normalize_text:
			text = normalize_text(text)
		if unit.kind == UNIT_ERROR:
			color = parse_hex_color(ERROR_TEXT_COLOR)
		else:
			color = parse_hex_color(unit.style.color)
		font_name = DEFAULT_FONT_REGULAR
		if unit.kind in (KIND_STATIC_TEXT, KIND_CODE_TEXT, UNIT_ERROR):
			font_name = DEFAULT_FONT_BOLD
		font_size = parse_font_size(unit.style.font_size, config.text_font_size)
		clamped = draw_text_cell(
			pdf,
			text,
			box,
			font_name,
			font_size,
			unit.align,
			color,
			config.text_fit,
			config.text_min_font_size,
		)
		if clamped:
			clamp_count += 1
	return clamp_count


#============================================
def render_label_tile(
	label: Label,
	output_path: pathlib.Path,
	config: TileConfig,
	image_cache: dict[str, reportlab.lib.utils.ImageReader],
) -> int:
	"""
	Render one label as a single-page PDF of label size.

	Args:
		label: Label to render.
		output_path: Output file path.
		config: Tile configuration.
		image_cache: ImageReader cache keyed by encoded value.

	Returns:
		Number of text cells clamped at the minimum font size.
	"""
	pdf = reportlab.pdfgen.canvas.Canvas(
		str(output_path),
		pagesize=(config.label_width, config.label_height),
	)
	clamp_count = draw_label(pdf, label, config, image_cache)
	pdf.save()
	return clamp_count


#============================================
def render_tiles(
	labels: list[Label],
	output_dir: pathlib.Path,
	tile_config: TileConfig,
	name_prefix: str = "label",
) -> list[dict[str, str]]:
	"""
	Render labels into tile PDFs.

	Args:
		labels: Assembled labels.
		output_dir: Output directory.
		tile_config: Tile configuration.
		name_prefix: Tile file name prefix.

	Returns:
		List of tile metadata dictionaries.
	"""
	output_dir.mkdir(parents=True, exist_ok=True)
	image_cache: dict[str, reportlab.lib.utils.ImageReader] = {}
	tiles: list[dict[str, str]] = []
	min_font_labels = 0
	min_font_total = 0
	empty_labels = 0
	total = len(labels)
	if total > 0:
		print_progress("Tiles", 0, total)
	for index, label in enumerate(labels, start=1):
		tile_name = build_tile_name(name_prefix, label)
		tile_path = output_dir / tile_name
		if not any(not unit.is_padding for unit in label.units):
			empty_labels += 1
		clamp_count = render_label_tile(label, tile_path, tile_config, image_cache)
		if clamp_count > 0:
			min_font_labels += 1
			min_font_total += clamp_count
		tiles.append(
			{
				"id": tile_path.stem,
				"path": str(tile_path),
				"row_index": str(label.row_index),
			}
		)
		if total > 0 and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
			print_progress("Tiles", index, total)
	if total > 0:
		print()
	if min_font_total > 0:
		print(f"Min font size clamps: {min_font_labels} labels, {min_font_total} cells")
	if empty_labels > 0:
		print(f"Empty label summary: {empty_labels} labels")
	return tiles


#============================================
def compute_slot_origin(config: ImpositionConfig, slot: int) -> tuple[float, float]:
	"""
	Compute the lower-left corner of a label slot, filling rows first.

	Args:
		config: Imposition configuration.
		slot: Slot index on the page.

	Returns:
		Tuple of (x, y) in page points.
	"""
	page_width, page_height = PAGE_SIZE
	row = slot // config.columns
	col = slot % config.columns
	scaled_label_width = config.label_width * config.x_scale
	scaled_label_height = config.label_height * config.y_scale
	scaled_h_gap = config.h_gap * config.x_scale
	scaled_v_gap = config.v_gap * config.y_scale
	cell_x = config.left_margin + col * (scaled_label_width + scaled_h_gap)
	cell_y = page_height - config.top_margin - scaled_label_height - row * (
		scaled_label_height + scaled_v_gap
	)
	return (cell_x, cell_y)


#============================================
def draw_label_outlines(pdf: reportlab.pdfgen.canvas.Canvas, config: ImpositionConfig) -> None:
	"""
	Outline every label slot of a sheet.

	Args:
		pdf: ReportLab canvas.
		config: Imposition configuration.
	"""
	pdf.setLineWidth(0.3)
	pdf.setStrokeColorRGB(0.7, 0.7, 0.7)
	scaled_label_width = config.label_width * config.x_scale
	scaled_label_height = config.label_height * config.y_scale
	for slot in range(config.columns * config.rows):
		cell_x, cell_y = compute_slot_origin(config, slot)
		pdf.rect(cell_x, cell_y, scaled_label_width, scaled_label_height, stroke=1, fill=0)


#============================================
def draw_calibration_page(pdf: reportlab.pdfgen.canvas.Canvas, config: ImpositionConfig) -> None:
	"""
	Draw calibration boxes, center crosses and a 10 mm ruler mark.

	Args:
		pdf: ReportLab canvas.
		config: Imposition configuration.
	"""
	page_width, page_height = PAGE_SIZE
	draw_label_outlines(pdf, config)

	scaled_label_width = config.label_width * config.x_scale
	scaled_label_height = config.label_height * config.y_scale
	pdf.setLineWidth(0.6)
	pdf.setStrokeColorRGB(0.0, 0.0, 0.0)
	for slot in range(config.columns * config.rows):
		cell_x, cell_y = compute_slot_origin(config, slot)
		center_x = cell_x + scaled_label_width / 2.0
		center_y = cell_y + scaled_label_height / 2.0
		size = 6.0
		pdf.line(center_x - size, center_y, center_x + size, center_y)
		pdf.line(center_x, center_y - size, center_x, center_y + size)

	ruler_x = config.left_margin
	ruler_y = min(page_height - 6.0, page_height - config.top_margin + 4.0)
	pdf.line(ruler_x, ruler_y, ruler_x + 10.0 * POINTS_PER_MM, ruler_y)
	pdf.setFont(DEFAULT_FONT_REGULAR, 6)
	pdf.drawString(ruler_x + 10.0 * POINTS_PER_MM + 3.0, ruler_y - 2.0, "10 mm")


#============================================
def build_overlay_page(config: ImpositionConfig, calibration: bool) -> pypdf.PageObject:
	"""
	Build a single PDF page with outlines or the calibration marks.

	Args:
		config: Imposition configuration.
		calibration: Draw the calibration page instead of plain outlines.

	Returns:
		PDF page object.
	"""
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=PAGE_SIZE)
	if calibration:
		draw_calibration_page(pdf, config)
	else:
		draw_label_outlines(pdf, config)
	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def impose_tiles(
	tile_paths: list[pathlib.Path],
	output_path: pathlib.Path,
	config: ImpositionConfig,
) -> ImpositionResult:
	"""
	Impose tile PDFs onto label sheets.

	Args:
		tile_paths: Tile PDF paths.
		output_path: Output PDF path.
		config: Imposition configuration.

	Returns:
		ImpositionResult.
	"""
	writer = pypdf.PdfWriter()
	page_width, page_height = PAGE_SIZE
	labels_per_page = config.columns * config.rows

	placed_count = len(tile_paths)
	if config.max_labels is not None:
		placed_count = min(placed_count, config.max_labels)
	if config.max_pages is not None:
		placed_count = min(placed_count, config.max_pages * labels_per_page)
	if not config.include_partial:
		placed_count = (placed_count // labels_per_page) * labels_per_page

	outline_page = None
	if config.draw_outlines:
		outline_page = build_overlay_page(config, calibration=False)

	if config.calibration:
		writer.add_page(build_overlay_page(config, calibration=True))

	for index in range(placed_count):
		if index % labels_per_page == 0:
			page = pypdf.PageObject.create_blank_page(
				width=page_width,
				height=page_height,
			)
			if outline_page is not None:
				page.merge_page(outline_page)
			writer.add_page(page)

		page = writer.pages[-1]
		cell_x, cell_y = compute_slot_origin(config, index % labels_per_page)
		reader = pypdf.PdfReader(str(tile_paths[index]))
		tile_page = reader.pages[0]
		transform = pypdf.Transformation().scale(config.x_scale, config.y_scale).translate(
			cell_x,
			cell_y,
		)
		page.merge_transformed_page(tile_page, transform)

	with pathlib.Path(output_path).open("wb") as handle:
		writer.write(handle)

	pages = 0
	if placed_count > 0:
		pages = (placed_count + labels_per_page - 1) // labels_per_page
	if config.calibration:
		pages += 1

	return ImpositionResult(
		total_labels=len(tile_paths),
		printed_labels=placed_count,
		leftover_labels=len(tile_paths) - placed_count,
		pages=pages,
		labels_per_page=labels_per_page,
	)


#============================================
def defect_to_dict(defect: LayoutDefect) -> dict:
	"""
	Convert a defect to a JSON-friendly dict.

	Args:
		defect: Layout defect.

	Returns:
		Dict with defect fields.
	"""
	return {
		"row_index": defect.row_index,
		"cell_id": defect.cell_id,
		"kind": defect.kind,
		"message": defect.message,
	}


#============================================
def write_defect_log(defects: list[LayoutDefect], log_path: pathlib.Path) -> None:
	"""
	Write one line per defect.

	Args:
		defects: Collected defects.
		log_path: Output log path.
	"""
	lines: list[str] = []
	for defect in defects:
		row_text = "-" if defect.row_index is None else str(defect.row_index)
		lines.append(f"row {row_text} cell {defect.cell_id} [{defect.kind}] {defect.message}")
	with log_path.open("w", encoding="utf-8") as handle:
		handle.write("\n".join(lines) + "\n")


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	input_path: pathlib.Path,
	template_name: str,
	grid_columns: int,
	total_rows: int,
	labels: list[Label],
	defects: list[LayoutDefect],
	result: ImpositionResult,
	config: ImpositionConfig,
) -> None:
	"""
	Write the run manifest as JSON.

	Args:
		manifest_path: Output path.
		input_path: Row file path.
		template_name: Template name.
		grid_columns: Template grid width.
		total_rows: Rows read from the input.
		labels: Assembled labels.
		defects: Collected defects.
		result: Imposition result.
		config: Imposition configuration.
	"""
	defect_counts: dict[str, int] = {}
	for defect in defects:
		defect_counts[defect.kind] = defect_counts.get(defect.kind, 0) + 1
	data = {
		"input": str(input_path),
		"template": template_name,
		"grid_columns": grid_columns,
		"total_rows": total_rows,
		"selected_rows": len(labels),
		"grid_rows": [label.grid_rows for label in labels],
		"labels_per_page": result.labels_per_page,
		"total_labels": result.total_labels,
		"printed_labels": result.printed_labels,
		"leftover_labels": result.leftover_labels,
		"pages": result.pages,
		"defect_counts": defect_counts,
		"defects": [defect_to_dict(defect) for defect in defects],
		"layout": {
			"label_width": config.label_width,
			"label_height": config.label_height,
			"columns": config.columns,
			"rows": config.rows,
			"left_margin": config.left_margin,
			"top_margin": config.top_margin,
			"h_gap": config.h_gap,
			"v_gap": config.v_gap,
			"x_scale": config.x_scale,
			"y_scale": config.y_scale,
			"draw_outlines": config.draw_outlines,
			"max_pages": config.max_pages,
			"max_labels": config.max_labels,
		},
		"fonts": {
			"regular": DEFAULT_FONT_REGULAR,
			"bold": DEFAULT_FONT_BOLD,
		},
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
