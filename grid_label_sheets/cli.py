"""
CLI entry points for CSV to label sheet conversion.
"""

# Standard Library
import argparse
import pathlib
import time

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.assemble
import grid_label_sheets.codes
import grid_label_sheets.config
import grid_label_sheets.render
import grid_label_sheets.rows
import grid_label_sheets.template


ImpositionConfig = gls.config.ImpositionConfig
TileConfig = gls.config.TileConfig
TemplateError = gls.template.TemplateError
RowSourceError = gls.rows.RowSourceError

DEFAULT_LABEL_WIDTH = gls.config.DEFAULT_LABEL_WIDTH
DEFAULT_LABEL_HEIGHT = gls.config.DEFAULT_LABEL_HEIGHT
COLUMNS = gls.config.COLUMNS
ROWS = gls.config.ROWS
DEFAULT_LEFT_MARGIN = gls.config.DEFAULT_LEFT_MARGIN
DEFAULT_TOP_MARGIN = gls.config.DEFAULT_TOP_MARGIN
DEFAULT_H_GAP = gls.config.DEFAULT_H_GAP
DEFAULT_V_GAP = gls.config.DEFAULT_V_GAP
DEFAULT_INSET = gls.config.DEFAULT_INSET
DEFAULT_TEXT_SIZE = gls.config.DEFAULT_TEXT_SIZE
DEFAULT_TEXT_MIN_SIZE = gls.config.DEFAULT_TEXT_MIN_SIZE
MISSING_FIELD_PLACEHOLDER = gls.config.MISSING_FIELD_PLACEHOLDER


#============================================
def build_config(args: argparse.Namespace) -> ImpositionConfig:
	"""
	Build imposition config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		ImpositionConfig.
	"""
	config = ImpositionConfig(
		label_width=DEFAULT_LABEL_WIDTH,
		label_height=DEFAULT_LABEL_HEIGHT,
		columns=COLUMNS,
		rows=ROWS,
		left_margin=DEFAULT_LEFT_MARGIN,
		top_margin=DEFAULT_TOP_MARGIN,
		h_gap=DEFAULT_H_GAP,
		v_gap=DEFAULT_V_GAP,
		x_scale=1.0,
		y_scale=1.0,
		include_partial=args.include_partial,
		calibration=args.calibration,
		draw_outlines=args.draw_outlines,
		max_pages=args.max_pages,
		max_labels=args.max_labels,
	)
	return config


#============================================
def build_tile_config(args: argparse.Namespace) -> TileConfig:
	"""
	Build tile config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		TileConfig.
	"""
	return TileConfig(
		label_width=DEFAULT_LABEL_WIDTH,
		label_height=DEFAULT_LABEL_HEIGHT,
		inset=DEFAULT_INSET,
		text_font_size=DEFAULT_TEXT_SIZE,
		text_min_font_size=DEFAULT_TEXT_MIN_SIZE,
		text_fit=True,
		normalize_text=args.normalize_text,
		draw_cell_outlines=args.cell_outlines,
	)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render CSV rows as QR code labels on A4 label sheets.")
	parser.add_argument("input", help="CSV file with a header row.")

	input_group = parser.add_argument_group("Input")
	input_group.add_argument("-t", "--template", dest="template_path", default=None, help="Template XML path (default: built-in product label).")
	input_group.add_argument("-s", "--select", dest="selection", type=gls.rows.parse_selection, default=None, help="Rows to print, e.g. 0,2,5-7 (default: all).")
	input_group.add_argument("--placeholder", dest="placeholder", default=MISSING_FIELD_PLACEHOLDER, help="Text shown for missing fields.")

	output_group = parser.add_argument_group("Output files")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Label sheet PDF path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Manifest JSON path (default: OUTPUT.json).")

	sheet_group = parser.add_argument_group("Sheet options")
	sheet_group.add_argument("-d", "--draw-outlines", dest="draw_outlines", action="store_true", help="Draw label slot outlines on every sheet.")
	sheet_group.add_argument("-D", "--no-draw-outlines", dest="draw_outlines", action="store_false", help="Leave the label slots unmarked.")
	sheet_group.add_argument("-e", "--cell-outlines", dest="cell_outlines", action="store_true", help="Draw grid cell outlines inside labels.")
	sheet_group.add_argument("-E", "--no-cell-outlines", dest="cell_outlines", action="store_false", help="Disable grid cell outlines.")
	sheet_group.add_argument("-c", "--calibration", dest="calibration", action="store_true", help="Prepend a calibration sheet with slot centers and a 10 mm ruler.")
	sheet_group.add_argument("-C", "--no-calibration", dest="calibration", action="store_false", help="No calibration sheet.")
	sheet_group.add_argument("-p", "--include-partial", dest="include_partial", action="store_true", help="Print a final sheet that is not full.")
	sheet_group.add_argument("-P", "--no-include-partial", dest="include_partial", action="store_false", help="Only print full sheets.")
	sheet_group.add_argument("-n", "--normalize-text", dest="normalize_text", action="store_true", help="Fold label text to ASCII for the built-in fonts.")
	sheet_group.add_argument("-N", "--no-normalize-text", dest="normalize_text", action="store_false", help="Keep label text as read from the file.")
	sheet_group.add_argument(
		"--stop-before-rendering",
		dest="stop_before_rendering",
		action="store_true",
		help="Stop after assembling labels (skip rendering and imposition).",
	)

	limits_group = parser.add_argument_group("Sheet limits")
	limits_group.add_argument("-g", "--max-pages", dest="max_pages", type=int, default=None, help="Print at most this many sheets.")
	limits_group.add_argument("-l", "--max-labels", dest="max_labels", type=int, default=None, help="Print at most this many labels.")

	parser.set_defaults(
		draw_outlines=False,
		cell_outlines=False,
		calibration=False,
		include_partial=True,
		normalize_text=True,
		stop_before_rendering=False,
	)

	args = parser.parse_args(argv)
	return args


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Run the full pipeline from CSV rows to a label sheet PDF.

	Args:
		args: Parsed argparse namespace.
	"""
	print("CSV to label sheet pipeline")
	print(f"Input: {args.input}")
	print(f"Output PDF: {args.output_path}")
	if args.manifest_path:
		print(f"Manifest: {args.manifest_path}")
	print(f"Normalize text: {args.normalize_text}")
	print(f"Draw outlines: {args.draw_outlines}")
	print(f"Calibration: {args.calibration}")
	print(f"Include partial: {args.include_partial}")
	if args.max_labels is not None:
		print(f"Max labels: {args.max_labels}")
	if args.max_pages is not None:
		print(f"Max sheets: {args.max_pages}")
	if args.stop_before_rendering:
		print("Stop before rendering: True")

	start_time = time.perf_counter()
	if args.template_path:
		template = gls.template.load_template(pathlib.Path(args.template_path))
	else:
		template = gls.template.build_default_template()
	print(f"Template: {template.name or 'unnamed'} ({len(template.cells)} cells, {template.columns} columns)")

	input_path = pathlib.Path(args.input)
	rows, column_names = gls.rows.load_rows(input_path)
	print(f"Rows read: {len(rows)} ({len(column_names)} columns)")
	if not rows:
		print("Warning: the file has no data rows, nothing to print.")
		return
	missing_columns = [
		field for field in gls.template.template_fields(template)
		if field not in column_names
	]
	if missing_columns:
		print(f"Warning: template fields not in file: {', '.join(missing_columns)}")

	selected = gls.rows.select_rows(rows, args.selection)
	print(f"Rows selected: {len(selected)}")
	if not selected:
		print("Warning: no rows selected, nothing to print.")
		return

	assemble_start = time.perf_counter()
	resolver = gls.codes.QrCodeResolver()
	labels, defects = gls.assemble.assemble_labels(
		selected,
		template,
		resolver,
		placeholder=args.placeholder,
		verbose=True,
	)
	assemble_end = time.perf_counter()

	output_path = pathlib.Path(args.output_path)
	output_path.parent.mkdir(parents=True, exist_ok=True)
	log_path = output_path.parent / "layout_defects.log"
	if defects:
		gls.render.write_defect_log(defects, log_path)
		print(f"Layout defect log written: {log_path}")
	else:
		# a clean run must not leave an older run's log behind
		log_path.unlink(missing_ok=True)
	if args.stop_before_rendering:
		print("Labels assembled, skipping tile rendering.")
		total_time = time.perf_counter() - start_time
		print(
			"Timing: assemble={:.2f}s total={:.2f}s".format(
				assemble_end - assemble_start,
				total_time,
			)
		)
		return

	render_start = time.perf_counter()
	tile_config = build_tile_config(args)
	tiles_dir = output_path.parent / "tiles"
	print(f"Tiles directory: {tiles_dir}")
	print("Rendering tiles")
	tiles = gls.render.render_tiles(labels, tiles_dir, tile_config, name_prefix=input_path.stem)
	render_end = time.perf_counter()
	print(f"Tiles rendered: {len(tiles)}")

	tile_paths = [pathlib.Path(tile["path"]) for tile in tiles]
	config = build_config(args)
	print("Imposing tiles")
	impose_start = time.perf_counter()
	result = gls.render.impose_tiles(tile_paths, output_path, config)
	impose_end = time.perf_counter()
	print(f"Sheets written: {result.pages}")
	print(f"Labels placed: {result.printed_labels}")
	print(f"Labels not printed: {result.leftover_labels}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	gls.render.write_manifest(
		pathlib.Path(manifest_path),
		input_path,
		template.name,
		template.columns,
		len(rows),
		labels,
		defects,
		result,
		config,
	)

	total_time = time.perf_counter() - start_time
	print(
		"Timing: assemble={:.2f}s render={:.2f}s impose={:.2f}s total={:.2f}s".format(
			assemble_end - assemble_start,
			render_end - render_start,
			impose_end - impose_start,
			total_time,
		)
	)
	print(f"Manifest written: {manifest_path}")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.

	Args:
		argv: Argument list, defaults to sys.argv.
	"""
	args = parse_args(argv)
	try:
		run_pipeline(args)
	except (TemplateError, RowSourceError) as error:
		raise SystemExit(f"Error: {error}") from error
