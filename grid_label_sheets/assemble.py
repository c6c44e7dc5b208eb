"""
Label assembly: one packed and rendered grid per data row.
"""

# Standard Library
import dataclasses

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.cells
import grid_label_sheets.config
import grid_label_sheets.layout
import grid_label_sheets.template


Template = gls.template.Template
PlacedCell = gls.layout.PlacedCell
LayoutDefect = gls.layout.LayoutDefect
RenderedUnit = gls.cells.RenderedUnit
CodeResolver = gls.cells.CodeResolver

MISSING_FIELD_PLACEHOLDER = gls.config.MISSING_FIELD_PLACEHOLDER


@dataclasses.dataclass
class Label:
	row_index: int
	row: dict[str, str]
	columns: int
	grid_rows: int
	placed: list[PlacedCell]
	units: list[RenderedUnit]


#============================================
def assemble_label(
	row: dict[str, str],
	row_index: int,
	template: Template,
	resolver: CodeResolver,
	columns: int | None = None,
	placeholder: str = MISSING_FIELD_PLACEHOLDER,
) -> tuple[Label, list[LayoutDefect]]:
	"""
	Pack and render a single label.

	Args:
		row: Data row.
		row_index: Position of the row in the selection.
		template: Label template.
		resolver: Code image resolver.
		columns: Grid width override.
		placeholder: Text used for missing fields.

	Returns:
		Tuple of (label, defects).
	"""
	if columns is None:
		columns = template.columns
	placed, defects = gls.layout.pack_template(template, columns, row_index=row_index)
	units: list[RenderedUnit] = []
	for cell in placed:
		unit, cell_defects = gls.cells.render_cell(
			cell,
			row,
			resolver,
			placeholder=placeholder,
			row_index=row_index,
		)
		units.append(unit)
		defects.extend(cell_defects)
	label = Label(
		row_index=row_index,
		row=row,
		columns=columns,
		grid_rows=gls.layout.count_grid_rows(placed),
		placed=placed,
		units=units,
	)
	return (label, defects)


#============================================
def assemble_labels(
	rows: list[dict[str, str]],
	template: Template,
	resolver: CodeResolver,
	columns: int | None = None,
	placeholder: str = MISSING_FIELD_PLACEHOLDER,
	verbose: bool = False,
) -> tuple[list[Label], list[LayoutDefect]]:
	"""
	Build one label per data row, in row order.

	Args:
		rows: Selected data rows.
		template: Label template.
		resolver: Code image resolver.
		columns: Grid width override.
		placeholder: Text used for missing fields.
		verbose: Print a summary line.

	Returns:
		Tuple of (labels, defects).
	"""
	labels: list[Label] = []
	defects: list[LayoutDefect] = []
	for row_index, row in enumerate(rows):
		label, row_defects = assemble_label(
			row,
			row_index,
			template,
			resolver,
			columns=columns,
			placeholder=placeholder,
		)
		labels.append(label)
		defects.extend(row_defects)
	if verbose:
		print(f"Labels assembled: {len(labels)} ({len(defects)} defects)")
	return (labels, defects)
