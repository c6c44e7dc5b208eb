"""
Cell rendering: bind packed cells to data row values.
"""

# Standard Library
import collections.abc
import dataclasses

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.codes
import grid_label_sheets.config
import grid_label_sheets.layout
import grid_label_sheets.template


CodeImage = gls.codes.CodeImage
CodeResolutionError = gls.codes.CodeResolutionError
PlacedCell = gls.layout.PlacedCell
LayoutDefect = gls.layout.LayoutDefect
CellStyle = gls.template.CellStyle

KIND_STATIC_TEXT = gls.config.KIND_STATIC_TEXT
KIND_TEXT = gls.config.KIND_TEXT
KIND_CODE_IMAGE = gls.config.KIND_CODE_IMAGE
KIND_CODE_TEXT = gls.config.KIND_CODE_TEXT
UNIT_PADDING = gls.config.UNIT_PADDING
UNIT_ERROR = gls.config.UNIT_ERROR
ALIGN_LEFT = gls.config.ALIGN_LEFT
ALIGN_CENTER = gls.config.ALIGN_CENTER
MISSING_FIELD_PLACEHOLDER = gls.config.MISSING_FIELD_PLACEHOLDER
RESOLUTION_ERROR_TEXT = gls.config.RESOLUTION_ERROR_TEXT
DEFECT_MISSING_FIELD = gls.config.DEFECT_MISSING_FIELD
DEFECT_RESOLUTION_FAILURE = gls.config.DEFECT_RESOLUTION_FAILURE

CodeResolver = collections.abc.Callable[[str], CodeImage]


@dataclasses.dataclass(frozen=True)
class RenderedUnit:
	placed: PlacedCell
	kind: str
	text: str = ""
	align: str = ALIGN_LEFT
	style: CellStyle = dataclasses.field(default_factory=CellStyle)
	image: CodeImage | None = None

	@property
	def is_padding(self) -> bool:
		return self.kind == UNIT_PADDING


#============================================
def resolve_field(
	placed: PlacedCell,
	row: dict[str, str],
	placeholder: str,
	row_index: int | None,
) -> tuple[str, list[LayoutDefect]]:
	"""
	Look up the value bound to a cell.

	A missing field yields the placeholder so the gap shows on the label.
	A field that is present but empty stays empty.

	Args:
		placed: Placed cell with a field binding.
		row: Data row.
		placeholder: Text used for missing fields.
		row_index: Data row position for defects.

	Returns:
		Tuple of (value, defects).
	"""
	field = placed.descriptor.field
	value = row.get(field)
	if value is None:
		defect = LayoutDefect(
			cell_id=placed.descriptor.cell_id,
			kind=DEFECT_MISSING_FIELD,
			message=f"Field {field!r} not in row",
			row_index=row_index,
		)
		return (placeholder, [defect])
	return (str(value), [])


#============================================
def render_cell(
	placed: PlacedCell,
	row: dict[str, str],
	resolver: CodeResolver,
	placeholder: str = MISSING_FIELD_PLACEHOLDER,
	row_index: int | None = None,
) -> tuple[RenderedUnit, list[LayoutDefect]]:
	"""
	Render one placed cell against a data row.

	Args:
		placed: Placed cell from the packer.
		row: Data row.
		resolver: Callable turning a value into a CodeImage.
		placeholder: Text used for missing fields.
		row_index: Data row position for defects.

	Returns:
		Tuple of (rendered unit, defects).
	"""
	if placed.is_padding or placed.descriptor is None:
		return (RenderedUnit(placed=placed, kind=UNIT_PADDING), [])

	cell = placed.descriptor
	if cell.kind == KIND_STATIC_TEXT:
		unit = RenderedUnit(
			placed=placed,
			kind=cell.kind,
			text=cell.content,
			align=cell.align,
			style=cell.style,
		)
		return (unit, [])

	if cell.kind == KIND_TEXT:
		value, defects = resolve_field(placed, row, placeholder, row_index)
		unit = RenderedUnit(
			placed=placed,
			kind=cell.kind,
			text=value,
			align=cell.align,
			style=cell.style,
		)
		return (unit, defects)

	if cell.kind == KIND_CODE_TEXT:
		value, defects = resolve_field(placed, row, placeholder, row_index)
		unit = RenderedUnit(
			placed=placed,
			kind=cell.kind,
			text=value,
			align=ALIGN_CENTER,
			style=cell.style,
		)
		return (unit, defects)

	if cell.kind == KIND_CODE_IMAGE:
		value, defects = resolve_field(placed, row, placeholder, row_index)
		# resolver failures of any type become an error unit for this cell
		try:
			image = resolver(value)
		except Exception as error:
			reason = str(error)
			if not isinstance(error, CodeResolutionError):
				reason = f"{type(error).__name__}: {error}"
			defects.append(
				LayoutDefect(
					cell_id=cell.cell_id,
					kind=DEFECT_RESOLUTION_FAILURE,
					message=f"Code image for {value!r} failed: {reason}",
					row_index=row_index,
				)
			)
			unit = RenderedUnit(
				placed=placed,
				kind=UNIT_ERROR,
				text=RESOLUTION_ERROR_TEXT,
				align=ALIGN_CENTER,
				style=cell.style,
			)
			return (unit, defects)
		unit = RenderedUnit(
			placed=placed,
			kind=cell.kind,
			text=value,
			align=cell.align,
			style=cell.style,
			image=image,
		)
		return (unit, defects)

	raise ValueError(f"Cell {cell.cell_id}: unknown kind {cell.kind!r}")
