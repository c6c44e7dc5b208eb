"""
Grid packing of template cells.

Cells are packed row-major into a grid of fixed width. A cell with a row
span above one reserves its columns in the following grid rows; the
cursor keeps a per-column count of those reservations and steps over them.
"""

# Standard Library
import dataclasses

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.config
import grid_label_sheets.template


CellDescriptor = gls.template.CellDescriptor
Template = gls.template.Template

DEFECT_SPAN_TOO_WIDE = gls.config.DEFECT_SPAN_TOO_WIDE
DEFECT_SPAN_DOES_NOT_FIT = gls.config.DEFECT_SPAN_DOES_NOT_FIT


@dataclasses.dataclass(frozen=True)
class PlacedCell:
	descriptor: CellDescriptor | None
	row: int
	column: int
	col_span: int
	row_span: int
	is_padding: bool = False


@dataclasses.dataclass(frozen=True)
class LayoutDefect:
	cell_id: str
	kind: str
	message: str
	row_index: int | None = None


class GridCursor:
	"""
	Write position and row-span reservations for one label grid.
	"""

	def __init__(self, columns: int):
		if columns < 1:
			raise ValueError(f"Grid width must be positive, got {columns}")
		self.columns = columns
		self.column = 0
		self.row = 0
		# grid rows still reserved below the current row, per column
		self.carry = [0] * columns

	#============================================
	def is_occupied(self) -> bool:
		"""
		Check whether the current column is reserved by a spanning cell.

		Returns:
			True if the current column cannot take a new cell.
		"""
		return self.carry[self.column] > 0

	#============================================
	def wrap_if_full(self) -> None:
		"""
		Start a new grid row once the write column passes the grid edge.
		"""
		if self.column >= self.columns:
			self.column = 0
			self.row += 1

	#============================================
	def advance(self) -> None:
		"""
		Step over the current column, consuming one reserved row there.
		"""
		if self.carry[self.column] > 0:
			self.carry[self.column] -= 1
		self.column += 1
		self.wrap_if_full()

	#============================================
	def skip_occupied(self) -> int:
		"""
		Advance past every reserved column at the write position.

		Returns:
			Number of columns skipped.
		"""
		skipped = 0
		while self.is_occupied():
			self.advance()
			skipped += 1
		return skipped

	#============================================
	def room(self) -> int:
		"""
		Count free contiguous columns from the write position.

		Returns:
			Columns available before the next reserved column or the grid edge.
		"""
		count = 0
		for column in range(self.column, self.columns):
			if self.carry[column] > 0:
				break
			count += 1
		return count

	#============================================
	def place(self, col_span: int, row_span: int = 1) -> tuple[int, int]:
		"""
		Reserve a cell at the write position.

		Args:
			col_span: Columns to take in the current grid row.
			row_span: Grid rows the cell covers, including the current one.

		Returns:
			Tuple of (row, column) where the cell starts.
		"""
		if col_span < 1 or row_span < 1:
			raise ValueError(f"Spans must be positive (colspan={col_span}, rowspan={row_span})")
		if col_span > self.room():
			raise ValueError(
				f"Span of {col_span} does not fit at column {self.column} "
				f"({self.room()} free)"
			)
		start = (self.row, self.column)
		if row_span > 1:
			for column in range(self.column, self.column + col_span):
				self.carry[column] = row_span - 1
		self.column += col_span
		self.wrap_if_full()
		return start

	#============================================
	def has_pending(self) -> bool:
		"""
		Check whether any column is still reserved below the current row.

		Returns:
			True while a spanning cell has rows left to close out.
		"""
		return any(count > 0 for count in self.carry)


#============================================
def pad_remaining(cursor: GridCursor) -> list[PlacedCell]:
	"""
	Close out the grid with padding cells.

	Fills the rest of the current grid row and every following row that
	still has reserved columns, one padding cell per free run.

	Args:
		cursor: Cursor after the last template cell.

	Returns:
		Padding cells in placement order.
	"""
	padding: list[PlacedCell] = []
	while cursor.column != 0 or cursor.has_pending():
		if cursor.is_occupied():
			cursor.advance()
			continue
		width = cursor.room()
		row, column = cursor.place(width)
		padding.append(
			PlacedCell(
				descriptor=None,
				row=row,
				column=column,
				col_span=width,
				row_span=1,
				is_padding=True,
			)
		)
	return padding


#============================================
def pack_template(
	template: Template,
	columns: int | None = None,
	row_index: int | None = None,
) -> tuple[list[PlacedCell], list[LayoutDefect]]:
	"""
	Pack template cells into a grid.

	Cells are taken in template order. A cell wider than the grid, or wider
	than the free columns left in the current grid row, is skipped and
	reported; packing continues with the next cell.

	Args:
		template: Template to pack.
		columns: Grid width override, defaults to the template width.
		row_index: Data row position attached to reported defects.

	Returns:
		Tuple of (placed_cells, defects).
	"""
	if columns is None:
		columns = template.columns
	cursor = GridCursor(columns)
	placed: list[PlacedCell] = []
	defects: list[LayoutDefect] = []
	for cell in template.cells:
		if cell.col_span > columns:
			defects.append(
				LayoutDefect(
					cell_id=cell.cell_id,
					kind=DEFECT_SPAN_TOO_WIDE,
					message=f"colspan {cell.col_span} exceeds grid width {columns}",
					row_index=row_index,
				)
			)
			continue
		cursor.skip_occupied()
		room = cursor.room()
		if cell.col_span > room:
			defects.append(
				LayoutDefect(
					cell_id=cell.cell_id,
					kind=DEFECT_SPAN_DOES_NOT_FIT,
					message=(
						f"colspan {cell.col_span} does not fit at row {cursor.row} "
						f"column {cursor.column} ({room} free)"
					),
					row_index=row_index,
				)
			)
			continue
		row, column = cursor.place(cell.col_span, cell.row_span)
		placed.append(
			PlacedCell(
				descriptor=cell,
				row=row,
				column=column,
				col_span=cell.col_span,
				row_span=cell.row_span,
			)
		)
	placed.extend(pad_remaining(cursor))
	return (placed, defects)


#============================================
def count_grid_rows(placed: list[PlacedCell]) -> int:
	"""
	Count the grid rows covered by a packed label.

	Args:
		placed: Packed cells.

	Returns:
		Number of grid rows.
	"""
	if not placed:
		return 0
	return max(cell.row + cell.row_span for cell in placed)


#============================================
def grid_row_widths(placed: list[PlacedCell]) -> list[int]:
	"""
	Sum the columns covered in each grid row, row spans included.

	Args:
		placed: Packed cells.

	Returns:
		Covered column count per grid row.
	"""
	widths = [0] * count_grid_rows(placed)
	for cell in placed:
		for row in range(cell.row, cell.row + cell.row_span):
			widths[row] += cell.col_span
	return widths
