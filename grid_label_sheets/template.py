"""
Label templates: cell descriptors, validation and XML template files.
"""

# Standard Library
import dataclasses
import pathlib

# PIP3 modules
import defusedxml
import defusedxml.ElementTree as ElementTree

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.config


GRID_COLUMNS = gls.config.GRID_COLUMNS
CELL_KINDS = gls.config.CELL_KINDS
FIELD_KINDS = gls.config.FIELD_KINDS
ALIGNMENTS = gls.config.ALIGNMENTS
ALIGN_LEFT = gls.config.ALIGN_LEFT
ALIGN_CENTER = gls.config.ALIGN_CENTER
KIND_STATIC_TEXT = gls.config.KIND_STATIC_TEXT
KIND_TEXT = gls.config.KIND_TEXT
KIND_CODE_IMAGE = gls.config.KIND_CODE_IMAGE
KIND_CODE_TEXT = gls.config.KIND_CODE_TEXT


class TemplateError(ValueError):
	"""
	Raised when a template or template file is malformed.
	"""


@dataclasses.dataclass(frozen=True)
class CellStyle:
	font_size: str | None = None
	color: str | None = None
	background_color: str | None = None


@dataclasses.dataclass(frozen=True)
class CellDescriptor:
	cell_id: str
	kind: str
	content: str = ""
	field: str = ""
	col_span: int = 1
	row_span: int = 1
	align: str = ALIGN_LEFT
	style: CellStyle = dataclasses.field(default_factory=CellStyle)


@dataclasses.dataclass(frozen=True)
class Template:
	cells: tuple[CellDescriptor, ...]
	columns: int = GRID_COLUMNS
	name: str = ""

	def __post_init__(self) -> None:
		validate_template(self)


#============================================
def validate_descriptor(cell: CellDescriptor) -> None:
	"""
	Check a single descriptor for construction errors.

	Spans wider than the grid are not checked here; the packer skips
	those cells and reports them as layout defects.

	Args:
		cell: Descriptor to check.
	"""
	if not cell.cell_id:
		raise TemplateError("Cell is missing an id")
	if cell.kind not in CELL_KINDS:
		raise TemplateError(f"Cell {cell.cell_id}: unknown kind {cell.kind!r}")
	if cell.kind == KIND_STATIC_TEXT and not cell.content:
		raise TemplateError(f"Cell {cell.cell_id}: static_text needs content")
	if cell.kind in FIELD_KINDS and not cell.field:
		raise TemplateError(f"Cell {cell.cell_id}: {cell.kind} needs a field")
	if cell.col_span < 1 or cell.row_span < 1:
		raise TemplateError(
			f"Cell {cell.cell_id}: spans must be positive "
			f"(colspan={cell.col_span}, rowspan={cell.row_span})"
		)
	if cell.align not in ALIGNMENTS:
		raise TemplateError(f"Cell {cell.cell_id}: unknown align {cell.align!r}")


#============================================
def validate_template(template: Template) -> None:
	"""
	Check a template for construction errors.

	Args:
		template: Template to check.
	"""
	if template.columns < 1:
		raise TemplateError(f"Grid width must be positive, got {template.columns}")
	seen: set[str] = set()
	for cell in template.cells:
		validate_descriptor(cell)
		if cell.cell_id in seen:
			raise TemplateError(f"Duplicate cell id {cell.cell_id!r}")
		seen.add(cell.cell_id)


#============================================
def template_fields(template: Template) -> list[str]:
	"""
	List the row fields a template binds, in template order.

	Args:
		template: Template to inspect.

	Returns:
		Unique field names.
	"""
	fields: list[str] = []
	for cell in template.cells:
		if cell.kind in FIELD_KINDS and cell.field not in fields:
			fields.append(cell.field)
	return fields


#============================================
def parse_int_attribute(value: str | None, default_value: int, cell_id: str, name: str) -> int:
	"""
	Parse an integer XML attribute.

	Args:
		value: Raw attribute value.
		default_value: Value used when the attribute is absent.
		cell_id: Cell id for error messages.
		name: Attribute name for error messages.

	Returns:
		Parsed integer.
	"""
	if value is None or not value.strip():
		return default_value
	try:
		return int(value.strip())
	except ValueError as error:
		raise TemplateError(f"Cell {cell_id}: {name} is not an integer: {value!r}") from error


#============================================
def parse_cell_element(element) -> CellDescriptor:
	"""
	Parse a <cell> element into a CellDescriptor.

	Args:
		element: XML element.

	Returns:
		CellDescriptor.
	"""
	attrib = element.attrib
	cell_id = attrib.get("id", "").strip()
	kind = attrib.get("kind", "").strip().lower()
	content = attrib.get("content")
	if content is None:
		content = (element.text or "").strip()
	style = CellStyle(
		font_size=attrib.get("font-size"),
		color=attrib.get("color"),
		background_color=attrib.get("background-color"),
	)
	align_default = ALIGN_CENTER if kind == KIND_CODE_TEXT else ALIGN_LEFT
	return CellDescriptor(
		cell_id=cell_id,
		kind=kind,
		content=content,
		field=attrib.get("field", "").strip(),
		col_span=parse_int_attribute(attrib.get("colspan"), 1, cell_id, "colspan"),
		row_span=parse_int_attribute(attrib.get("rowspan"), 1, cell_id, "rowspan"),
		align=attrib.get("align", align_default).strip().lower(),
		style=style,
	)


#============================================
def parse_template_xml(data: bytes | str, name: str = "") -> Template:
	"""
	Parse template XML.

	Args:
		data: XML document.
		name: Template name used when the document has none.

	Returns:
		Template.
	"""
	try:
		root = ElementTree.fromstring(data)
	except (ElementTree.ParseError, defusedxml.DefusedXmlException) as error:
		raise TemplateError(f"Template XML is not well formed: {error}") from error
	if not root.tag.endswith("template"):
		raise TemplateError(f"Expected a <template> root element, got <{root.tag}>")
	columns_value = root.attrib.get("columns")
	columns = GRID_COLUMNS
	if columns_value is not None:
		try:
			columns = int(columns_value)
		except ValueError as error:
			raise TemplateError(f"Template columns is not an integer: {columns_value!r}") from error
	cells = [parse_cell_element(child) for child in root if child.tag.endswith("cell")]
	return Template(
		cells=tuple(cells),
		columns=columns,
		name=root.attrib.get("name", name),
	)


#============================================
def load_template(path: pathlib.Path) -> Template:
	"""
	Load a template XML file.

	Args:
		path: Template file path.

	Returns:
		Template.
	"""
	path = pathlib.Path(path)
	if not path.is_file():
		raise TemplateError(f"Template file not found: {path}")
	return parse_template_xml(path.read_bytes(), name=path.stem)


#============================================
def build_default_template() -> Template:
	"""
	Build the product label template.

	A QR code of the serial number sits in the right third of the label
	beside three caption/value rows, with the serial number repeated as
	text across the bottom.

	Returns:
		Template.
	"""
	caption_style = CellStyle(font_size="8", background_color="#E8E8E8")
	cells = (
		CellDescriptor("product_caption", KIND_STATIC_TEXT, content="Urun Adi", col_span=2, style=caption_style),
		CellDescriptor("product_name", KIND_TEXT, field="URUN_ADI", col_span=2),
		CellDescriptor("serial_qr", KIND_CODE_IMAGE, field="SERI_NO", col_span=2, row_span=3, align=ALIGN_CENTER),
		CellDescriptor("stock_caption", KIND_STATIC_TEXT, content="Stok Kodu", col_span=2, style=caption_style),
		CellDescriptor("stock_code", KIND_TEXT, field="STOK_KODU", col_span=2),
		CellDescriptor("serial_caption", KIND_STATIC_TEXT, content="Seri No", col_span=2, style=caption_style),
		CellDescriptor("serial_number", KIND_TEXT, field="SERI_NO", col_span=2),
		CellDescriptor("serial_readable", KIND_CODE_TEXT, field="SERI_NO", col_span=6, align=ALIGN_CENTER, style=CellStyle(font_size="10")),
	)
	return Template(cells=cells, columns=GRID_COLUMNS, name="product")
