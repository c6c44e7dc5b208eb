import pathlib

import pytest

import grid_label_sheets.config
import grid_label_sheets.template


TemplateError = grid_label_sheets.template.TemplateError
CellDescriptor = grid_label_sheets.template.CellDescriptor
REPO_ROOT = pathlib.Path(__file__).resolve().parent.parent


#============================================
def test_template_file_matches_builtin_template() -> None:
	"""
	The shipped product template file equals the built-in template.
	"""
	loaded = grid_label_sheets.template.load_template(REPO_ROOT / "templates" / "product.xml")
	builtin = grid_label_sheets.template.build_default_template()
	assert loaded.columns == builtin.columns
	assert loaded.name == "product"
	assert loaded.cells == builtin.cells


#============================================
def test_parse_template_xml_attributes() -> None:
	"""
	Spans, alignment, style and literal content are read from XML.
	"""
	xml = b"""<template columns="4">
		<cell id="cap" kind="static_text" colspan="2" align="right" color="#336" font-size="7pt">Lot</cell>
		<cell id="lot" kind="text" field="LOT" colspan="2" background-color="#EEEEEE"/>
		<cell id="qr" kind="code_image" field="LOT" colspan="4" rowspan="2"/>
		<cell id="lot_text" kind="code_text" field="LOT" colspan="4"/>
	</template>"""
	template = grid_label_sheets.template.parse_template_xml(xml, name="lot")
	assert template.columns == 4
	assert template.name == "lot"
	caption, value, code, readable = template.cells
	assert caption.content == "Lot"
	assert caption.align == "right"
	assert caption.style.color == "#336"
	assert caption.style.font_size == "7pt"
	assert value.style.background_color == "#EEEEEE"
	assert (code.col_span, code.row_span) == (4, 2)
	assert readable.align == grid_label_sheets.config.ALIGN_CENTER
	assert grid_label_sheets.template.template_fields(template) == ["LOT"]


#============================================
def test_parse_template_defaults_to_six_columns() -> None:
	"""
	A template without a columns attribute uses the default grid width.
	"""
	template = grid_label_sheets.template.parse_template_xml(
		'<template><cell id="a" kind="text" field="A"/></template>'
	)
	assert template.columns == grid_label_sheets.config.GRID_COLUMNS
	assert template.cells[0].col_span == 1
	assert template.cells[0].row_span == 1


#============================================
@pytest.mark.parametrize(
	"xml",
	[
		"<template><cell id='a' kind='text' field='A'>",
		"<labels><cell id='a' kind='text' field='A'/></labels>",
		"<template columns='six'/>",
		"<template><cell id='a' kind='text' field='A' colspan='two'/></template>",
		"<template><cell id='a' kind='sticker' field='A'/></template>",
		"<template><cell id='a' kind='static_text'/></template>",
		"<template><cell id='a' kind='text'/></template>",
		"<template><cell id='a' kind='text' field='A' rowspan='0'/></template>",
		"<template><cell id='a' kind='text' field='A' align='justify'/></template>",
		"<template><cell id='a' kind='text' field='A'/><cell id='a' kind='text' field='B'/></template>",
		"<template><cell kind='text' field='A'/></template>",
		"<template columns='0'/>",
	],
)
def test_parse_template_rejects_bad_input(xml: str) -> None:
	"""
	Malformed templates fail with TemplateError.
	"""
	with pytest.raises(TemplateError):
		grid_label_sheets.template.parse_template_xml(xml)


#============================================
def test_parse_template_blocks_entities() -> None:
	"""
	Entity declarations are refused.
	"""
	xml = (
		'<?xml version="1.0"?>'
		'<!DOCTYPE template [<!ENTITY boom "boom">]>'
		'<template><cell id="a" kind="static_text">&boom;</cell></template>'
	)
	with pytest.raises(TemplateError):
		grid_label_sheets.template.parse_template_xml(xml)


#============================================
def test_oversized_span_is_not_a_template_error() -> None:
	"""
	Spans wider than the grid are left for the packer to report.
	"""
	template = grid_label_sheets.template.Template(
		cells=(CellDescriptor("wide", grid_label_sheets.config.KIND_TEXT, field="A", col_span=10),),
		columns=6,
	)
	assert template.cells[0].col_span == 10


#============================================
def test_load_template_missing_file(tmp_path: pathlib.Path) -> None:
	"""
	A missing template file is a TemplateError.
	"""
	with pytest.raises(TemplateError):
		grid_label_sheets.template.load_template(tmp_path / "missing.xml")
