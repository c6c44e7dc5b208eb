import grid_label_sheets.assemble
import grid_label_sheets.config
import grid_label_sheets.layout
import grid_label_sheets.template


config = grid_label_sheets.config


#============================================
def unit_texts(label: grid_label_sheets.assemble.Label) -> list[tuple[str, str]]:
	"""
	List (cell id, text) pairs for the real cells of a label.

	Args:
		label: Assembled label.

	Returns:
		Pairs in placement order.
	"""
	pairs: list[tuple[str, str]] = []
	for unit in label.units:
		if unit.is_padding:
			continue
		pairs.append((unit.placed.descriptor.cell_id, unit.text))
	return pairs


#============================================
def test_worked_example_label(fake_resolver) -> None:
	"""
	The product template renders the sample row into four full grid rows.
	"""
	template = grid_label_sheets.template.build_default_template()
	rows = [{"URUN_ADI": "Widget", "SERI_NO": "SN1"}]
	labels, defects = grid_label_sheets.assemble.assemble_labels(rows, template, fake_resolver)
	assert len(labels) == 1
	label = labels[0]
	assert label.grid_rows == 4
	assert label.columns == 6
	assert len([unit for unit in label.units if not unit.is_padding]) == 8
	assert grid_label_sheets.layout.grid_row_widths(label.placed) == [6, 6, 6, 6]
	texts = dict(unit_texts(label))
	assert texts["product_name"] == "Widget"
	assert texts["serial_number"] == "SN1"
	assert texts["serial_readable"] == "SN1"
	assert texts["stock_code"] == config.MISSING_FIELD_PLACEHOLDER
	assert fake_resolver.calls == ["SN1"]
	assert [(defect.cell_id, defect.kind) for defect in defects] == [
		("stock_code", config.DEFECT_MISSING_FIELD),
	]


#============================================
def test_labels_keep_row_order(fake_resolver) -> None:
	"""
	One label per row, in input order, duplicates kept.
	"""
	template = grid_label_sheets.template.build_default_template()
	rows = [
		{"URUN_ADI": "C", "STOK_KODU": "3", "SERI_NO": "S3"},
		{"URUN_ADI": "A", "STOK_KODU": "1", "SERI_NO": "S1"},
		{"URUN_ADI": "C", "STOK_KODU": "3", "SERI_NO": "S3"},
	]
	labels, defects = grid_label_sheets.assemble.assemble_labels(rows, template, fake_resolver)
	assert defects == []
	assert [label.row_index for label in labels] == [0, 1, 2]
	assert [dict(unit_texts(label))["product_name"] for label in labels] == ["C", "A", "C"]
	assert [label.row for label in labels] == rows


#============================================
def test_empty_rows_give_no_labels(fake_resolver) -> None:
	"""
	No rows is not an error.
	"""
	template = grid_label_sheets.template.build_default_template()
	labels, defects = grid_label_sheets.assemble.assemble_labels([], template, fake_resolver)
	assert labels == []
	assert defects == []
	assert fake_resolver.calls == []


#============================================
def test_missing_field_in_one_row_only(fake_resolver) -> None:
	"""
	A row without the product name shows the placeholder; others are untouched.
	"""
	template = grid_label_sheets.template.build_default_template()
	rows = [
		{"URUN_ADI": "Widget", "STOK_KODU": "W-1", "SERI_NO": "SN1"},
		{"STOK_KODU": "W-2", "SERI_NO": "SN2"},
	]
	labels, defects = grid_label_sheets.assemble.assemble_labels(rows, template, fake_resolver)
	assert dict(unit_texts(labels[0]))["product_name"] == "Widget"
	assert dict(unit_texts(labels[1]))["product_name"] == config.MISSING_FIELD_PLACEHOLDER
	assert [(defect.row_index, defect.cell_id) for defect in defects] == [(1, "product_name")]


#============================================
def test_resolution_failure_does_not_stop_batch(fake_resolver) -> None:
	"""
	A failing code image only affects its own label.
	"""
	fake_resolver.failing.add("BROKEN")
	template = grid_label_sheets.template.build_default_template()
	rows = [
		{"URUN_ADI": "A", "STOK_KODU": "1", "SERI_NO": "BROKEN"},
		{"URUN_ADI": "B", "STOK_KODU": "2", "SERI_NO": "OK"},
	]
	labels, defects = grid_label_sheets.assemble.assemble_labels(rows, template, fake_resolver)
	assert len(labels) == 2
	first_kinds = [unit.kind for unit in labels[0].units]
	second_kinds = [unit.kind for unit in labels[1].units]
	assert config.UNIT_ERROR in first_kinds
	assert config.UNIT_ERROR not in second_kinds
	assert [(defect.row_index, defect.kind) for defect in defects] == [
		(0, config.DEFECT_RESOLUTION_FAILURE),
	]


#============================================
def test_unexpected_resolver_error_does_not_stop_batch(fake_resolver) -> None:
	"""
	A resolver raising something other than CodeResolutionError still only
	affects the label it was called for.
	"""

	def flaky_resolver(value: str):
		if value == "BAD":
			raise OSError("disk")
		return fake_resolver(value)

	template = grid_label_sheets.template.build_default_template()
	rows = [
		{"URUN_ADI": "A", "STOK_KODU": "1", "SERI_NO": "BAD"},
		{"URUN_ADI": "B", "STOK_KODU": "2", "SERI_NO": "GOOD"},
	]
	labels, defects = grid_label_sheets.assemble.assemble_labels(rows, template, flaky_resolver)
	assert len(labels) == 2
	assert config.UNIT_ERROR in [unit.kind for unit in labels[0].units]
	second_qr = [unit for unit in labels[1].units if unit.kind == config.KIND_CODE_IMAGE]
	assert second_qr[0].image.value == "GOOD"
	assert [(defect.row_index, defect.kind) for defect in defects] == [
		(0, config.DEFECT_RESOLUTION_FAILURE),
	]
	assert "OSError: disk" in defects[0].message


#============================================
def test_layout_defects_reported_per_row(fake_resolver) -> None:
	"""
	An oversized cell is reported once for every row it is packed for.
	"""
	template = grid_label_sheets.template.Template(
		cells=(
			grid_label_sheets.template.CellDescriptor("wide", config.KIND_TEXT, field="A", col_span=9),
			grid_label_sheets.template.CellDescriptor("a", config.KIND_TEXT, field="A", col_span=6),
		),
		columns=6,
	)
	rows = [{"A": "1"}, {"A": "2"}]
	labels, defects = grid_label_sheets.assemble.assemble_labels(rows, template, fake_resolver)
	assert [dict(unit_texts(label))["a"] for label in labels] == ["1", "2"]
	assert [(defect.row_index, defect.cell_id, defect.kind) for defect in defects] == [
		(0, "wide", config.DEFECT_SPAN_TOO_WIDE),
		(1, "wide", config.DEFECT_SPAN_TOO_WIDE),
	]


#============================================
def test_labels_do_not_share_layout(fake_resolver) -> None:
	"""
	Each label gets its own packed cells with identical geometry.
	"""
	template = grid_label_sheets.template.build_default_template()
	rows = [{"SERI_NO": "1"}, {"SERI_NO": "2"}]
	labels, _defects = grid_label_sheets.assemble.assemble_labels(rows, template, fake_resolver)
	assert labels[0].placed == labels[1].placed
	assert labels[0].placed is not labels[1].placed
