"""
Data row loading and selection.
"""

# Standard Library
import csv
import pathlib

# local repo modules
import grid_label_sheets as gls
import grid_label_sheets.config


ALLOWED_ROW_EXTENSIONS = gls.config.ALLOWED_ROW_EXTENSIONS
CSV_DELIMITERS = gls.config.CSV_DELIMITERS


class RowSourceError(ValueError):
	"""
	Raised when a row file cannot be read.
	"""


#============================================
def detect_delimiter(header_line: str) -> str:
	"""
	Pick the delimiter that appears most often in the header line.

	Args:
		header_line: First line of the file.

	Returns:
		Delimiter character, comma when none is found.
	"""
	best = ","
	best_count = 0
	for candidate in CSV_DELIMITERS:
		count = header_line.count(candidate)
		if count > best_count:
			best = candidate
			best_count = count
	return best


#============================================
def load_rows(path: pathlib.Path) -> tuple[list[dict[str, str]], list[str]]:
	"""
	Read data rows from a delimited text file with a header row.

	Every value is kept as a string. Short rows get empty strings for
	their missing trailing cells, and blank lines are dropped.

	Args:
		path: CSV file path.

	Returns:
		Tuple of (rows, column_names).
	"""
	path = pathlib.Path(path)
	if path.suffix.lower() not in ALLOWED_ROW_EXTENSIONS:
		allowed = ", ".join(ALLOWED_ROW_EXTENSIONS)
		raise RowSourceError(f"Unsupported file type {path.suffix!r} (supported: {allowed})")
	if not path.is_file():
		raise RowSourceError(f"Row file not found: {path}")

	rows: list[dict[str, str]] = []
	try:
		with path.open("r", encoding="utf-8-sig", newline="") as handle:
			header_line = handle.readline()
			handle.seek(0)
			reader = csv.DictReader(handle, delimiter=detect_delimiter(header_line))
			column_names = [name.strip() for name in (reader.fieldnames or [])]
			for record in reader:
				row: dict[str, str] = {}
				for raw_name, name in zip(reader.fieldnames or [], column_names):
					value = record.get(raw_name)
					row[name] = "" if value is None else str(value).strip()
				if not any(row.values()):
					continue
				rows.append(row)
	except (UnicodeDecodeError, csv.Error) as error:
		raise RowSourceError(f"Could not read {path.name}: {error}") from error
	return (rows, column_names)


#============================================
def select_rows(rows: list[dict[str, str]], indices: list[int] | None) -> list[dict[str, str]]:
	"""
	Pick rows by position, keeping the order of the indices.

	Indices outside the row range are dropped. None selects every row.

	Args:
		rows: All loaded rows.
		indices: Row positions to keep.

	Returns:
		Selected rows.
	"""
	if indices is None:
		return list(rows)
	selected: list[dict[str, str]] = []
	for index in indices:
		if 0 <= index < len(rows):
			selected.append(rows[index])
	return selected


#============================================
def parse_selection(text: str) -> list[int]:
	"""
	Parse a row selection like "0,2,5-7".

	Args:
		text: Comma separated indices and inclusive ranges.

	Returns:
		Row indices in the given order.
	"""
	indices: list[int] = []
	for part in text.split(","):
		part = part.strip()
		if not part:
			continue
		if "-" in part:
			start_text, end_text = part.split("-", 1)
			start = int(start_text)
			end = int(end_text)
			if end < start:
				raise ValueError(f"Selection range {part!r} runs backwards")
			indices.extend(range(start, end + 1))
			continue
		indices.append(int(part))
	return indices
