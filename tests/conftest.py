"""
Pytest configuration for local imports and shared test doubles.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()
import grid_label_sheets.codes


class FakeResolver:
	"""
	Resolver double that records requested values and fails on demand.
	"""

	def __init__(self, failing: set[str] | None = None):
		self.failing = failing or set()
		self.calls: list[str] = []

	def __call__(self, value: str) -> grid_label_sheets.codes.CodeImage:
		self.calls.append(value)
		if value in self.failing:
			raise grid_label_sheets.codes.CodeResolutionError(f"cannot encode {value}")
		return grid_label_sheets.codes.CodeImage(
			value=value,
			png=value.encode("utf-8"),
			width=10,
			height=10,
		)


#============================================
@pytest.fixture
def fake_resolver() -> FakeResolver:
	"""
	Provide a resolver that never touches the QR library.
	"""
	return FakeResolver()
