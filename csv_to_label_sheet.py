#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Render CSV rows as QR code labels on A4 label sheets.
"""

# local repo modules
import grid_label_sheets.cli


if __name__ == "__main__":
	grid_label_sheets.cli.main()
