"""Spreadsheet transcoder.

Re-emits the first sheet of every .xls/.xlsx workbook in a job folder as a
new .xlsx without its leading rows, in parallel, and zips the results.
"""

__version__ = "0.1.0"
